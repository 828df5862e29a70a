from datetime import datetime, timezone

import pytest

from supplier_eval.app.core.errors import DataIntegrity, Forbidden, InvalidArgument, NotFound, Unauthenticated
from supplier_eval.app.services.identity import IdentityResolver
from supplier_eval.app.services.lifecycle import TRANSITIONS, set_status, update_plan
from supplier_eval.db.models import RecommendationStatus


@pytest.fixture
def rec(factory, scenario):
    return factory.recommendation(scenario["r1"])


@pytest.fixture
def supplier(factory, scenario):
    return factory.supplier(scenario["vendor"])


def _set(db, user_or_id, rec, status):
    caller_id = getattr(user_or_id, "user_id", user_or_id)
    return set_status(db, IdentityResolver(db), caller_id, rec.recommendation_id, status)


def test_supplier_walks_the_lifecycle(db, rec, supplier):
    updated = _set(db, supplier, rec, "in_progress")
    assert updated.status == RecommendationStatus.in_progress
    assert updated.completed_at is None

    updated = _set(db, supplier, rec, "implemented")
    assert updated.status == RecommendationStatus.implemented
    assert updated.completed_at is not None
    assert updated.updated_at is not None


def test_admin_reopen_clears_completed_at(db, rec, supplier, factory):
    _set(db, supplier, rec, "in_progress")
    _set(db, supplier, rec, "implemented")

    reopened = _set(db, factory.admin(), rec, "pending")
    assert reopened.status == RecommendationStatus.pending
    assert reopened.completed_at is None


@pytest.mark.parametrize("terminal", ["implemented", "rejected"])
def test_supplier_cannot_reopen(db, rec, supplier, terminal):
    _set(db, supplier, rec, "in_progress")
    _set(db, supplier, rec, terminal)

    with pytest.raises(Forbidden) as exc:
        _set(db, supplier, rec, "pending")
    assert exc.value.reason == "admin_only_transition"


@pytest.mark.parametrize("target", ["implemented", "rejected", "pending"])
def test_transitions_outside_the_table_are_rejected(db, rec, supplier, target):
    # rec starts in pending
    with pytest.raises(InvalidArgument) as exc:
        _set(db, supplier, rec, target)
    assert exc.value.reason == "invalid_transition"


def test_transition_table_has_no_self_loops():
    assert all(current != new for current, new in TRANSITIONS)


def test_unknown_status_is_rejected(db, rec, supplier):
    with pytest.raises(InvalidArgument) as exc:
        _set(db, supplier, rec, "done")
    assert exc.value.reason == "invalid_status"


def test_other_vendor_is_forbidden(db, rec, factory):
    intruder = factory.supplier(factory.vendor("Intruder"))
    with pytest.raises(Forbidden):
        _set(db, intruder, rec, "in_progress")


def test_evaluator_is_forbidden(db, rec, factory):
    with pytest.raises(Forbidden):
        _set(db, factory.evaluator(), rec, "in_progress")


def test_admin_can_update_any_vendor(db, rec, factory):
    updated = _set(db, factory.admin(), rec, "in_progress")
    assert updated.status == RecommendationStatus.in_progress


def test_unknown_recommendation_is_not_found(db, supplier):
    with pytest.raises(NotFound):
        set_status(db, IdentityResolver(db), supplier.user_id, "no-such-rec", "in_progress")


def test_missing_caller_is_unauthenticated(db, rec):
    with pytest.raises(Unauthenticated):
        _set(db, None, rec, "in_progress")


def test_broken_ownership_chain_is_data_integrity(db, rec, scenario, supplier):
    scenario["r1"].assignment_id = None
    db.commit()
    db.expire_all()

    with pytest.raises(DataIntegrity):
        _set(db, supplier, rec, "in_progress")


def _plan(db, user_or_id, rec, **changes):
    caller_id = getattr(user_or_id, "user_id", user_or_id)
    return update_plan(db, IdentityResolver(db), caller_id, rec.recommendation_id, changes)


def test_supplier_sets_action_plan_and_due_date(db, rec, supplier):
    due = datetime(2026, 12, 31, tzinfo=timezone.utc)
    updated = _plan(db, supplier, rec, action_plan="Book the certification audit", due_date=due)

    assert updated.action_plan == "Book the certification audit"
    assert updated.due_date.replace(tzinfo=timezone.utc) == due
    assert updated.status == RecommendationStatus.pending
    assert updated.updated_at is not None


def test_plan_update_only_touches_given_fields(db, rec, supplier):
    _plan(db, supplier, rec, action_plan="Draft", due_date=datetime(2026, 12, 31, tzinfo=timezone.utc))

    updated = _plan(db, supplier, rec, due_date=None)
    assert updated.action_plan == "Draft"
    assert updated.due_date is None


def test_empty_plan_update_is_rejected(db, rec, supplier):
    with pytest.raises(InvalidArgument) as exc:
        _plan(db, supplier, rec)
    assert exc.value.reason == "empty_update"


def test_closed_recommendation_plan_is_frozen(db, rec, supplier):
    _set(db, supplier, rec, "in_progress")
    _set(db, supplier, rec, "implemented")

    with pytest.raises(InvalidArgument) as exc:
        _plan(db, supplier, rec, action_plan="Too late")
    assert exc.value.reason == "recommendation_closed"


def test_plan_update_by_other_vendor_is_forbidden(db, rec, factory):
    intruder = factory.supplier(factory.vendor("Intruder"))
    with pytest.raises(Forbidden):
        _plan(db, intruder, rec, action_plan="Not mine")


def test_admin_can_update_any_plan(db, rec, factory):
    assert _plan(db, factory.admin(), rec, action_plan="Escalated").action_plan == "Escalated"


def test_plan_update_of_unknown_recommendation_is_not_found(db, supplier):
    with pytest.raises(NotFound):
        update_plan(db, IdentityResolver(db), supplier.user_id, "no-such-rec", {"action_plan": "x"})
