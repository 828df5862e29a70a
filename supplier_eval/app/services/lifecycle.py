"""Recommendation status lifecycle.

    pending -> in_progress -> implemented | rejected
    in_progress -> pending
    implemented | rejected -> pending   (administrators only)

Anything not in `TRANSITIONS` is rejected, including setting the current status again.
The action plan and due date can be edited until the recommendation is closed.
"""
# app/services/lifecycle.py
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from supplier_eval.app.core.errors import DataIntegrity, Forbidden, InvalidArgument, NotFound, storage_guard
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.services.identity import CallerIdentity, IdentityResolver
from supplier_eval.db.models import Recommendation, RecommendationStatus, Response

logger = get_logs_writer_logger(__name__)

S = RecommendationStatus

PLAN_FIELDS = ("action_plan", "due_date")
CLOSED = frozenset({RecommendationStatus.implemented, RecommendationStatus.rejected})

# (from, to) -> admin only
TRANSITIONS: dict[tuple[RecommendationStatus, RecommendationStatus], bool] = {
    (S.pending, S.in_progress): False,
    (S.in_progress, S.pending): False,
    (S.in_progress, S.implemented): False,
    (S.in_progress, S.rejected): False,
    (S.implemented, S.pending): True,
    (S.rejected, S.pending): True,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_status(value) -> RecommendationStatus:
    try:
        return RecommendationStatus(value)
    except ValueError:
        raise InvalidArgument(f"Unknown status: {value!r}", reason="invalid_status")


def owner_vendor_id(rec: Recommendation) -> str:
    """Vendor owning the recommendation via response -> assignment -> vendor."""
    response = rec.response
    if response is None:
        logger.error("Recommendation %s has no response %s", rec.recommendation_id, rec.response_id)
        raise DataIntegrity(f"Recommendation {rec.recommendation_id} has no response")
    assignment = response.assignment
    if assignment is None:
        logger.error(
            "Recommendation %s: response %s has no assignment (assignment_id=%s)",
            rec.recommendation_id, response.response_id, response.assignment_id,
        )
        raise DataIntegrity(f"Response {response.response_id} has no vendor assignment")
    return assignment.vendor_id


def check_transition(caller: CallerIdentity, current: RecommendationStatus, new: RecommendationStatus) -> None:
    admin_only = TRANSITIONS.get((current, new))
    if admin_only is None:
        raise InvalidArgument(
            f"Transition {current.value} -> {new.value} is not allowed",
            reason="invalid_transition",
        )
    if admin_only and not caller.is_admin:
        raise Forbidden(
            f"Only administrators can reopen a {current.value} recommendation",
            reason="admin_only_transition",
        )


def load_owned_recommendation(db: Session, caller: CallerIdentity, recommendation_id: str) -> Recommendation:
    """Load a recommendation the caller may act on.

    Raises:
        NotFound: Unknown recommendation.
        Forbidden: Caller neither owns the recommendation's vendor nor is an administrator.
        DataIntegrity: The ownership chain is broken.
    """
    with storage_guard():
        rec = db.execute(
            select(Recommendation)
            .options(selectinload(Recommendation.response).selectinload(Response.assignment))
            .where(Recommendation.recommendation_id == recommendation_id)
        ).scalar_one_or_none()
    if rec is None:
        raise NotFound(f"Recommendation {recommendation_id} not found")

    if not caller.is_admin:
        if caller.vendor_id is None or owner_vendor_id(rec) != caller.vendor_id:
            raise Forbidden("Recommendation belongs to another vendor")
    return rec


def set_status(db: Session, resolver: IdentityResolver, caller_id: str | None,
               recommendation_id: str, new_status) -> Recommendation:
    """Move a recommendation to `new_status` on behalf of the caller.

    Args:
        db: The DB session.
        resolver: Identity resolver for the request.
        caller_id: The authenticated caller's user id.
        recommendation_id: The recommendation to update.
        new_status: One of pending, in_progress, implemented, rejected.

    Returns:
        Recommendation: The updated recommendation.

    Raises:
        Unauthenticated: No valid caller.
        InvalidArgument: Unknown status or a transition outside the table.
        NotFound: Unknown recommendation.
        Forbidden: Caller neither owns the recommendation's vendor nor is an administrator.
        DataIntegrity: The ownership chain is broken.
    """
    caller = resolver.resolve(caller_id)
    target = parse_status(new_status)
    rec = load_owned_recommendation(db, caller, recommendation_id)

    previous = rec.status
    check_transition(caller, previous, target)

    now = utcnow()
    rec.status = target
    rec.updated_at = now
    if target == S.implemented:
        rec.completed_at = now
    elif previous == S.implemented:
        rec.completed_at = None

    with storage_guard():
        db.commit()
        db.refresh(rec)

    logger.info(
        "Recommendation %s: %s -> %s by %s",
        rec.recommendation_id, previous.value, target.value, caller.user_id,
    )
    return rec


def update_plan(db: Session, resolver: IdentityResolver, caller_id: str | None,
                recommendation_id: str, changes: Mapping[str, Any]) -> Recommendation:
    """Set the action plan and/or due date of an open recommendation.

    Args:
        changes: A subset of `action_plan` and `due_date`; None clears a field.

    Raises:
        InvalidArgument: No known field given, or the recommendation is closed.
        NotFound, Forbidden, DataIntegrity: As for `set_status`.
    """
    caller = resolver.resolve(caller_id)
    changes = {k: v for k, v in changes.items() if k in PLAN_FIELDS}
    if not changes:
        raise InvalidArgument("Nothing to update", reason="empty_update")

    rec = load_owned_recommendation(db, caller, recommendation_id)
    if rec.status in CLOSED:
        raise InvalidArgument(
            f"Recommendation is {rec.status.value}; reopen it first",
            reason="recommendation_closed",
        )

    for key, value in changes.items():
        setattr(rec, key, value)
    rec.updated_at = utcnow()

    with storage_guard():
        db.commit()
        db.refresh(rec)

    logger.info("Recommendation %s: plan updated (%s) by %s",
                rec.recommendation_id, ", ".join(sorted(changes)), caller.user_id)
    return rec
