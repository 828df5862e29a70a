from supplier_eval.app.services.answers import normalize_answer
from supplier_eval.app.services.metrics import aggregate_snapshots, compliance_bucket, compute_fleet_metrics
from supplier_eval.app.services.projections import (
    AssignmentView,
    EvaluationSnapshot,
    QuestionView,
    ResponseView,
)
from supplier_eval.db.models import AssignmentStatus


def _snapshot(evaluation_id, weight, scores, assignments=None, status="in_progress"):
    """One-question evaluation; `scores` maps vendor id -> score, `assignments` vendor id -> status."""
    questions = {"q": QuestionView("q", "Question", None, weight)}
    responses = tuple(
        ResponseView(f"{evaluation_id}-{vendor}", "q", vendor, f"{evaluation_id}-{vendor}",
                     normalize_answer(response_value="Yes" if score else "No"), score)
        for vendor, score in scores.items()
    )
    if assignments is None:
        assignments = {vendor: "completed" for vendor in scores}
    assignment_views = tuple(
        AssignmentView(f"{evaluation_id}-{vendor}", vendor, f"Vendor {vendor}", vendor_status)
        for vendor, vendor_status in assignments.items()
    )
    return EvaluationSnapshot(evaluation_id, evaluation_id, status, questions, responses, assignment_views)


def test_compliance_bucket_boundaries():
    assert compliance_bucket(100) == "excellent"
    assert compliance_bucket(90) == "excellent"
    assert compliance_bucket(89) == "good"
    assert compliance_bucket(70) == "good"
    assert compliance_bucket(69) == "regular"
    assert compliance_bucket(50) == "regular"
    assert compliance_bucket(49) == "poor"
    assert compliance_bucket(0) == "poor"


def test_vendor_compliance_is_mean_of_samples():
    metrics = aggregate_snapshots([
        _snapshot("e1", 5, {"v1": 4}),   # 80
        _snapshot("e2", 1, {"v1": 1}),   # 100
    ])

    [vendor] = metrics.vendor_data
    assert vendor.compliance == 90
    assert vendor.evaluations == 2
    assert vendor.completed_evaluations == 2
    assert vendor.pending_evaluations == 0
    assert metrics.compliance_distribution == {"excellent": 1, "good": 0, "regular": 0, "poor": 0}
    assert [v.id for v in metrics.top_performers] == ["v1"]


def test_global_completion_rate():
    statuses = {f"v{i}": ("completed" if i < 6 else "pending") for i in range(10)}
    metrics = aggregate_snapshots([_snapshot("e1", 1, {}, assignments=statuses)])
    assert metrics.global_completion_rate == 60
    assert metrics.evaluation_status_distribution == {"completed": 6, "pending": 4}


def test_no_assignments():
    metrics = aggregate_snapshots([])
    assert metrics.global_completion_rate == 0
    assert metrics.vendor_data == []
    assert metrics.top_performers == []
    assert metrics.compliance_distribution == {"excellent": 0, "good": 0, "regular": 0, "poor": 0}


def test_vendor_without_samples_is_pending():
    metrics = aggregate_snapshots([
        _snapshot("e1", 1, {"v1": 1}, assignments={"v1": "completed", "v2": "pending"}),
    ])

    by_id = {v.id: v for v in metrics.vendor_data}
    assert by_id["v2"].compliance is None
    assert by_id["v2"].evaluations == 0
    assert by_id["v2"].pending_evaluations == 1
    assert sum(metrics.compliance_distribution.values()) == 1
    assert [v.id for v in metrics.top_performers] == ["v1"]


def test_top_performers_are_ranked_and_limited():
    scores = {"a": 95, "b": 100, "c": 92, "d": 50}
    metrics = aggregate_snapshots([_snapshot("e1", 100, scores)], top_limit=2)
    assert [v.id for v in metrics.top_performers] == ["b", "a"]
    assert metrics.compliance_distribution["excellent"] == 3
    assert metrics.compliance_distribution["regular"] == 1


def test_compute_fleet_metrics_from_store(db, scenario, factory):
    pending_vendor = factory.vendor("Pending vendor")
    factory.assign(scenario["evaluation"], pending_vendor, AssignmentStatus.pending)

    metrics = compute_fleet_metrics(db)

    by_id = {v.id: v for v in metrics.vendor_data}
    assert by_id[scenario["vendor"].vendor_id].compliance == 33
    assert by_id[scenario["vendor"].vendor_id].name == "Vendor V"
    assert by_id[pending_vendor.vendor_id].compliance is None
    assert metrics.compliance_distribution["poor"] == 1
    assert metrics.global_completion_rate == 50
    assert metrics.top_performers == []
