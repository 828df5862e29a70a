"""Fleet-wide compliance metrics.

Each evaluation contributes one compliance sample per answering vendor; a
vendor's compliance is the mean of its samples, not a pooled weighted average.
Vendors with assignments but no samples have `compliance=None` (pending) and
are left out of the distribution and the ranking.
"""
# app/services/metrics.py
from collections import Counter
from dataclasses import dataclass, field

import numpy as np
from sqlalchemy.orm import Session

from supplier_eval.app.core.config import settings
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.services.compliance import round_half_up, score_snapshot
from supplier_eval.app.services.projections import EvaluationSnapshot, load_all_snapshots
from supplier_eval.db.models import AssignmentStatus

logger = get_logs_writer_logger(__name__)


@dataclass
class VendorMetrics:
    id: str
    name: str | None
    compliance: int | None
    evaluations: int
    completed_evaluations: int
    pending_evaluations: int


@dataclass
class FleetMetrics:
    vendor_data: list[VendorMetrics] = field(default_factory=list)
    compliance_distribution: dict[str, int] = field(default_factory=dict)
    top_performers: list[VendorMetrics] = field(default_factory=list)
    global_completion_rate: int = 0
    evaluation_status_distribution: dict[str, int] = field(default_factory=dict)


def compliance_bucket(compliance: int) -> str:
    if compliance >= 90:
        return "excellent"
    if compliance >= 70:
        return "good"
    if compliance >= 50:
        return "regular"
    return "poor"


def aggregate_snapshots(snapshots: list[EvaluationSnapshot], top_limit: int | None = None) -> FleetMetrics:
    if top_limit is None:
        top_limit = settings.TOP_PERFORMERS_LIMIT

    samples: dict[str, list[int]] = {}
    names: dict[str, str | None] = {}
    assigned: Counter = Counter()
    completed: Counter = Counter()
    statuses: Counter = Counter()

    for snapshot in snapshots:
        for a in snapshot.assignments:
            names.setdefault(a.vendor_id, a.vendor_name)
            samples.setdefault(a.vendor_id, [])
            assigned[a.vendor_id] += 1
            statuses[a.status] += 1
            if a.status == AssignmentStatus.completed.value:
                completed[a.vendor_id] += 1

        for entry in score_snapshot(snapshot):
            samples.setdefault(entry.vendor_id, []).append(entry.score_pct)

    vendor_data = []
    for vendor_id, vendor_samples in samples.items():
        compliance = round_half_up(float(np.mean(vendor_samples))) if vendor_samples else None
        vendor_data.append(VendorMetrics(
            id=vendor_id,
            name=names.get(vendor_id),
            compliance=compliance,
            evaluations=len(vendor_samples),
            completed_evaluations=completed[vendor_id],
            pending_evaluations=assigned[vendor_id] - completed[vendor_id],
        ))
    vendor_data.sort(key=lambda v: (v.name or "", v.id))

    distribution = {"excellent": 0, "good": 0, "regular": 0, "poor": 0}
    for v in vendor_data:
        if v.compliance is not None:
            distribution[compliance_bucket(v.compliance)] += 1

    top = sorted(
        (v for v in vendor_data if v.compliance is not None and v.compliance >= 90),
        key=lambda v: (-v.compliance, v.name or "", v.id),
    )[:top_limit]

    total_assigned = sum(assigned.values())
    total_completed = sum(completed.values())
    completion_rate = round_half_up(100 * total_completed / total_assigned) if total_assigned else 0

    return FleetMetrics(
        vendor_data=vendor_data,
        compliance_distribution=distribution,
        top_performers=top,
        global_completion_rate=completion_rate,
        evaluation_status_distribution=dict(statuses),
    )


def compute_fleet_metrics(db: Session) -> FleetMetrics:
    """Roll up compliance across all evaluations.

    Raises:
        DataIntegrity: Propagated from scoring any evaluation.
    """
    snapshots = load_all_snapshots(db)
    metrics = aggregate_snapshots(snapshots)
    logger.info(
        "Fleet metrics over %d evaluation(s), %d vendor(s), completion %d%%",
        len(snapshots), len(metrics.vendor_data), metrics.global_completion_rate,
    )
    return metrics
