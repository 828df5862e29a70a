"""Weighted compliance per vendor for a single evaluation.

`score_snapshot` is pure and works on an `EvaluationSnapshot`;
`compute_compliance` loads the snapshot first. Vendors that were assigned
but never answered get no entry at all, which is different from scoring 0.
"""
# app/services/compliance.py
from collections import defaultdict
from dataclasses import dataclass
import math

from sqlalchemy.orm import Session

from supplier_eval.app.core.errors import DataIntegrity
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.services.projections import EvaluationSnapshot, load_evaluation_snapshot

logger = get_logs_writer_logger(__name__)


@dataclass(frozen=True)
class VendorCompliance:
    vendor_id: str
    score_pct: int
    response_count: int


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (33.5 -> 34), unlike `round`."""
    return int(math.floor(value + 0.5))


def score_snapshot(snapshot: EvaluationSnapshot) -> list[VendorCompliance]:
    total_weight = snapshot.total_weight
    if total_weight <= 0:
        return []

    by_vendor: dict[str, list] = defaultdict(list)
    for r in snapshot.responses:
        if r.question_id not in snapshot.questions:
            logger.error(
                "Response %s (vendor %s) references question %s outside evaluation %s",
                r.response_id, r.vendor_id, r.question_id, snapshot.evaluation_id,
            )
            raise DataIntegrity(f"Response {r.response_id} does not belong to evaluation {snapshot.evaluation_id}")
        by_vendor[r.vendor_id].append(r)

    result = []
    for vendor_id in sorted(by_vendor):
        responses = by_vendor[vendor_id]
        score_sum = sum(r.score for r in responses)
        result.append(VendorCompliance(
            vendor_id=vendor_id,
            score_pct=round_half_up(100 * score_sum / total_weight),
            response_count=len(responses),
        ))
    return result


def compute_compliance(db: Session, evaluation_id: str) -> list[VendorCompliance]:
    """Compute the weighted compliance percentage of every answering vendor.

    Args:
        db: The DB session.
        evaluation_id: The evaluation to score.

    Returns:
        list[VendorCompliance]: One entry per vendor with at least one response,
        ordered by vendor id. Empty when the evaluation's total weight is 0.

    Raises:
        NotFound: If the evaluation does not exist.
        DataIntegrity: If a response points at a question outside the evaluation.
    """
    return score_snapshot(load_evaluation_snapshot(db, evaluation_id))
