"""Saving a vendor's answers for an evaluation.

One response per (evaluation, question, vendor): resubmitting updates the row,
and an answer that turns satisfactory retracts its pending recommendation.
A final submission completes the assignment and derives recommendations.
"""
# app/services/responses.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from supplier_eval.app.core.errors import Forbidden, InvalidArgument, NotFound, Transient, storage_guard
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.services.answers import AnswerKind, normalize_answer
from supplier_eval.app.services.identity import CallerIdentity
from supplier_eval.app.services.recommendations import (
    DerivationResult,
    derive_recommendations,
    retract_pending_recommendation,
)
from supplier_eval.db.models import (
    AssignmentStatus,
    Evaluation, EvaluationQuestion, EvaluationStatus,
    Response,
    VendorAssignment,
)

logger = get_logs_writer_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SubmissionResult:
    assignment_id: str
    saved: int
    final: bool
    retracted: list[str] = field(default_factory=list)
    derived: DerivationResult | None = None


def submit_responses(db: Session, caller: CallerIdentity, evaluation_id: str,
                     items: Iterable, final: bool = False) -> SubmissionResult:
    """Upsert the caller's vendor answers.

    Args:
        db: The DB session.
        caller: Resolved caller; must be a supplier assigned to the evaluation.
        evaluation_id: The evaluation being answered.
        items: Objects with `question_id`, `response_value` and optional `notes`.
        final: Complete the assignment and derive recommendations.

    Returns:
        SubmissionResult: Number of saved answers and, when final, the derivation result.
    """
    if not caller.is_supplier:
        raise Forbidden("Only suppliers can answer evaluations")

    with storage_guard():
        evaluation = db.execute(
            select(Evaluation)
            .options(selectinload(Evaluation.question_links).selectinload(EvaluationQuestion.question))
            .where(Evaluation.evaluation_id == evaluation_id)
        ).scalar_one_or_none()
        if evaluation is None:
            raise NotFound(f"Evaluation {evaluation_id} not found")

        assignment = db.execute(
            select(VendorAssignment).where(
                VendorAssignment.evaluation_id == evaluation_id,
                VendorAssignment.vendor_id == caller.vendor_id,
            )
        ).scalar_one_or_none()
    if assignment is None:
        raise Forbidden("Evaluation is not assigned to your vendor")
    if evaluation.status == EvaluationStatus.archived:
        raise InvalidArgument("Evaluation is archived", reason="evaluation_archived")

    items = list(items)
    links = {link.question_id: link for link in evaluation.question_links}
    for item in items:
        if item.question_id not in links:
            raise InvalidArgument(
                f"Question {item.question_id} is not part of this evaluation",
                reason="question_not_in_evaluation",
            )
        if item.response_value is None or not str(item.response_value).strip():
            raise InvalidArgument(f"Empty answer for question {item.question_id}", reason="empty_answer")

    with storage_guard():
        existing = {
            r.question_id: r for r in db.execute(
                select(Response).where(
                    Response.evaluation_id == evaluation_id,
                    Response.vendor_id == caller.vendor_id,
                )
            ).scalars()
        }

    now = utcnow()
    retracted = []
    for item in items:
        answer = normalize_answer(None, item.response_value)
        response = existing.get(item.question_id)
        if response is None:
            response = Response(
                evaluation_id=evaluation_id,
                question_id=item.question_id,
                vendor_id=caller.vendor_id,
                created_at=now,
            )
            db.add(response)
            existing[item.question_id] = response

        response.assignment_id = assignment.assignment_id
        response.answer = answer.as_answer_value()
        response.response_value = str(item.response_value).strip()
        response.score = links[item.question_id].effective_weight if answer.kind == AnswerKind.YES else 0.0
        response.notes = getattr(item, "notes", None)
        response.updated_at = now

        if response.response_id is not None and not answer.is_unsatisfactory:
            rec_id = retract_pending_recommendation(db, response)
            if rec_id is not None:
                retracted.append(rec_id)

    if final:
        assignment.status = AssignmentStatus.completed
        assignment.completed_at = now
    elif assignment.status == AssignmentStatus.pending:
        assignment.status = AssignmentStatus.in_progress

    try:
        with storage_guard():
            db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Concurrent answer submission for %s / %s: %s", evaluation_id, caller.vendor_id, e)
        raise Transient("Answers were saved concurrently, retry the submission", reason="concurrent_update") from e

    logger.info(
        "Saved %d answer(s) for evaluation %s, vendor %s (final=%s)",
        len(items), evaluation_id, caller.vendor_id, final,
    )

    result = SubmissionResult(
        assignment_id=assignment.assignment_id, saved=len(items), final=final, retracted=retracted,
    )
    if final:
        result.derived = derive_recommendations(db, assignment.assignment_id)
    return result
