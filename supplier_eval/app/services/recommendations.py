"""Derivation and listing of remediation recommendations.

A recommendation exists for a response only while the answer is unsatisfactory
(No / N/A) and the question yields remediation text. When the answer turns
satisfactory, a recommendation nobody has started on (still `pending`) is
retracted; one already in progress or closed is kept as history. Texts are
resolved from `Question.recommendation_text` first, then from the legacy
`options` field. Creation is insert-if-absent on `recommendations.response_id`.
"""
# app/services/recommendations.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from typing import Any, Mapping

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from supplier_eval.app.core.config import settings
from supplier_eval.app.core.errors import DataIntegrity, Forbidden, NotFound, storage_guard
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.services.answers import AnswerKind, normalize_answer
from supplier_eval.app.services.identity import CallerIdentity
from supplier_eval.db.models import (
    Question,
    Recommendation, RecommendationStatus,
    Response,
    VendorAssignment,
)

logger = get_logs_writer_logger(__name__)

LEGACY_TEXT_KEYS = ("recommendation_text", "recommendationText")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _legacy_text(options: Any) -> str | None:
    """Read remediation text from the legacy structured field.

    Raises:
        ValueError: If `options` is a string that is not valid JSON.
    """
    if options is None:
        return None
    if isinstance(options, str):
        options = json.loads(options)
    if not isinstance(options, dict):
        return None
    for key in LEGACY_TEXT_KEYS:
        value = options.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def resolve_remediation_text(recommendation_text: str | None, options: Any = None) -> str | None:
    """Resolve remediation text: canonical column, then the legacy options key, then nothing."""
    if recommendation_text and recommendation_text.strip():
        return recommendation_text.strip()
    try:
        return _legacy_text(options)
    except ValueError:
        logger.warning("Unparseable legacy options, ignoring: %r", options)
        return None


def priority_for(category: str | None, answer_kind: AnswerKind | None = None,
                 priorities: Mapping[str, int] | None = None,
                 severities: Mapping[str, int] | None = None) -> int:
    """Priority (1 is most urgent): category mapping, then answer severity, then the default."""
    if priorities is None:
        priorities = settings.RECOMMENDATION_PRIORITIES
    if severities is None:
        severities = settings.ANSWER_SEVERITY_PRIORITIES
    if category:
        mapped = priorities.get(category.strip().lower())
        if mapped is not None:
            return mapped
    if answer_kind is not None:
        mapped = severities.get(answer_kind.value)
        if mapped is not None:
            return mapped
    return settings.DEFAULT_RECOMMENDATION_PRIORITY


@dataclass
class DerivationError:
    response_id: str
    reason: str
    detail: str = ""


@dataclass
class DerivationResult:
    assignment_id: str
    recommendations: list[Recommendation] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    without_recommendation: list[str] = field(default_factory=list)
    retracted: list[str] = field(default_factory=list)
    errors: list[DerivationError] = field(default_factory=list)


def _existing_recommendation(db: Session, response_id: str) -> Recommendation | None:
    return db.execute(
        select(Recommendation).where(Recommendation.response_id == response_id)
    ).scalar_one_or_none()


def retract_pending_recommendation(db: Session, response: Response) -> str | None:
    """Delete the response's recommendation if it is still pending.

    Returns:
        str | None: The deleted recommendation id.
    """
    rec = _existing_recommendation(db, response.response_id)
    if rec is None or rec.status != RecommendationStatus.pending:
        return None
    db.delete(rec)
    logger.info(
        "Retracted recommendation %s: response %s is no longer unsatisfactory",
        rec.recommendation_id, response.response_id,
    )
    return rec.recommendation_id


def _derive_one(db: Session, response: Response, answer_kind: AnswerKind,
                priorities) -> tuple[Recommendation | None, bool]:
    question = response.question
    if question is None:
        logger.error(
            "Response %s (assignment %s) has no question %s",
            response.response_id, response.assignment_id, response.question_id,
        )
        raise DataIntegrity(f"Response {response.response_id} has no question")

    existing = _existing_recommendation(db, response.response_id)
    if existing is not None:
        return existing, False

    text = resolve_remediation_text(question.recommendation_text, question.options)
    if text is None:
        return None, False

    now = utcnow()
    rec = Recommendation(
        response_id=response.response_id,
        question_id=question.question_id,
        recommendation_text=text,
        priority=priority_for(question.category, answer_kind, priorities),
        status=RecommendationStatus.pending,
        created_at=now,
        updated_at=now,
    )
    try:
        with db.begin_nested():
            db.add(rec)
    except IntegrityError:
        # a concurrent derivation inserted first; keep its row
        winner = db.execute(
            select(Recommendation).where(Recommendation.response_id == response.response_id)
        ).scalar_one_or_none()
        if winner is None:
            raise
        logger.info("Recommendation for response %s already created concurrently", response.response_id)
        return winner, False
    return rec, True


def derive_recommendations(db: Session, assignment_id: str,
                           priorities: Mapping[str, int] | None = None) -> DerivationResult:
    """Create recommendations for the unsatisfactory answers of one vendor assignment.

    Idempotent: responses that already have a recommendation keep it. Responses
    saved without an assignment link are linked to this assignment, and pending
    recommendations of answers that are now satisfactory are retracted.

    Args:
        db: The DB session.
        assignment_id: The vendor assignment (evaluation x vendor).
        priorities: Category -> priority mapping; defaults to settings.

    Returns:
        DerivationResult: The final recommendation set plus per-item errors.

    Raises:
        NotFound: If the assignment does not exist.
    """
    with storage_guard():
        assignment = db.get(VendorAssignment, assignment_id)
        if assignment is None:
            raise NotFound(f"Assignment {assignment_id} not found")

        responses = db.execute(
            select(Response)
            .options(selectinload(Response.question))
            .where(or_(
                Response.assignment_id == assignment_id,
                and_(
                    Response.assignment_id.is_(None),
                    Response.evaluation_id == assignment.evaluation_id,
                    Response.vendor_id == assignment.vendor_id,
                ),
            ))
            .order_by(Response.created_at, Response.response_id)
        ).scalars().all()

    result = DerivationResult(assignment_id=assignment_id)
    for response in responses:
        if response.assignment_id is None:
            logger.info("Linking response %s to assignment %s", response.response_id, assignment_id)
            response.assignment_id = assignment_id

        answer = normalize_answer(response.answer, response.response_value)
        if not answer.is_unsatisfactory:
            retracted = retract_pending_recommendation(db, response)
            if retracted is not None:
                result.retracted.append(retracted)
            continue
        try:
            rec, created = _derive_one(db, response, answer.kind, priorities)
        except DataIntegrity as e:
            result.errors.append(DerivationError(response.response_id, e.reason, e.detail))
            continue
        except SQLAlchemyError as e:
            logger.error("Derivation failed for response %s: %s", response.response_id, e)
            result.errors.append(DerivationError(response.response_id, "storage_error", str(e)))
            continue

        if rec is None:
            result.without_recommendation.append(response.response_id)
            continue
        result.recommendations.append(rec)
        if created:
            result.created.append(rec.recommendation_id)

    with storage_guard():
        db.commit()

    logger.info(
        "Derived for assignment %s: %d total, %d new, %d without text, %d retracted, %d errors",
        assignment_id, len(result.recommendations), len(result.created),
        len(result.without_recommendation), len(result.retracted), len(result.errors),
    )
    return result


def recommendation_view(rec: Recommendation) -> dict:
    response = rec.response
    question = rec.question
    answer = normalize_answer(response.answer, response.response_value) if response is not None else None
    return {
        "recommendation_id": rec.recommendation_id,
        "response_id": rec.response_id,
        "question_id": rec.question_id,
        "question_text": question.question_text if question is not None else None,
        "recommendation_text": rec.recommendation_text,
        "answer": answer.text if answer is not None else None,
        "priority": rec.priority,
        "status": rec.status.value,
        "action_plan": rec.action_plan,
        "due_date": rec.due_date,
        "created_at": rec.created_at,
        "updated_at": rec.updated_at,
        "completed_at": rec.completed_at,
        "evaluation_id": response.evaluation_id if response is not None else None,
        "vendor_id": response.vendor_id if response is not None else None,
    }


def list_recommendation_groups(db: Session, caller: CallerIdentity) -> list[dict]:
    """List recommendations grouped by evaluation, scoped to the caller.

    Administrators see every group; suppliers only their vendor's.

    Raises:
        Forbidden: For callers that are neither.
    """
    if not (caller.is_admin or caller.is_supplier):
        raise Forbidden("Only administrators and suppliers can view recommendations")

    q = (
        select(Recommendation)
        .join(Recommendation.response)
        .options(
            selectinload(Recommendation.response).selectinload(Response.evaluation),
            selectinload(Recommendation.question),
        )
    )
    if not caller.is_admin:
        q = q.join(Response.assignment).where(VendorAssignment.vendor_id == caller.vendor_id)

    with storage_guard():
        recs = db.execute(q).scalars().all()

    groups: dict[str, dict] = {}
    for rec in recs:
        evaluation = rec.response.evaluation
        if evaluation is None:
            logger.error("Recommendation %s: response %s has no evaluation", rec.recommendation_id, rec.response_id)
            raise DataIntegrity(f"Recommendation {rec.recommendation_id} has no evaluation")
        group = groups.setdefault(evaluation.evaluation_id, {
            "evaluation_id": evaluation.evaluation_id,
            "evaluation_title": evaluation.title,
            "recommendations": [],
        })
        group["recommendations"].append(rec)

    out = []
    for group in sorted(groups.values(), key=lambda g: (g["evaluation_title"], g["evaluation_id"])):
        items = sorted(group["recommendations"], key=lambda r: (r.priority, r.created_at or datetime.min, r.recommendation_id))
        out.append(group | {"recommendations": [recommendation_view(r) for r in items]})
    return out


def migrate_legacy_recommendation_text(db: Session) -> dict:
    """Copy legacy `options` remediation text into `Question.recommendation_text`.

    Only questions with an empty canonical column are touched; the legacy key
    is left in place.

    Returns:
        dict: {"updated": [question ids], "errors": [{"question_id", "error"}]}
    """
    with storage_guard():
        questions = db.execute(
            select(Question).where(
                or_(Question.recommendation_text.is_(None), Question.recommendation_text == ""),
                Question.options.is_not(None),
            )
        ).scalars().all()

    updated, errors = [], []
    for question in questions:
        try:
            text = _legacy_text(question.options)
        except ValueError:
            logger.warning("Question %s: legacy options are not valid JSON", question.question_id)
            errors.append({"question_id": question.question_id, "error": "unparseable_options"})
            continue
        if text:
            question.recommendation_text = text
            updated.append(question.question_id)

    with storage_guard():
        db.commit()
    logger.info("Migrated legacy recommendation text for %d question(s)", len(updated))
    return {"updated": updated, "errors": errors}
