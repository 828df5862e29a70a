"""Read-only projections of an evaluation assembled per request.

Scoring and metrics work on these frozen views keyed by id instead of walking
live ORM relationships in both directions.
"""
# app/services/projections.py
from dataclasses import dataclass, field
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from supplier_eval.app.core.errors import DataIntegrity, NotFound, storage_guard
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.app.services.answers import NormalizedAnswer, normalize_answer
from supplier_eval.db.models import Evaluation, EvaluationQuestion, VendorAssignment

logger = get_logs_writer_logger(__name__)


@dataclass(frozen=True)
class QuestionView:
    question_id: str
    question_text: str
    category: str | None
    weight: float
    recommendation_text: str | None = None
    options: Any = None


@dataclass(frozen=True)
class ResponseView:
    response_id: str
    question_id: str
    vendor_id: str
    assignment_id: str | None
    answer: NormalizedAnswer
    score: float


@dataclass(frozen=True)
class AssignmentView:
    assignment_id: str
    vendor_id: str
    vendor_name: str | None
    status: str


@dataclass(frozen=True)
class EvaluationSnapshot:
    evaluation_id: str
    title: str
    status: str
    questions: Mapping[str, QuestionView] = field(default_factory=dict)
    responses: tuple[ResponseView, ...] = ()
    assignments: tuple[AssignmentView, ...] = ()

    @property
    def total_weight(self) -> float:
        return sum(q.weight for q in self.questions.values())


def _evaluation_query():
    return select(Evaluation).options(
        selectinload(Evaluation.question_links).selectinload(EvaluationQuestion.question),
        selectinload(Evaluation.responses),
        selectinload(Evaluation.assignments).selectinload(VendorAssignment.vendor),
    )


def snapshot_from_model(evaluation: Evaluation) -> EvaluationSnapshot:
    """Project a loaded evaluation.

    Raises:
        DataIntegrity: If a question link points at a missing question.
    """
    questions = {}
    for link in evaluation.question_links:
        q = link.question
        if q is None:
            logger.error(
                "Evaluation %s links missing question %s (link %s)",
                evaluation.evaluation_id, link.question_id, link.evaluation_question_id,
            )
            raise DataIntegrity(f"Evaluation {evaluation.evaluation_id} links a missing question")
        questions[link.question_id] = QuestionView(
            question_id=link.question_id,
            question_text=q.question_text,
            category=q.category,
            weight=link.effective_weight,
            recommendation_text=q.recommendation_text,
            options=q.options,
        )

    responses = tuple(
        ResponseView(
            response_id=r.response_id,
            question_id=r.question_id,
            vendor_id=r.vendor_id,
            assignment_id=r.assignment_id,
            answer=normalize_answer(r.answer, r.response_value),
            score=r.score or 0.0,
        )
        for r in evaluation.responses
    )

    assignments = tuple(
        AssignmentView(
            assignment_id=a.assignment_id,
            vendor_id=a.vendor_id,
            vendor_name=a.vendor.name if a.vendor is not None else None,
            status=a.status.value,
        )
        for a in evaluation.assignments
    )

    return EvaluationSnapshot(
        evaluation_id=evaluation.evaluation_id,
        title=evaluation.title,
        status=evaluation.status.value,
        questions=questions,
        responses=responses,
        assignments=assignments,
    )


def load_evaluation_snapshot(db: Session, evaluation_id: str) -> EvaluationSnapshot:
    """Load one evaluation with its questions, responses and assignments.

    Raises:
        NotFound: If the evaluation does not exist.
        DataIntegrity: If a question link points at a missing question.
    """
    with storage_guard():
        evaluation = db.execute(
            _evaluation_query().where(Evaluation.evaluation_id == evaluation_id)
        ).scalar_one_or_none()
    if evaluation is None:
        raise NotFound(f"Evaluation {evaluation_id} not found")
    return snapshot_from_model(evaluation)


def load_all_snapshots(db: Session) -> list[EvaluationSnapshot]:
    with storage_guard():
        evaluations = db.execute(
            _evaluation_query().order_by(Evaluation.created_at, Evaluation.evaluation_id)
        ).scalars().all()
    return [snapshot_from_model(e) for e in evaluations]
