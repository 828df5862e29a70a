# db/models/evaluation.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Float, Integer, DateTime, Enum, ForeignKey, UniqueConstraint, func
from supplier_eval.db import Base
import enum
import uuid


class EvaluationStatus(str, enum.Enum):
    draft = "draft"
    in_progress = "in_progress"
    completed = "completed"
    archived = "archived"


class Evaluation(Base):
    __tablename__ = "evaluations"

    evaluation_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    created_by_user_id: Mapped[str | None] = mapped_column(String, ForeignKey("users.user_id"), nullable=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[EvaluationStatus] = mapped_column(Enum(EvaluationStatus), default=EvaluationStatus.draft, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by = relationship("User")
    question_links = relationship("EvaluationQuestion", back_populates="evaluation",
                                  cascade="all, delete-orphan", order_by="EvaluationQuestion.position")
    assignments = relationship("VendorAssignment", back_populates="evaluation", cascade="all, delete-orphan")
    responses = relationship("Response", back_populates="evaluation", cascade="all, delete-orphan")


class EvaluationQuestion(Base):
    __tablename__ = "evaluation_questions"

    evaluation_question_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    evaluation_id: Mapped[str] = mapped_column(String, ForeignKey("evaluations.evaluation_id"), nullable=False, index=True)
    question_id: Mapped[str] = mapped_column(String, ForeignKey("questions.question_id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # per-evaluation override of Question.weight
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)

    evaluation = relationship("Evaluation", back_populates="question_links")
    question = relationship("Question", back_populates="evaluation_links")

    __table_args__ = (
        UniqueConstraint("evaluation_id", "question_id", name="uq_evaluation_question"),
    )

    @property
    def effective_weight(self) -> float:
        if self.weight is not None:
            return self.weight
        if self.question is not None and self.question.weight is not None:
            return self.question.weight
        return 1.0
