# db/models/recommendation.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Integer, DateTime, Enum, ForeignKey, func
from supplier_eval.db import Base
import enum
import uuid


class RecommendationStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    implemented = "implemented"
    rejected = "rejected"


class Recommendation(Base):
    __tablename__ = "recommendations"

    recommendation_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # unique: at most one recommendation per response, enforced by the store
    response_id: Mapped[str] = mapped_column(String, ForeignKey("responses.response_id"), unique=True, nullable=False)
    question_id: Mapped[str] = mapped_column(String, ForeignKey("questions.question_id"), nullable=False, index=True)

    recommendation_text: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    status: Mapped[RecommendationStatus] = mapped_column(Enum(RecommendationStatus), default=RecommendationStatus.pending, nullable=False)
    action_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    response = relationship("Response", back_populates="recommendation")
    question = relationship("Question")
