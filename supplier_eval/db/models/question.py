# db/models/question.py
from typing import Any
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Float, JSON
from supplier_eval.db import Base
import uuid


class Question(Base):
    __tablename__ = "questions"

    question_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    # None means "unset" and counts as 1
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    recommendation_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    # legacy: may carry {"recommendation_text": ...}
    options: Mapped[Any | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    evaluation_links = relationship("EvaluationQuestion", back_populates="question")
