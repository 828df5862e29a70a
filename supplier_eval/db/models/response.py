# db/models/response.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Float, DateTime, Enum, ForeignKey, UniqueConstraint, func
from supplier_eval.db import Base
import enum
import uuid


class AnswerValue(str, enum.Enum):
    yes = "Yes"
    no = "No"
    not_applicable = "N/A"


class Response(Base):
    __tablename__ = "responses"

    response_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    evaluation_id: Mapped[str] = mapped_column(String, ForeignKey("evaluations.evaluation_id"), nullable=False, index=True)
    question_id: Mapped[str] = mapped_column(String, ForeignKey("questions.question_id"), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(String, ForeignKey("vendors.vendor_id"), nullable=False, index=True)
    assignment_id: Mapped[str | None] = mapped_column(String, ForeignKey("evaluation_vendors.assignment_id"), nullable=True, index=True)

    answer: Mapped[AnswerValue | None] = mapped_column(Enum(AnswerValue), nullable=True)
    response_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    evaluation = relationship("Evaluation", back_populates="responses")
    question = relationship("Question")
    vendor = relationship("Vendor")
    assignment = relationship("VendorAssignment", back_populates="responses")
    recommendation = relationship("Recommendation", back_populates="response", uselist=False)

    __table_args__ = (
        UniqueConstraint("evaluation_id", "question_id", "vendor_id", name="uq_response_per_vendor_question"),
    )
