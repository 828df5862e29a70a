# db/models/assignment.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Enum, ForeignKey, UniqueConstraint, func
from supplier_eval.db import Base
import enum
import uuid


class AssignmentStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class VendorAssignment(Base):
    __tablename__ = "evaluation_vendors"

    assignment_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    evaluation_id: Mapped[str] = mapped_column(String, ForeignKey("evaluations.evaluation_id"), nullable=False, index=True)
    vendor_id: Mapped[str] = mapped_column(String, ForeignKey("vendors.vendor_id"), nullable=False, index=True)
    status: Mapped[AssignmentStatus] = mapped_column(Enum(AssignmentStatus), default=AssignmentStatus.pending, nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    evaluation = relationship("Evaluation", back_populates="assignments")
    vendor = relationship("Vendor", back_populates="assignments")
    responses = relationship("Response", back_populates="assignment")

    __table_args__ = (
        UniqueConstraint("evaluation_id", "vendor_id", name="uq_evaluation_vendor"),
    )
