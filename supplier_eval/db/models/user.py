# db/models/user.py
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Table, UniqueConstraint, func
from supplier_eval.db import Base
import uuid


role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String, ForeignKey("roles.role_id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String, ForeignKey("permissions.permission_id", ondelete="CASCADE"), primary_key=True),
)


class Permission(Base):
    __tablename__ = "permissions"

    permission_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    module: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)

    roles = relationship("Role", secondary=role_permissions, back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("module", "action", name="uq_permission_module_action"),
    )


class Role(Base):
    __tablename__ = "roles"

    role_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    permissions = relationship("Permission", secondary=role_permissions, back_populates="roles")
    users = relationship("User", back_populates="role")


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    # nullable so a broken role link can exist and be resolved fail-closed
    role_id: Mapped[str | None] = mapped_column(String, ForeignKey("roles.role_id"), nullable=True, index=True)
    # null for admins and evaluators, required for suppliers
    vendor_id: Mapped[str | None] = mapped_column(String, ForeignKey("vendors.vendor_id"), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    role = relationship("Role", back_populates="users")
    vendor = relationship("Vendor", back_populates="users")
