"""Identity & role resolution for authenticated callers.

Every other service receives a `CallerIdentity` (or the resolver itself)
explicitly instead of looking up roles on its own. Once the caller is known,
resolution fails closed: a missing role, a broken vendor link or a storage
error while reading them yields an identity with no permissions that is not
an administrator. An unreachable store during the caller lookup itself is
`Transient`, not a logout.
"""
# app/services/identity.py
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from supplier_eval.app.core.config import settings
from supplier_eval.app.core.errors import Transient, Unauthenticated, storage_guard
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.db.models import Role, User, Vendor

logger = get_logs_writer_logger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    role: str | None = None
    vendor_id: str | None = None
    permissions: frozenset[tuple[str, str]] = field(default_factory=frozenset)
    is_admin: bool = False

    @property
    def is_supplier(self) -> bool:
        return self.role == settings.SUPPLIER_ROLE_NAME and self.vendor_id is not None

    def can(self, module: str, action: str) -> bool:
        return (module, action) in self.permissions


class IdentityResolver:
    """Resolves a caller id into role, vendor affiliation and permissions."""

    def __init__(self, db: Session):
        self.db = db

    def _load_user(self, caller_id: str) -> User | None:
        with storage_guard():
            return self.db.execute(
                select(User)
                .options(selectinload(User.role).selectinload(Role.permissions))
                .where(User.user_id == caller_id)
            ).scalar_one_or_none()

    def resolve(self, caller_id: str | None) -> CallerIdentity:
        """Resolve the caller.

        Raises:
            Unauthenticated: No caller id, or no active user behind it.
            Transient: The store is unreachable while looking the caller up.
        """
        if not caller_id:
            raise Unauthenticated("No active session")

        user = self._load_user(caller_id)
        if user is None or not user.is_active:
            raise Unauthenticated("No active session")

        denied = CallerIdentity(user_id=user.user_id)

        try:
            role = user.role
            if role is None:
                logger.warning("User %s has no role (role_id=%s)", user.user_id, user.role_id)
                return denied

            vendor_id = None
            if user.vendor_id is not None:
                vendor = self.db.get(Vendor, user.vendor_id)
                if vendor is None:
                    logger.warning("User %s links to missing vendor %s", user.user_id, user.vendor_id)
                    return CallerIdentity(user_id=user.user_id, role=role.name)
                vendor_id = vendor.vendor_id

            if role.name == settings.SUPPLIER_ROLE_NAME and vendor_id is None:
                logger.warning("Supplier %s has no vendor affiliation", user.user_id)
                return CallerIdentity(user_id=user.user_id, role=role.name)

            permissions = frozenset((p.module, p.action) for p in role.permissions)
        except SQLAlchemyError as e:
            logger.error("Role resolution failed for %s: %s", user.user_id, e)
            self.db.rollback()
            return denied

        return CallerIdentity(
            user_id=user.user_id,
            role=role.name,
            vendor_id=vendor_id,
            permissions=permissions,
            is_admin=role.name == settings.ADMIN_ROLE_NAME,
        )

    def has_permission(self, caller_id: str | None, module: str, action: str) -> bool:
        """Check a (module, action) permission; any failure means denied."""
        try:
            return self.resolve(caller_id).can(module, action)
        except (Unauthenticated, Transient) as e:
            logger.info("Permission %s:%s denied for %s: %s", module, action, caller_id, e.reason)
            return False
