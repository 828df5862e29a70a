"""Default roles and permissions.

`ensure_default_roles` is idempotent and runs on startup and from `seed_users.py`.
"""
# app/services/bootstrap.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from supplier_eval.app.core.config import settings
from supplier_eval.app.core.logging import get_logs_writer_logger
from supplier_eval.db.models import Permission, Role

logger = get_logs_writer_logger(__name__)

DEFAULT_PERMISSIONS: dict[str, list[tuple[str, str]]] = {
    settings.ADMIN_ROLE_NAME: [
        ("evaluations", "read"), ("evaluations", "create"), ("evaluations", "update"),
        ("recommendations", "read"), ("recommendations", "create"), ("recommendations", "update"),
        ("metrics", "read"), ("vendors", "read"), ("users", "manage"),
    ],
    settings.EVALUATOR_ROLE_NAME: [
        ("evaluations", "read"), ("evaluations", "create"), ("evaluations", "update"),
        ("recommendations", "read"), ("recommendations", "create"), ("vendors", "read"),
    ],
    settings.SUPPLIER_ROLE_NAME: [
        ("evaluations", "respond"), ("recommendations", "read"), ("recommendations", "update"),
    ],
}


def get_or_create_permission(db: Session, module: str, action: str) -> Permission:
    perm = db.execute(
        select(Permission).where(Permission.module == module, Permission.action == action)
    ).scalar_one_or_none()
    if perm is None:
        perm = Permission(module=module, action=action)
        db.add(perm)
        db.flush()
    return perm


def ensure_default_roles(db: Session) -> dict[str, Role]:
    """Create missing default roles and grant their missing permissions."""
    roles = {}
    created = 0
    for role_name, pairs in DEFAULT_PERMISSIONS.items():
        role = db.execute(select(Role).where(Role.name == role_name)).scalar_one_or_none()
        if role is None:
            role = Role(name=role_name)
            db.add(role)
            created += 1
        granted = {(p.module, p.action) for p in role.permissions}
        for module, action in pairs:
            if (module, action) not in granted:
                role.permissions.append(get_or_create_permission(db, module, action))
        roles[role_name] = role

    db.commit()
    if created:
        logger.info("Created %d default role(s)", created)
    return roles
