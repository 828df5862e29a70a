"""Caller identity lookups: role details and single permission checks.
"""
# app/routers/auth.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from supplier_eval.app.core.errors import InvalidArgument
from supplier_eval.app.core.security import get_caller, get_identity_resolver, get_optional_caller_id
from supplier_eval.app.schemas.user import PermissionCheckIn, UserRoleOut
from supplier_eval.app.services.identity import CallerIdentity, IdentityResolver

router = APIRouter()


@router.get("/api/auth/user-role", response_model=UserRoleOut)
def user_role(caller: CallerIdentity = Depends(get_caller)):
    return UserRoleOut(
        user_id=caller.user_id,
        role=caller.role,
        vendor_id=caller.vendor_id,
        is_admin=caller.is_admin,
        permissions=sorted(f"{module}:{action}" for module, action in caller.permissions),
    )


@router.post("/api/auth/check-permission")
def check_permission(
    payload: PermissionCheckIn,
    caller_id: str | None = Depends(get_optional_caller_id),
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    """Check one (module, action) permission for the caller.

    Returns:
        200 {"has_permission": true} or 403 {"has_permission": false}.

    Errors:
        400: `module` or `action` missing.
    """
    if not payload.module or not payload.action:
        raise InvalidArgument("module and action are required", reason="missing_fields")

    if not resolver.has_permission(caller_id, payload.module, payload.action):
        return JSONResponse(status_code=403, content={"has_permission": False, "detail": "Permission denied"})
    return {"has_permission": True}
