# app/schemas/user.py
from pydantic import BaseModel
from typing import List


class UserRoleOut(BaseModel):
    user_id: str
    role: str | None = None
    vendor_id: str | None = None
    is_admin: bool
    permissions: List[str]


class PermissionCheckIn(BaseModel):
    module: str | None = None
    action: str | None = None
