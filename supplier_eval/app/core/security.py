# app/core/security.py
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from supplier_eval.app.core.errors import Forbidden, Unauthenticated
from supplier_eval.app.services.identity import CallerIdentity, IdentityResolver
from supplier_eval.app.services.tokens import caller_id_from_token
from supplier_eval.db.session import get_db


def get_caller_id(authorization: str | None = Header(None)) -> str:
    if not authorization:
        raise Unauthenticated("Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated("Missing bearer token")
    caller_id = caller_id_from_token(token.strip())
    if caller_id is None:
        raise Unauthenticated("Invalid or expired session")
    return caller_id


def get_identity_resolver(db: Session = Depends(get_db)) -> IdentityResolver:
    return IdentityResolver(db)


def get_caller(caller_id: str = Depends(get_caller_id),
               resolver: IdentityResolver = Depends(get_identity_resolver)) -> CallerIdentity:
    return resolver.resolve(caller_id)


def require_admin(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
    if not caller.is_admin:
        raise Forbidden("Administrator role required")
    return caller


def get_optional_caller_id(authorization: str | None = Header(None)) -> str | None:
    try:
        return get_caller_id(authorization)
    except Unauthenticated:
        return None
