"""Caller session tokens sent as `Authorization: Bearer <token>`.

A token is `<b64url(claims json)>.<b64url(hmac-sha256)>`. Claims carry the
caller's user id in `sub` and the expiry in `exp`. The session provider issues
tokens; the API only verifies them.
"""
# app/services/tokens.py
import base64
import hashlib
import hmac
import json
import time
from typing import Optional

from supplier_eval.app.core.config import settings


def _b64u_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode()


def _b64u_decode(s: str) -> bytes:
    return base64.urlsafe_b64decode(s + "=" * (-len(s) % 4))


def _digest(raw: bytes) -> bytes:
    return hmac.new(settings.SECRET_KEY.encode(), raw, hashlib.sha256).digest()


def sign_token(claims: dict, ttl_sec: int = settings.SESSION_TOKEN_TTL) -> str:
    """Sign claims, adding `exp` = now + `ttl_sec`."""
    raw = json.dumps(claims | {"exp": int(time.time()) + int(ttl_sec)},
                     separators=(",", ":"), ensure_ascii=False).encode()
    return f"{_b64u_encode(raw)}.{_b64u_encode(_digest(raw))}"


def issue_caller_token(user_id: str, ttl_sec: int = settings.SESSION_TOKEN_TTL) -> str:
    return sign_token({"sub": user_id}, ttl_sec)


def verify_token(token: str) -> Optional[dict]:
    """Check signature and expiry.

    Returns:
        dict | None: The claims, or None for a malformed, forged or expired token.
    """
    try:
        raw_b64, sig_b64 = token.split(".", 1)
        raw = _b64u_decode(raw_b64)
        if not hmac.compare_digest(_b64u_decode(sig_b64), _digest(raw)):
            return None
        claims = json.loads(raw.decode())
    except (ValueError, AttributeError, UnicodeDecodeError):
        return None

    if not isinstance(claims, dict) or claims.get("exp", 0) < int(time.time()):
        return None
    return claims


def caller_id_from_token(token: str) -> Optional[str]:
    claims = verify_token(token)
    sub = claims.get("sub") if claims else None
    return str(sub) if sub else None
