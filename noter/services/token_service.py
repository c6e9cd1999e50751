"""
Creation and verification of the access and refresh JWTs.

Both tokens carry only the user id (`sub`); they are signed with separate
secrets and are never stored server-side.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import uuid4

import jwt

from noter.core.config import settings


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _encode(user_id: str, secret: str, expires_in_seconds: int) -> str:
    now = _now_utc()
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in_seconds)).timestamp()),
        "jti": str(uuid4()),
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str) -> Dict[str, Any]:
    payload = jwt.decode(
        token,
        key=secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["sub", "exp"]},
    )
    return payload


def create_access_token(user_id: str) -> str:
    """Short-lived bearer token, valid for ACCESS_TOKEN_EXPIRY_TIME seconds."""
    return _encode(user_id, settings.access_token_secret, settings.access_token_expiry_time)


def create_refresh_token(user_id: str) -> str:
    """Long-lived token sent back as the HTTP-only `token` cookie."""
    return _encode(user_id, settings.refresh_token_secret, settings.refresh_token_expiry_time)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and check signature/expiry. Raises `jwt.InvalidTokenError`.
    """
    return _decode(token, settings.access_token_secret)


def verify_refresh_token(token: str) -> Dict[str, Any]:
    return _decode(token, settings.refresh_token_secret)
