"""
Reusable router dependencies (FastAPI Depends).

- Authentication: validates the bearer access token and yields the user id.
- Keep this layer thin: no business logic here.
"""
from typing import Optional

import jwt
from fastapi import Header, Request

from noter.core.exceptions import ForbiddenError, UnauthorizedError
from noter.services.token_service import verify_access_token


def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> str:
    """Unauthorized without a bearer token, Forbidden when it does not verify."""
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError()
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise UnauthorizedError()
    try:
        payload = verify_access_token(token)
    except jwt.InvalidTokenError:
        raise ForbiddenError()
    return str(payload["sub"])


def ensure_self(requested_id: Optional[str], user_id: str) -> str:
    """A user may only address their own account and notes."""
    if requested_id and requested_id != user_id:
        raise ForbiddenError()
    return user_id


def base_url(request: Request) -> str:
    """Scheme and host of the current request, used to build attachment URLs."""
    return str(request.base_url).rstrip("/")
