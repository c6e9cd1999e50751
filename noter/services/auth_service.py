"""
Account logic: signup, login, refresh, logout, password reset, profile and deletion.
"""
import logging
from typing import Any, Dict, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type
from pymongo.errors import DuplicateKeyError

from noter.core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from noter.repositories import user_repo as repo
from noter.services import note_service
from noter.services.token_service import (
    create_access_token,
    create_refresh_token,
    verify_refresh_token,
)

_log = logging.getLogger("noter.auth")

ph = PasswordHasher(time_cost=2, memory_cost=51200, parallelism=2, hash_len=32, salt_len=16, type=Type.ID)

USER_NOT_FOUND = "User does not exist. Please check if the entered email address is correct."
EMAIL_TAKEN = "User already exists with the entered email address"


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def public_user(u: Dict[str, Any], *, with_email: bool = False) -> Dict[str, Any]:
    out = {"id": str(u["_id"]), "name": u.get("name")}
    if with_email:
        out["email_address"] = u.get("email_address")
    return out


def signup(*, name: str, email_address: str, password: str) -> str:
    """
    Register a user. Conflict when the email is taken; does not log in.
    """
    if repo.find_user_by_email(email_address):
        raise ConflictError(EMAIL_TAKEN)
    try:
        user_id = repo.insert_user(name=name, email_address=email_address, password_hash=hash_password(password))
    except DuplicateKeyError:
        # lost a race against a concurrent signup
        raise ConflictError(EMAIL_TAKEN)
    _log.info("User signed up id=%s", user_id)
    return user_id


def authenticate(*, email_address: str, password: str) -> Dict[str, Any]:
    """
    Check credentials and issue an access token plus a refresh token.
    """
    u = repo.find_user_by_email(email_address)
    if not u:
        raise NotFoundError(USER_NOT_FOUND)
    if not verify_password(password, u.get("password_hash") or ""):
        raise UnauthorizedError("Email address or password is incorrect.")

    if ph.check_needs_rehash(u["password_hash"]):
        repo.set_password_hash(str(u["_id"]), hash_password(password))

    user_id = str(u["_id"])
    return {
        "token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
        "user": public_user(u),
    }


def refresh(refresh_token: Optional[str]) -> Dict[str, Any]:
    """
    New access token from the refresh cookie.
    Unauthorized when the cookie is absent or the user is gone; Forbidden when
    the token does not verify (the caller must clear the cookie).
    """
    if not refresh_token:
        raise UnauthorizedError()
    try:
        payload = verify_refresh_token(refresh_token)
    except jwt.InvalidTokenError as e:
        _log.info("Rejected refresh token: %s", e)
        raise ForbiddenError()

    u = repo.get_user_by_id(payload["sub"])
    if not u:
        raise UnauthorizedError()
    return {"token": create_access_token(str(u["_id"])), "user": public_user(u)}


def logout(refresh_token: Optional[str]) -> None:
    if not refresh_token:
        raise UnauthorizedError()


def reset_password(*, email_address: str, password: str) -> bool:
    """
    Store a new hash for `password`. An empty password leaves the account as is.
    Returns True when the hash changed.
    """
    u = repo.find_user_by_email(email_address)
    if not u:
        raise NotFoundError(USER_NOT_FOUND)
    if password == "":
        return False
    repo.set_password_hash(str(u["_id"]), hash_password(password))
    _log.info("Password reset id=%s", u["_id"])
    return True


def get_user(user_id: str) -> Dict[str, Any]:
    u = repo.get_user_by_id(user_id)
    if not u:
        raise NotFoundError("User not found.")
    return public_user(u, with_email=True)


def update_user(
    user_id: str,
    *,
    name: Optional[str] = None,
    email_address: Optional[str] = None,
    password: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Partial profile update; None or blank values are left untouched.
    """
    u = repo.get_user_by_id(user_id)
    if not u:
        raise NotFoundError("User not found.")

    fields: Dict[str, Any] = {}
    if name and name.strip():
        fields["name"] = name.strip()
    if email_address and email_address.strip():
        email_address = email_address.strip().lower()
        other = repo.find_user_by_email(email_address)
        if other and str(other["_id"]) != str(u["_id"]):
            raise ConflictError(EMAIL_TAKEN)
        fields["email_address"] = email_address
    if password:
        fields["password_hash"] = hash_password(password)

    try:
        updated = repo.update_user(user_id, fields)
    except DuplicateKeyError:
        raise ConflictError(EMAIL_TAKEN)
    if not updated:
        raise NotFoundError("User not found.")
    return public_user(updated, with_email=True)


def delete_user(user_id: str) -> None:
    """
    Delete the account together with all of its notes and their attachments.
    """
    if not repo.get_user_by_id(user_id):
        raise NotFoundError("User not found.")
    removed = note_service.purge_notes(user_id)
    repo.delete_user(user_id)
    _log.info("User deleted id=%s notes_removed=%s", user_id, removed)
