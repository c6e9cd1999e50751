"""
Repository for the `user` collection.
"""
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument

from noter.infrastructure.db.mongo import get_db

COLLECTION = "user"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """ObjectId for `value`, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def find_user_by_email(email_address: str) -> Optional[Dict[str, Any]]:
    return get_db()[COLLECTION].find_one({"email_address": email_address.lower()})


def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return get_db()[COLLECTION].find_one({"_id": oid})


def insert_user(*, name: str, email_address: str, password_hash: str) -> str:
    """
    Insert a user and return its id as a string.
    Raises `pymongo.errors.DuplicateKeyError` when the unique email index rejects it.
    """
    now = _now()
    data = {
        "name": name.strip(),
        "email_address": email_address.lower(),
        "password_hash": password_hash,
        "created_at": now,
        "updated_at": now,
    }
    res = get_db()[COLLECTION].insert_one(data)
    return str(res.inserted_id)


def update_user(user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Apply `fields` with $set (stamping updated_at) and return the new document."""
    oid = to_object_id(user_id)
    if oid is None:
        return None
    set_ops = dict(fields)
    set_ops["updated_at"] = _now()
    return get_db()[COLLECTION].find_one_and_update(
        {"_id": oid},
        {"$set": set_ops},
        return_document=ReturnDocument.AFTER,
    )


def set_password_hash(user_id: str, password_hash: str) -> None:
    update_user(user_id, {"password_hash": password_hash})


def delete_user(user_id: str) -> bool:
    oid = to_object_id(user_id)
    if oid is None:
        return False
    res = get_db()[COLLECTION].delete_one({"_id": oid})
    return res.deleted_count == 1
