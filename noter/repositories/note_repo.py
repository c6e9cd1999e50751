"""Repository for the `note` collection.

Every lookup is scoped by the owning user id.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from noter.infrastructure.db.mongo import get_db
from noter.repositories.user_repo import to_object_id

COLLECTION = "note"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _owned(note_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(note_id)
    uid = to_object_id(user_id)
    if oid is None or uid is None:
        return None
    return {"_id": oid, "user_id": uid}


def insert_note(doc: Dict[str, Any]) -> str:
    """Insert a note with defaults and return its id (str)."""
    data = dict(doc)
    now = _now()
    data["user_id"] = to_object_id(data["user_id"])
    data.setdefault("type", "text")
    data.setdefault("audio_recording", None)
    data.setdefault("audio_duration", None)
    data.setdefault("images", [])
    data.setdefault("is_favourite", False)
    data.setdefault("created_at", now)
    data["updated_at"] = now
    res = get_db()[COLLECTION].insert_one(data)
    return str(res.inserted_id)


def find_duplicate(
    *, user_id: str, type: str, heading: str, content: str, audio_duration: Optional[float]
) -> Optional[Dict[str, Any]]:
    uid = to_object_id(user_id)
    if uid is None:
        return None
    return get_db()[COLLECTION].find_one({
        "user_id": uid,
        "type": type,
        "heading": heading,
        "content": content,
        "audio_duration": audio_duration,
    })


def get_note(note_id: str, user_id: str) -> Optional[Dict[str, Any]]:
    query = _owned(note_id, user_id)
    if query is None:
        return None
    return get_db()[COLLECTION].find_one(query)


def list_notes(user_id: str, *, favourites_only: bool = False, oldest_first: bool = False) -> List[Dict[str, Any]]:
    """User notes sorted by created_at (newest first unless `oldest_first`)."""
    uid = to_object_id(user_id)
    if uid is None:
        return []
    query: Dict[str, Any] = {"user_id": uid}
    if favourites_only:
        query["is_favourite"] = True
    direction = ASCENDING if oldest_first else DESCENDING
    # _id breaks ties between notes created within the same millisecond
    cursor = get_db()[COLLECTION].find(query).sort([("created_at", direction), ("_id", direction)])
    return list(cursor)


def count_notes(user_id: str) -> int:
    uid = to_object_id(user_id)
    if uid is None:
        return 0
    return get_db()[COLLECTION].count_documents({"user_id": uid})


def _find_and_update(note_id: str, user_id: str, update: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    query = _owned(note_id, user_id)
    if query is None:
        return None
    update.setdefault("$set", {})["updated_at"] = _now()
    return get_db()[COLLECTION].find_one_and_update(
        query, update, return_document=ReturnDocument.AFTER
    )


def update_note(note_id: str, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return _find_and_update(note_id, user_id, {"$set": dict(fields)})


def push_image(note_id: str, user_id: str, key: str) -> Optional[Dict[str, Any]]:
    return _find_and_update(note_id, user_id, {"$push": {"images": key}})


def pull_image(note_id: str, user_id: str, key: str) -> Optional[Dict[str, Any]]:
    return _find_and_update(note_id, user_id, {"$pull": {"images": key}})


def delete_note(note_id: str, user_id: str) -> bool:
    query = _owned(note_id, user_id)
    if query is None:
        return False
    return get_db()[COLLECTION].delete_one(query).deleted_count == 1


def delete_notes_for_user(user_id: str) -> int:
    uid = to_object_id(user_id)
    if uid is None:
        return 0
    return get_db()[COLLECTION].delete_many({"user_id": uid}).deleted_count
