"""
Mongo bootstrap: JSON-schema validators and indexes for `user` and `note`.
Runs at startup; failures are logged and never abort the app.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from noter.infrastructure.db.mongo import get_db

_log = logging.getLogger("noter.mongo.bootstrap")

USER_VALIDATOR: Dict[str, Any] = {
    "bsonType": "object",
    "required": ["name", "email_address", "password_hash", "created_at", "updated_at"],
    "properties": {
        "name": {"bsonType": "string", "minLength": 1},
        "email_address": {"bsonType": "string", "minLength": 3, "description": "lowercase"},
        "password_hash": {"bsonType": "string"},
        "created_at": {"bsonType": "date"},
        "updated_at": {"bsonType": "date"},
    },
    "additionalProperties": True,
}

NOTE_VALIDATOR: Dict[str, Any] = {
    "bsonType": "object",
    "required": ["user_id", "type", "heading", "content", "images", "is_favourite", "created_at", "updated_at"],
    "properties": {
        "user_id": {"bsonType": "objectId"},
        "type": {"bsonType": "string", "enum": ["text", "audio"]},
        "heading": {"bsonType": "string", "minLength": 1},
        "content": {"bsonType": "string"},
        "audio_recording": {"bsonType": ["string", "null"]},
        "audio_duration": {"bsonType": ["double", "int", "null"], "minimum": 0},
        "images": {"bsonType": "array", "items": {"bsonType": "string"}},
        "is_favourite": {"bsonType": "bool"},
        "created_at": {"bsonType": "date"},
        "updated_at": {"bsonType": "date"},
    },
    "additionalProperties": True,
}

INDEXES: Dict[str, List[Dict[str, Any]]] = {
    "user": [
        {"keys": [("email_address", ASCENDING)], "name": "uniq_email_address", "unique": True},
    ],
    "note": [
        {"keys": [("user_id", ASCENDING), ("created_at", DESCENDING)], "name": "user_created_at"},
    ],
}


def _collmod_or_create(name: str, validator: Dict[str, Any]) -> None:
    db = get_db()
    try:
        if name not in db.list_collection_names():
            db.create_collection(name, validator={"$jsonSchema": validator})
        else:
            db.command({
                "collMod": name,
                "validator": {"$jsonSchema": validator},
                "validationLevel": "moderate",
            })
    except PyMongoError as e:
        # Some deployments refuse collMod without privileges; keep going unvalidated
        _log.warning("Could not apply validator on '%s': %s", name, e)


def ensure_indexes() -> None:
    db = get_db()
    for name, indexes in INDEXES.items():
        coll = db[name]
        for ix in indexes:
            options = dict(ix)
            keys = options.pop("keys")
            try:
                coll.create_index(keys, **options)
            except PyMongoError as e:
                _log.warning("Could not create index on '%s' (%s): %s", name, keys, e)


def ensure_collections() -> None:
    """
    Make sure collections, validators and indexes exist.
    """
    _collmod_or_create("user", USER_VALIDATOR)
    _collmod_or_create("note", NOTE_VALIDATOR)
    ensure_indexes()
