"""
Note use cases: creation with attachments, listing, partial updates, image
management and deletion.

Attachment files are written before the document changes and removed
best-effort afterwards: a file that cannot be unlinked is logged and skipped,
it never blocks the document operation.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fastapi import UploadFile

from noter.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from noter.repositories import note_repo as repo
from noter.services import storage
from noter.services.pagination import Page, paginate
from noter.services.richtext import to_plain_text

_log = logging.getLogger("noter.notes")

NOTE_NOT_FOUND = "Note not found"


def _attachments(doc: Dict[str, Any]) -> List[str]:
    keys = list(doc.get("images") or [])
    if doc.get("audio_recording"):
        keys.insert(0, doc["audio_recording"])
    return keys


def present(doc: Dict[str, Any], base_url: str) -> Dict[str, Any]:
    """
    API view of a note: attachment keys become absolute URLs and the image
    count is derived from the image list.
    """
    images = list(doc.get("images") or [])
    audio = doc.get("audio_recording")
    return {
        "id": str(doc["_id"]),
        "user_id": str(doc["user_id"]),
        "type": doc.get("type", "text"),
        "heading": doc.get("heading", ""),
        "content": doc.get("content", ""),
        "audio_recording": storage.url_for_key(base_url, audio) if audio else None,
        "audio_duration": doc.get("audio_duration"),
        "images": [storage.url_for_key(base_url, key) for key in images],
        "image_count": len(images),
        "is_favourite": bool(doc.get("is_favourite")),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at"),
    }


def create_note(
    *,
    user_id: str,
    type: str,
    heading: str,
    content: str,
    audio_duration: Optional[float] = None,
    audio_file: Optional[UploadFile] = None,
    image_files: Optional[List[UploadFile]] = None,
) -> str:
    heading = (heading or "").strip()
    if not heading:
        raise ValidationFailed("Missing heading")
    if type == "text" and not (content or "").strip():
        raise ValidationFailed("Missing content")
    if type == "audio" and audio_file is None:
        raise ValidationFailed("Missing audio recording")

    written: List[str] = []
    try:
        audio_key = None
        if audio_file is not None:
            audio_key = storage.save_upload(audio_file, "audio")
            written.append(audio_key)
        image_keys: List[str] = []
        for image in image_files or []:
            key = storage.save_upload(image, "images")
            written.append(key)
            image_keys.append(key)

        duplicate = repo.find_duplicate(
            user_id=user_id, type=type, heading=heading, content=content or "", audio_duration=audio_duration
        )
        if duplicate:
            raise ConflictError("Note with the given details already exists")

        note_id = repo.insert_note({
            "user_id": user_id,
            "type": type,
            "heading": heading,
            "content": content or "",
            "audio_recording": audio_key,
            "audio_duration": audio_duration,
            "images": image_keys,
        })
    except Exception:
        storage.delete_keys(written)
        raise
    _log.info("Note created id=%s user=%s attachments=%s", note_id, user_id, len(written))
    return note_id


def get_note(note_id: str, user_id: str) -> Dict[str, Any]:
    doc = repo.get_note(note_id, user_id)
    if not doc:
        raise NotFoundError(NOTE_NOT_FOUND)
    return doc


def has_notes(user_id: str) -> bool:
    return repo.count_notes(user_id) > 0


def _matches(doc: Dict[str, Any], needle: str) -> bool:
    if needle in (doc.get("heading") or "").lower():
        return True
    return needle in to_plain_text(doc.get("content") or "").lower()


def list_notes(
    user_id: str,
    *,
    search: Optional[str] = None,
    favourites_only: bool = False,
    oldest_first: bool = False,
    page: int = 1,
    per_page: Optional[int] = None,
) -> Page[Dict[str, Any]]:
    """
    Filtered, sorted and paginated notes of a user.
    Search matches heading or the plain text of the content, case-insensitively.
    """
    docs = repo.list_notes(user_id, favourites_only=favourites_only, oldest_first=oldest_first)
    needle = (search or "").strip().lower()
    if needle:
        docs = [d for d in docs if _matches(d, needle)]
    return paginate(docs, page=page, per_page=per_page)


def update_note(
    note_id: str,
    user_id: str,
    *,
    heading: Optional[str] = None,
    content: Optional[str] = None,
    is_favourite: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Partial update; None and blank strings mean "not provided".
    """
    fields: Dict[str, Any] = {}
    if heading is not None and heading.strip() != "":
        fields["heading"] = heading.strip()
    if content is not None and content != "":
        fields["content"] = content
    if is_favourite is not None:
        fields["is_favourite"] = bool(is_favourite)

    updated = repo.update_note(note_id, user_id, fields)
    if not updated:
        raise NotFoundError(NOTE_NOT_FOUND)
    return updated


def upload_image(note_id: str, user_id: str, image: UploadFile) -> Dict[str, Any]:
    key = storage.save_upload(image, "images")
    try:
        updated = repo.push_image(note_id, user_id, key)
    except Exception:
        storage.delete_key(key)
        raise
    if not updated:
        storage.delete_key(key)
        raise NotFoundError(NOTE_NOT_FOUND)
    return updated


def delete_image(note_id: str, user_id: str, reference: str) -> Dict[str, Any]:
    """
    Detach one image, given the URL the API returned for it or its bare key.
    """
    doc = get_note(note_id, user_id)
    key = storage.key_from_reference(reference or "")
    if key not in (doc.get("images") or []):
        raise NotFoundError("Image not found")
    storage.delete_key(key)
    updated = repo.pull_image(note_id, user_id, key)
    if not updated:
        raise NotFoundError(NOTE_NOT_FOUND)
    return updated


def delete_note(note_id: str, user_id: str) -> None:
    doc = get_note(note_id, user_id)
    storage.delete_keys(_attachments(doc))
    repo.delete_note(note_id, user_id)
    _log.info("Note deleted id=%s user=%s", note_id, user_id)


def purge_notes(user_id: str) -> int:
    """Remove every note of the user with its files; returns how many were removed."""
    docs = repo.list_notes(user_id)
    for doc in docs:
        storage.delete_keys(_attachments(doc))
    return repo.delete_notes_for_user(user_id)


def delete_all_notes(user_id: str) -> int:
    if not has_notes(user_id):
        raise NotFoundError(NOTE_NOT_FOUND)
    return purge_notes(user_id)


def audio_recording(note_id: str, user_id: str) -> Tuple[Path, str]:
    """Path and download filename of the note's audio recording."""
    doc = repo.get_note(note_id, user_id)
    key = (doc or {}).get("audio_recording")
    if not key:
        raise NotFoundError("Audio recording not found")
    path = storage.path_for_key(key)
    if not path.is_file():
        raise NotFoundError("Audio recording not found")
    return path, storage.original_filename(key)
