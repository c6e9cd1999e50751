"""Local-disk attachment storage.

Attachments are referenced by an opaque relative key such as
`images/3f2c...-photo.png`. Keys are what the `note` documents store; they are
turned into public URLs on the way out and resolved back through
`key_from_reference` / `path_for_key`, never by string surgery on file paths.
"""
from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path, PurePosixPath
from typing import Literal
from urllib.parse import quote, unquote, urlparse

from fastapi import UploadFile

from noter.core.config import settings
from noter.core.exceptions import NotFoundError, PayloadTooLargeError, ValidationFailed

_log = logging.getLogger("noter.storage")

Kind = Literal["audio", "images"]

KINDS: tuple[str, ...] = ("audio", "images")
CONTENT_TYPE_PREFIX = {"audio": "audio/", "images": "image/"}
CHUNK_SIZE = 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_KEY_PATTERN = re.compile(r"^(audio|images)/[0-9a-f]{32}-[A-Za-z0-9._-]+$")


def upload_root() -> Path:
    return Path(settings.upload_dir)


def ensure_upload_dirs() -> Path:
    root = upload_root()
    for kind in KINDS:
        (root / kind).mkdir(parents=True, exist_ok=True)
    return root


def _safe_name(filename: str | None) -> str:
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    # leading dots only, so the extension survives
    name = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    return name or "file"


def is_valid_key(key: str) -> bool:
    return bool(key) and _KEY_PATTERN.match(key) is not None


def path_for_key(key: str) -> Path:
    """On-disk path of an attachment key. Unknown key shapes are NotFound."""
    if not is_valid_key(key):
        raise NotFoundError("Attachment not found")
    return upload_root() / key


def original_filename(key: str) -> str:
    """Name the file was uploaded with (the key minus its unique prefix)."""
    name = PurePosixPath(key).name
    _, _, original = name.partition("-")
    return original or name


def url_for_key(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}{settings.static_prefix_normalized}/{quote(key)}"


def key_from_reference(reference: str) -> str:
    """
    Attachment key from either a URL previously returned by the API or a bare key.
    """
    path = unquote(urlparse(reference).path if "://" in reference else reference)
    prefix = settings.static_prefix_normalized.rstrip("/") + "/"
    if path.startswith(prefix):
        path = path[len(prefix):]
    return path.lstrip("/")


def save_upload(file: UploadFile, kind: Kind) -> str:
    """
    Stream an upload to `<upload_dir>/<kind>/` and return its key.
    The content type must match the kind (audio/* or image/*).
    A partially written file is removed when the copy fails.
    """
    try:
        content_type = file.content_type or ""
        if not content_type.startswith(CONTENT_TYPE_PREFIX[kind]):
            raise ValidationFailed(f"Invalid content type: {content_type or 'unknown'}")

        key = f"{kind}/{uuid.uuid4().hex}-{_safe_name(file.filename)}"
        final_path = ensure_upload_dirs() / key
        max_bytes = settings.max_upload_bytes

        total = 0
        try:
            with final_path.open("wb") as handle:
                while True:
                    chunk = file.file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total += len(chunk)
                    if total > max_bytes:
                        raise PayloadTooLargeError()
                    handle.write(chunk)
        except Exception:
            final_path.unlink(missing_ok=True)
            raise
    finally:
        file.file.close()
    _log.info("Stored attachment key=%s bytes=%s", key, total)
    return key


def delete_key(key: str | None) -> bool:
    """
    Best-effort removal of an attachment. Returns False (and logs) on failure.
    """
    if not key:
        return False
    try:
        path = path_for_key(key)
        if path.exists():
            path.unlink()
            return True
        _log.warning("Attachment already missing key=%s", key)
    except NotFoundError:
        _log.warning("Refusing to delete unknown attachment key=%s", key)
    except OSError as e:
        _log.warning("Could not delete attachment key=%s: %s", key, e)
    return False


def delete_keys(keys: list[str]) -> int:
    return sum(1 for key in keys if delete_key(key))
