import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from noter.core.config import settings
from noter.core.exceptions import NotFoundError, PayloadTooLargeError, ValidationFailed
from noter.services import storage

KEY = "images/" + "ab" * 16 + "-photo.png"


def _upload(filename, content, content_type):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def test_key_shapes():
    assert storage.is_valid_key(KEY)
    assert not storage.is_valid_key("images/../secret")
    assert not storage.is_valid_key("other/" + "ab" * 16 + "-x.png")
    assert not storage.is_valid_key("")


def test_path_for_unknown_key():
    with pytest.raises(NotFoundError):
        storage.path_for_key("../../etc/passwd")


def test_url_and_reference_roundtrip():
    url = storage.url_for_key("http://localhost:4000/", KEY)
    assert url == f"http://localhost:4000/data/uploads/{KEY}"
    assert storage.key_from_reference(url) == KEY
    assert storage.key_from_reference(KEY) == KEY
    assert storage.key_from_reference("/data/uploads/" + KEY) == KEY


def test_original_filename():
    assert storage.original_filename(KEY) == "photo.png"
    assert storage.original_filename("audio/" + "cd" * 16 + "-my-memo.webm") == "my-memo.webm"


def test_save_upload_sanitises_name(upload_dir):
    key = storage.save_upload(_upload("../../My Photo!.png", b"data", "image/png"), "images")
    assert storage.is_valid_key(key)
    assert key.endswith("-My_Photo_.png")
    assert (upload_dir / key).read_bytes() == b"data"


def test_save_upload_keeps_extension_of_non_ascii_name(upload_dir):
    key = storage.save_upload(_upload("照片.png", b"data", "image/png"), "images")
    assert storage.is_valid_key(key)
    assert storage.original_filename(key) == "_.png"


class _BrokenStream(io.BytesIO):
    def read(self, size=-1):
        if self.tell() > 0:
            raise OSError("connection reset")
        return super().read(4)


def test_save_upload_removes_partial_file_on_read_error(upload_dir):
    upload = _upload("memo.webm", b"partial-audio", "audio/webm")
    upload.file = _BrokenStream(b"partial-audio")
    with pytest.raises(OSError):
        storage.save_upload(upload, "audio")
    assert list((upload_dir / "audio").iterdir()) == []
    assert upload.file.closed


def test_save_upload_checks_content_type(upload_dir):
    with pytest.raises(ValidationFailed):
        storage.save_upload(_upload("a.png", b"data", "audio/webm"), "images")


def test_save_upload_size_limit(upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_mb", 1)
    big = b"x" * (1024 * 1024 + 1)
    with pytest.raises(PayloadTooLargeError):
        storage.save_upload(_upload("big.webm", big, "audio/webm"), "audio")
    assert list((upload_dir / "audio").iterdir()) == []


def test_delete_key_is_best_effort(upload_dir):
    storage.ensure_upload_dirs()
    (upload_dir / KEY).write_bytes(b"x")
    assert storage.delete_key(KEY) is True
    assert storage.delete_key(KEY) is False
    assert storage.delete_key("not a key") is False
    assert storage.delete_key(None) is False
