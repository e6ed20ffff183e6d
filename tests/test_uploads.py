from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from gemini_relay.serve import uploads
from gemini_relay.serve.uploads import discard, discard_on_exit, save_upload


def _upload(data: bytes, content_type: str | None) -> UploadFile:
    headers = Headers({"content-type": content_type}) if content_type else None
    return UploadFile(file=io.BytesIO(data), filename="clip.wav", headers=headers)


def test_save_upload_unique_names(tmp_path: Path) -> None:
    a = save_upload(_upload(b"abc", "audio/wav"), tmp_path)
    b = save_upload(_upload(b"abc", "audio/wav"), tmp_path)
    assert a.path != b.path
    assert Path(a.path).read_bytes() == b"abc"
    assert a.mime_type == "audio/wav"
    assert a.size == 3


def test_save_upload_default_mime(tmp_path: Path) -> None:
    artifact = save_upload(_upload(b"x", None), tmp_path)
    assert artifact.mime_type == "application/octet-stream"


def test_save_upload_missing_dir_raises(tmp_path: Path) -> None:
    with pytest.raises(uploads.UploadError):
        save_upload(_upload(b"x", "audio/wav"), tmp_path / "missing")


def test_discard_on_exit_runs_on_error(tmp_path: Path) -> None:
    f = tmp_path / "tmp.bin"
    f.write_bytes(b"1")
    with pytest.raises(ValueError):
        with discard_on_exit(f):
            raise ValueError("boom")
    assert not f.exists()


def test_discard_on_exit_without_path() -> None:
    with discard_on_exit(None):
        pass


def test_discard_failure_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="gemini_relay.serve.uploads"):
        discard(tmp_path / "already-gone.bin")
    assert "Error deleting temporary file" in caplog.text
