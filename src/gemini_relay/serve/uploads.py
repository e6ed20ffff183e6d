"""Storage of multipart uploads for the duration of one request."""
from __future__ import annotations
import logging
import os
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fastapi import UploadFile

from gemini_relay.common.schema import UploadArtifact

LOGGER = logging.getLogger("gemini_relay.serve.uploads")

DEFAULT_MIME_TYPE = "application/octet-stream"

class UploadError(RuntimeError):
    """An uploaded file could not be written to the upload directory."""

def save_upload(upload: UploadFile, upload_dir: Path) -> UploadArtifact:
    """
    Copy an uploaded file to a uniquely named file in ``upload_dir``.

    The caller owns the returned artifact and must remove it, normally via
    ``discard_on_exit``.
    """
    path = Path(upload_dir) / uuid.uuid4().hex
    try:
        upload.file.seek(0)
        with open(path, "xb") as out:
            shutil.copyfileobj(upload.file, out)
        size = path.stat().st_size
    except OSError as e:
        path.unlink(missing_ok=True)
        raise UploadError(str(e)) from e
    mime_type = upload.content_type or DEFAULT_MIME_TYPE
    LOGGER.debug("Stored upload %r as %s (%s, %d bytes)", upload.filename, path, mime_type, size)
    return UploadArtifact(path=str(path), mime_type=mime_type, size=size)

def discard(path: str | os.PathLike[str]) -> None:
    """Delete a temporary file; failures are logged and never raised."""
    try:
        os.unlink(path)
    except OSError as e:
        LOGGER.error("Error deleting temporary file %s: %s", path, e)

@contextmanager
def discard_on_exit(path: str | os.PathLike[str] | None) -> Iterator[None]:
    """Remove ``path`` (if given) once the block exits, by any route."""
    try:
        yield
    finally:
        if path is not None:
            discard(path)
