"""Turn files on disk into inline-data content units."""
from __future__ import annotations
import base64
from pathlib import Path

from gemini_relay.common.schema import InlineDataUnit

def encode_file(file_path: str | Path, mime_type: str) -> InlineDataUnit:
    """
    Read a file and wrap its base64 encoding with the given MIME type.

    Args:
        file_path: File to read. Read errors propagate to the caller.
        mime_type: Declared MIME type, passed through as-is.
    """
    data = Path(file_path).read_bytes()
    return InlineDataUnit(data=base64.b64encode(data).decode("ascii"), mime_type=mime_type)
