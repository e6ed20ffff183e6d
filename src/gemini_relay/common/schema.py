"""Content units sent upstream, upload artifacts, and the JSON envelopes returned to clients."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel

@dataclass(frozen=True)
class TextUnit:
    """Plain text piece of a prompt."""
    text: str

    def to_part(self) -> dict[str, Any]:
        return {"text": self.text}

@dataclass(frozen=True)
class InlineDataUnit:
    """Base64-encoded file content with its MIME type."""
    data: str
    mime_type: str

    def to_part(self) -> dict[str, Any]:
        return {"inlineData": {"data": self.data, "mimeType": self.mime_type}}

ContentUnit = Union[TextUnit, InlineDataUnit]

@dataclass(frozen=True)
class UploadArtifact:
    """An uploaded file stored on disk for the lifetime of one request."""
    path: str
    mime_type: str
    size: int

class GenerateTextIn(BaseModel):
    prompt: str | None = None

class GenerateOut(BaseModel):
    output: str

class ErrorOut(BaseModel):
    error: str
    details: str | None = None
