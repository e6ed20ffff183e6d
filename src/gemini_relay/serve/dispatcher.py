"""Run a generation call and shape the HTTP response around it."""
from __future__ import annotations
import logging
import os
from typing import Protocol, Sequence

from fastapi.responses import JSONResponse

from gemini_relay.common.encoder import encode_file
from gemini_relay.common.schema import ContentUnit, ErrorOut, GenerateOut, TextUnit, UploadArtifact
from gemini_relay.serve.uploads import discard_on_exit

LOGGER = logging.getLogger("gemini_relay.serve.dispatch")

GENERATION_FAILED = "Failed to generate content"

class Generator(Protocol):
    def generate(self, units: Sequence[ContentUnit]) -> str: ...

def failure_response(error: Exception) -> JSONResponse:
    body = ErrorOut(error=GENERATION_FAILED, details=str(error))
    return JSONResponse(status_code=500, content=body.model_dump())

def dispatch(
    client: Generator,
    units: Sequence[ContentUnit],
    cleanup_path: str | os.PathLike[str] | None = None,
) -> JSONResponse:
    """
    Send ``units`` upstream as one prompt and wrap the outcome.

    Any upstream failure becomes a 500 carrying the error message. When
    ``cleanup_path`` is given the file is removed after the outcome is known,
    whether or not generation succeeded.
    """
    with discard_on_exit(cleanup_path):
        try:
            text = client.generate(units)
        except Exception as e:
            LOGGER.exception("Error generating content: %s", e)
            return failure_response(e)
        return JSONResponse(content=GenerateOut(output=text).model_dump())

def dispatch_upload(client: Generator, prompt: str, artifact: UploadArtifact) -> JSONResponse:
    """Prompt text followed by the encoded upload; the upload is always removed."""
    with discard_on_exit(artifact.path):
        try:
            file_unit = encode_file(artifact.path, artifact.mime_type)
        except OSError as e:
            LOGGER.error("Error reading uploaded file %s: %s", artifact.path, e)
            return failure_response(e)
        return dispatch(client, [TextUnit(prompt), file_unit])
