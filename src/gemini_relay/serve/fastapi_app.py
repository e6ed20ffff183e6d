"""FastAPI relay in front of Gemini.

Endpoints:
- GET /health
- POST /generate-text            { "prompt": "..." }
- POST /generate-from-image      multipart: image, prompt?
- POST /generate-from-document   multipart: document, prompt?
- POST /generate-from-audio      multipart: audio
"""
from __future__ import annotations
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gemini_relay import __version__
from gemini_relay.common.config import Settings
from gemini_relay.common.logging_setup import setup_logging
from gemini_relay.common.schema import ErrorOut, GenerateTextIn, TextUnit
from gemini_relay.serve.dispatcher import Generator, dispatch, dispatch_upload
from gemini_relay.serve.gemini_client import GeminiClient
from gemini_relay.serve.uploads import UploadError, save_upload

LOGGER = logging.getLogger("gemini_relay.serve.app")

DEFAULT_IMAGE_PROMPT = "Describe the image"
DEFAULT_DOCUMENT_PROMPT = "Analyze this document"
AUDIO_INSTRUCTION = "Transcribe or analyze the following audio:"

# 400 message per route when its required input is absent or unusable
MISSING_INPUT = {
    "/generate-text": "Prompt is required for text generation.",
    "/generate-from-image": "No image file uploaded.",
    "/generate-from-document": "No file uploaded",
    "/generate-from-audio": "No audio file uploaded.",
}

def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content=ErrorOut(error=message).model_dump(exclude_none=True))

def _missing(upload: UploadFile | None) -> bool:
    return upload is None or not upload.filename

def get_client(request: Request) -> Generator:
    return request.app.state.client

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def create_app(settings: Settings | None = None, client: Generator | None = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        client: Upstream client; a ``GeminiClient`` is built from ``settings``
            when omitted and closed on shutdown.
    """
    settings = settings or Settings.from_env()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    owned = client is None
    if client is None:
        client = GeminiClient(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        LOGGER.info("Relaying to model %s; uploads in %s", settings.model, settings.upload_dir)
        if not settings.api_key:
            LOGGER.warning("GEMINI_API_KEY is not set; generation requests will fail")
        yield
        if owned:
            client.close()

    app = FastAPI(title="Gemini Relay", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.client = client

    @app.exception_handler(UploadError)
    async def _upload_failed(request: Request, exc: UploadError) -> JSONResponse:
        LOGGER.error("Failed to store upload: %s", exc)
        body = ErrorOut(error="Failed to store upload", details=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump())

    @app.exception_handler(RequestValidationError)
    async def _invalid_input(request: Request, exc: RequestValidationError) -> JSONResponse:
        # non-string prompt, non-object or broken JSON, text sent in a file
        # field, or a file part without a filename
        message = MISSING_INPUT.get(request.url.path)
        if message is None:
            return await request_validation_exception_handler(request, exc)
        LOGGER.info("Rejected %s: %s", request.url.path, [e.get("type") for e in exc.errors()])
        return _bad_request(message)

    @app.get("/health")
    def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
        return {"status": "ok", "model": settings.model}

    @app.post("/generate-text")
    def generate_text(
        body: GenerateTextIn | None = None,
        client: Generator = Depends(get_client),
    ) -> JSONResponse:
        if body is None or not body.prompt:
            return _bad_request(MISSING_INPUT["/generate-text"])
        return dispatch(client, [TextUnit(body.prompt)])

    @app.post("/generate-from-image")
    def generate_from_image(
        image: UploadFile | None = File(None),
        prompt: str | None = Form(None),
        client: Generator = Depends(get_client),
        settings: Settings = Depends(get_settings),
    ) -> JSONResponse:
        if _missing(image):
            return _bad_request(MISSING_INPUT["/generate-from-image"])
        artifact = save_upload(image, settings.upload_dir)
        return dispatch_upload(client, prompt or DEFAULT_IMAGE_PROMPT, artifact)

    @app.post("/generate-from-document")
    def generate_from_document(
        document: UploadFile | None = File(None),
        prompt: str | None = Form(None),
        client: Generator = Depends(get_client),
        settings: Settings = Depends(get_settings),
    ) -> JSONResponse:
        if _missing(document):
            return _bad_request(MISSING_INPUT["/generate-from-document"])
        artifact = save_upload(document, settings.upload_dir)
        return dispatch_upload(client, prompt or DEFAULT_DOCUMENT_PROMPT, artifact)

    @app.post("/generate-from-audio")
    def generate_from_audio(
        audio: UploadFile | None = File(None),
        client: Generator = Depends(get_client),
        settings: Settings = Depends(get_settings),
    ) -> JSONResponse:
        if _missing(audio):
            return _bad_request(MISSING_INPUT["/generate-from-audio"])
        artifact = save_upload(audio, settings.upload_dir)
        return dispatch_upload(client, AUDIO_INSTRUCTION, artifact)

    return app

def build_app() -> FastAPI:
    """Factory for ``uvicorn --factory``: logging plus settings from the environment."""
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    return create_app(settings)
