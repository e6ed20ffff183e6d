"""Send one prompt (and optionally one file) to Gemini without the HTTP layer."""
from __future__ import annotations
import argparse
import logging
import mimetypes
import time

from gemini_relay.common.config import Settings, load_cfg
from gemini_relay.common.encoder import encode_file
from gemini_relay.common.logging_setup import setup_logging
from gemini_relay.common.schema import ContentUnit, TextUnit
from gemini_relay.serve.gemini_client import GeminiClient

LOGGER = logging.getLogger("gemini_relay.local.prompt")

def build_units(text: str, file_path: str | None = None, mime_type: str | None = None) -> list[ContentUnit]:
    """
    Prompt text, followed by the encoded file when one is given.

    The MIME type is guessed from the file name when not supplied.
    """
    units: list[ContentUnit] = [TextUnit(text)]
    if file_path:
        mime = mime_type or mimetypes.guess_type(file_path)[0] or "application/octet-stream"
        units.append(encode_file(file_path, mime))
    return units

def run_prompt(settings: Settings, units: list[ContentUnit]) -> tuple[str, int]:
    """Return the model output and the call latency in milliseconds."""
    client = GeminiClient(settings)
    try:
        start = time.time()
        text = client.generate(units)
        latency_ms = int((time.time() - start) * 1000)
    finally:
        client.close()
    return text, latency_ms

def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Send a prompt to Gemini")
    ap.add_argument("--text", required=True, help="Prompt text")
    ap.add_argument("--file", help="File to attach after the prompt")
    ap.add_argument("--mime-type", help="MIME type of --file (guessed if omitted)")
    ap.add_argument("--cfg", help="YAML with model/temperature/top_p/max_tokens/timeout")
    args = ap.parse_args(argv)

    settings = Settings.from_env()
    setup_logging(settings.log_level)
    if args.cfg:
        settings = settings.with_overrides(load_cfg(args.cfg))

    text, latency_ms = run_prompt(settings, build_units(args.text, args.file, args.mime_type))
    LOGGER.info("Latency: %sms | model=%s", latency_ms, settings.model)
    print(text)

if __name__ == "__main__":
    main()
