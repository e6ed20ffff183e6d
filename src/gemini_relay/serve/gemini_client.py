"""Client for the Gemini ``generateContent`` REST endpoint."""
from __future__ import annotations
import logging
from typing import Any, Sequence

import httpx

from gemini_relay.common.config import Settings
from gemini_relay.common.schema import ContentUnit

LOGGER = logging.getLogger("gemini_relay.serve.upstream")

class UpstreamError(RuntimeError):
    """The upstream service could not produce text for a prompt."""

def _error_message(r: httpx.Response) -> str:
    try:
        return r.json()["error"]["message"]
    except Exception:
        return r.text[:200] or r.reason_phrase

def extract_text(data: dict[str, Any]) -> str:
    """
    Join the text parts of the first candidate.

    Raises:
        UpstreamError: No candidate or no text, e.g. a blocked prompt.
    """
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason")
        if reason:
            raise UpstreamError(f"Prompt was blocked: {reason}")
        raise UpstreamError("Upstream returned no candidates")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [p["text"] for p in parts if isinstance(p.get("text"), str)]
    if not texts:
        reason = candidates[0].get("finishReason", "UNKNOWN")
        raise UpstreamError(f"Upstream returned no text (finishReason={reason})")
    return "".join(texts)

class GeminiClient:
    """
    Sends an ordered list of content units to Gemini as one user turn.

    Constructed once from ``Settings``; owns an ``httpx.Client`` that is
    released by ``close()``.
    """

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None) -> None:
        self.settings = settings
        self._http = httpx.Client(timeout=settings.timeout, transport=transport)

    @property
    def url(self) -> str:
        return f"{self.settings.base_url}/v1beta/models/{self.settings.model}:generateContent"

    def build_payload(self, units: Sequence[ContentUnit]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [u.to_part() for u in units]}],
        }
        gen_cfg = self.settings.generation_config()
        if gen_cfg:
            payload["generationConfig"] = gen_cfg
        return payload

    def generate(self, units: Sequence[ContentUnit]) -> str:
        """
        Run one generation call and return the model's text.

        Args:
            units: Prompt pieces, in order. Must not be empty.

        Raises:
            UpstreamError: Missing credentials, transport failure, non-2xx
                reply, or a reply without text.
        """
        if not units:
            raise ValueError("At least one content unit is required")
        if not self.settings.api_key:
            raise UpstreamError("GEMINI_API_KEY is not set")

        headers = {"x-goog-api-key": self.settings.api_key}
        try:
            r = self._http.post(self.url, headers=headers, json=self.build_payload(units))
        except httpx.HTTPError as e:
            raise UpstreamError(f"Request to Gemini failed: {e}") from e
        if r.is_error:
            raise UpstreamError(f"Gemini returned {r.status_code}: {_error_message(r)}")
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamError("Malformed Gemini response") from e
        return extract_text(data)

    def close(self) -> None:
        self._http.close()
