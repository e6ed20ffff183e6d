"""Runtime settings, read once at startup from the environment.

A ``.env`` file in the working directory is honoured. Generation settings can
additionally come from a YAML file named by ``GEMINI_RELAY_CONFIG``.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"

# YAML keys allowed to override generation settings
_YAML_KEYS = ("model", "temperature", "top_p", "max_tokens", "timeout")

def _opt_float(value: str | None) -> float | None:
    return float(value) if value else None

def _opt_int(value: str | None) -> int | None:
    return int(value) if value else None

def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 120.0
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    upload_dir: Path = Path("uploads")
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``. When omitted,
                ``.env`` is loaded into the process environment first.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        settings = cls(
            api_key=environ.get("GEMINI_API_KEY") or None,
            model=environ.get("GEMINI_MODEL", DEFAULT_MODEL),
            base_url=environ.get("GEMINI_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout=float(environ.get("GEMINI_TIMEOUT", "120")),
            temperature=_opt_float(environ.get("TEMPERATURE")),
            top_p=_opt_float(environ.get("TOP_P")),
            max_tokens=_opt_int(environ.get("MAX_TOKENS")),
            upload_dir=Path(environ.get("UPLOAD_DIR", "uploads")),
            host=environ.get("HOST", "0.0.0.0"),
            port=int(environ.get("PORT") or 3000),
            log_level=environ.get("LOG_LEVEL", "INFO"),
        )
        cfg_path = environ.get("GEMINI_RELAY_CONFIG")
        if cfg_path:
            settings = settings.with_overrides(load_cfg(cfg_path))
        return settings

    def with_overrides(self, cfg: Mapping[str, Any]) -> "Settings":
        """Return a copy with generation settings taken from a YAML mapping."""
        unknown = sorted(set(cfg) - set(_YAML_KEYS))
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        changes: dict[str, Any] = {}
        if cfg.get("model"):
            changes["model"] = str(cfg["model"])
        for key in ("temperature", "top_p", "timeout"):
            if cfg.get(key) is not None:
                changes[key] = float(cfg[key])
        if cfg.get("max_tokens") is not None:
            changes["max_tokens"] = int(cfg["max_tokens"])
        return replace(self, **changes)

    def generation_config(self) -> dict[str, Any]:
        """Upstream ``generationConfig`` block; empty when nothing is set."""
        out: dict[str, Any] = {}
        if self.temperature is not None:
            out["temperature"] = self.temperature
        if self.top_p is not None:
            out["topP"] = self.top_p
        if self.max_tokens is not None:
            out["maxOutputTokens"] = self.max_tokens
        return out
