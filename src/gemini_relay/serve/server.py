"""Launch the relay under uvicorn."""
from __future__ import annotations
import uvicorn

from gemini_relay.common.config import Settings

def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "gemini_relay.serve.fastapi_app:build_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )

if __name__ == "__main__":
    main()
