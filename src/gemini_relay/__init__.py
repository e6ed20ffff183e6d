"""
Gemini Relay package.

Provides:
- HTTP relay forwarding text, images, documents and audio to Gemini (FastAPI)
- Local prompt runner calling the same upstream client without HTTP
"""

__version__ = "0.1.0"
