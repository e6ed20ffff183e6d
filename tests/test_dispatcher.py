from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

import pytest

from gemini_relay.common.schema import ContentUnit, TextUnit
from gemini_relay.serve import uploads
from gemini_relay.serve.dispatcher import dispatch


class _Echo:
    def generate(self, units: Sequence[ContentUnit]) -> str:
        return " | ".join(u.text for u in units if isinstance(u, TextUnit))


class _Boom:
    def generate(self, units: Sequence[ContentUnit]) -> str:
        raise ValueError("bad request")


def test_dispatch_success_removes_file(tmp_path: Path) -> None:
    f = tmp_path / "u.bin"
    f.write_bytes(b"x")
    resp = dispatch(_Echo(), [TextUnit("a"), TextUnit("b")], cleanup_path=f)
    assert resp.status_code == 200
    assert json.loads(resp.body) == {"output": "a | b"}
    assert not f.exists()


def test_dispatch_failure_logs_and_removes_file(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    f = tmp_path / "u.bin"
    f.write_bytes(b"x")
    with caplog.at_level(logging.ERROR):
        resp = dispatch(_Boom(), [TextUnit("a")], cleanup_path=f)
    assert resp.status_code == 500
    assert json.loads(resp.body) == {"error": "Failed to generate content", "details": "bad request"}
    assert "Error generating content" in caplog.text
    assert not f.exists()


def test_cleanup_failure_does_not_change_response(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def _deny(path: str) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(uploads.os, "unlink", _deny)
    with caplog.at_level(logging.ERROR):
        resp = dispatch(_Echo(), [TextUnit("ok")], cleanup_path=tmp_path / "u.bin")
    assert resp.status_code == 200
    assert "read-only filesystem" in caplog.text


def test_failure_and_cleanup_failure_both_logged(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def _deny(path: str) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(uploads.os, "unlink", _deny)
    with caplog.at_level(logging.ERROR):
        resp = dispatch(_Boom(), [TextUnit("a")], cleanup_path=tmp_path / "u.bin")
    assert resp.status_code == 500
    assert json.loads(resp.body) == {"error": "Failed to generate content", "details": "bad request"}
    assert "Error generating content" in caplog.text
    assert "Error deleting temporary file" in caplog.text
