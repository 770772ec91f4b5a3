"""Shared fixtures: dummy HTTP sessions and a local HTTP server."""

from __future__ import annotations

import http.server
import logging
import os
import socketserver
import threading
from typing import Iterator

import pytest


class DummyResponse:
    def __init__(self, status_code=200, body=b"", reason="OK", chunk_error=None) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = {"Content-Length": str(len(body))}
        self._body = body
        self._chunk_error = chunk_error
        self.closed = False

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]
        if self._chunk_error is not None:
            raise self._chunk_error

    def close(self) -> None:
        self.closed = True


class DummySession:
    """Stand-in for ``requests.Session`` recording every request."""

    instances: list["DummySession"] = []

    def __init__(self, response=None, error=None) -> None:
        self._response = response or DummyResponse()
        self._error = error
        self.headers: dict[str, str] = {"Accept": "*/*"}
        self.calls: list[dict] = []
        self.closed = False
        DummySession.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.closed = True

    def request(self, method, url, data=None, headers=None, stream=False, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "data": data,
                "headers": headers,
                "stream": stream,
                "timeout": timeout,
            }
        )
        if self._error is not None:
            raise self._error
        return self._response


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """CLI tests reconfigure logging with force=True; undo it afterwards."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        # pytest's own capture handlers are subclasses; leave those alone
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.getLogger("f007th_push.diagnostics").setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path) -> None:
    """Keep the real user config, data dir and F007TH_PUSH_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("F007TH_PUSH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")


@pytest.fixture
def dummy_sessions() -> Iterator[list[DummySession]]:
    DummySession.instances = []
    yield DummySession.instances
    DummySession.instances = []


class _RecordingHandler(http.server.BaseHTTPRequestHandler):
    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length", "0"))
        body = self.rfile.read(length)
        self.server.requests.append(  # type: ignore[attr-defined]
            {
                "method": self.command,
                "path": self.path,
                "headers": dict(self.headers.items()),
                "body": body,
            }
        )
        status, response_body = self.server.reply  # type: ignore[attr-defined]
        self.send_response(status)
        if status != 204:
            self.send_header("Content-Length", str(len(response_body)))
        self.send_header("Connection", "close")
        self.end_headers()
        if status != 204 and response_body:
            self.wfile.write(response_body)

    do_PUT = _handle
    do_POST = _handle

    def log_message(self, format, *args) -> None:  # noqa: A002 - stdlib signature
        pass


class _Server(socketserver.ThreadingMixIn, http.server.HTTPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture
def http_server():
    """Local HTTP server; set ``server.reply = (status, body)`` before use."""
    server = _Server(("127.0.0.1", 0), _RecordingHandler)
    server.requests = []  # type: ignore[attr-defined]
    server.reply = (200, b"{}")  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=2)


def server_url(server, path: str = "/") -> str:
    host, port = server.server_address[:2]
    return f"http://{host}:{port}{path}"


__all__ = ["DummyResponse", "DummySession", "server_url"]
