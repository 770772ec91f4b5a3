"""Single-shot HTTP transport for serialized payloads.

Every exchange opens its own ``requests.Session`` and tears it down before
returning; nothing is pooled between publishes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import requests

from f007th_push import __version__
from f007th_push.buffers import BoundedResponseSink
from f007th_push.sinks import PublishOutcome, SinkKind, SinkTarget
from f007th_push.verbosity import Verbosity, echo

LOG = logging.getLogger(__name__)

CONNECT_TIMEOUT_S = 5.0
READ_TIMEOUT_S = 10.0
RESPONSE_CHUNK_BYTES = 1024
ABORTED_MESSAGE = "HTTP request was aborted"


@dataclass(frozen=True, slots=True)
class RequestProfile:
    """Method, headers and expected status for one sink kind."""

    method: str
    headers: Mapping[str, Optional[str]]
    expected_status: int


def request_profile(kind: SinkKind) -> RequestProfile:
    """Return the request shape for ``kind``.

    A header mapped to ``None`` is removed from the session defaults, which
    is how InfluxDB requests go out without Content-Type/Accept.
    """
    if kind is SinkKind.REST:
        return RequestProfile(
            method="PUT",
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "charsets": "utf-8",
                "Connection": "close",
            },
            expected_status=200,
        )
    if kind is SinkKind.INFLUX:
        return RequestProfile(
            method="POST",
            headers={"Content-Type": None, "Accept": None},
            expected_status=204,
        )
    raise ValueError(f"Unsupported sink kind: {kind!r}")  # pragma: no cover - closed enum


class TransportClient:
    """Scoped HTTP transport handle, opened once per process."""

    def __init__(
        self,
        connect_timeout: float | None = CONNECT_TIMEOUT_S,
        read_timeout: float | None = READ_TIMEOUT_S,
        session_factory: Callable[[], Any] | None = None,
    ) -> None:
        if connect_timeout is None and read_timeout is None:
            self._timeout: Any = None
        else:
            self._timeout = (connect_timeout, read_timeout)
        self._session_factory = session_factory or requests.Session
        self._user_agent = f"f007th-push/{__version__}"
        self._open = False

    @property
    def timeout(self) -> Any:
        return self._timeout

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def __enter__(self) -> "TransportClient":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def exchange(
        self,
        target: SinkTarget,
        payload: bytes,
        sink: BoundedResponseSink,
        verbosity: Verbosity = Verbosity.NONE,
    ) -> PublishOutcome:
        """Send ``payload`` to ``target`` and capture at most ``sink.capacity`` bytes."""
        if not self._open:
            raise RuntimeError("Transport client is not open")

        profile = request_profile(target.kind)
        details = bool(verbosity & Verbosity.PRINT_DETAILS)
        sink.reset()

        with self._session_factory() as session:
            session.headers["User-Agent"] = self._user_agent
            echo(verbosity, Verbosity.PRINT_HTTP, "> %s %s", profile.method, target.url)
            for name, value in profile.headers.items():
                if value is not None:
                    echo(verbosity, Verbosity.PRINT_HTTP, "> %s: %s", name, value)
            echo(verbosity, Verbosity.PRINT_HTTP, "> (%d bytes of payload)", len(payload))

            try:
                response = session.request(
                    profile.method,
                    target.url,
                    data=payload,
                    headers=dict(profile.headers),
                    stream=True,
                    timeout=self._timeout,
                )
            except requests.RequestException as exc:
                LOG.debug("Request to %s raised %r", target.url, exc)
                return PublishOutcome(success=False, http_status=0, error=str(exc) or type(exc).__name__)

            try:
                status = int(response.status_code)
                echo(verbosity, Verbosity.PRINT_HTTP, "< HTTP %s %s", status, response.reason or "")
                for name, value in response.headers.items():
                    echo(verbosity, Verbosity.PRINT_HTTP, "< %s: %s", name, value)
                try:
                    for chunk in response.iter_content(chunk_size=RESPONSE_CHUNK_BYTES):
                        if not chunk:
                            continue
                        if details:
                            echo(
                                verbosity,
                                Verbosity.PRINT_DETAILS,
                                "receiving %d bytes...",
                                min(len(chunk), sink.remaining_capacity),
                            )
                        sink.accept(chunk)
                except requests.RequestException as exc:
                    LOG.debug("Response body from %s interrupted: %r", target.url, exc)
                    return PublishOutcome(
                        success=False,
                        http_status=0,
                        error=ABORTED_MESSAGE,
                        aborted=True,
                        response_text=sink.text(),
                        truncated=sink.truncated,
                    )
            finally:
                response.close()

        return PublishOutcome(
            success=status == profile.expected_status,
            http_status=status,
            response_text=sink.text(),
            truncated=sink.truncated,
        )


__all__ = [
    "ABORTED_MESSAGE",
    "CONNECT_TIMEOUT_S",
    "READ_TIMEOUT_S",
    "RequestProfile",
    "TransportClient",
    "request_profile",
]
