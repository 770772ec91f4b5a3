"""Publish targets and the outcome of a single publish attempt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from f007th_push.errors import ConfigurationError

_KIND_TOKENS = {
    "rest": "REST",
    "influxdb": "INFLUX",
    "influx": "INFLUX",
}


class SinkKind(Enum):
    """Endpoint family; selects wire format, HTTP method and expected status."""

    REST = "REST"
    INFLUX = "InfluxDB"

    @classmethod
    def parse(cls, token: str) -> SinkKind:
        """Map a case-insensitive configuration token to a sink kind."""
        name = _KIND_TOKENS.get(str(token).strip().lower())
        if name is None:
            raise ConfigurationError(f'Unknown server type "{token}"')
        return cls[name]


@dataclass(frozen=True, slots=True)
class SinkTarget:
    """Where readings are published; fixed for the process lifetime."""

    url: str
    kind: SinkKind = SinkKind.REST

    @classmethod
    def create(cls, url: str | None, kind: SinkKind | str = SinkKind.REST) -> SinkTarget:
        if not url:
            raise ConfigurationError("Server URL must be specified (option --send-to or -s)")
        try:
            parts = urlsplit(url)
            parts.port  # raises ValueError on a malformed port
        except ValueError as exc:
            raise ConfigurationError(f"Server URL must be HTTP or HTTPS: {url}") from exc
        if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
            raise ConfigurationError(f"Server URL must be HTTP or HTTPS: {url}")
        if not isinstance(kind, SinkKind):
            kind = SinkKind.parse(kind)
        return cls(url=url, kind=kind)


class OutcomeKind(Enum):
    SUCCESS = "success"
    TRANSPORT_FAILURE = "transport_failure"
    UNEXPECTED_STATUS = "unexpected_status"


@dataclass(slots=True)
class PublishOutcome:
    """Result of one HTTP exchange."""

    success: bool
    http_status: int = 0
    error: str | None = None
    aborted: bool = False
    response_text: str = ""
    truncated: bool = False

    @property
    def kind(self) -> OutcomeKind:
        if self.success:
            return OutcomeKind.SUCCESS
        if self.error is not None or self.http_status == 0:
            return OutcomeKind.TRANSPORT_FAILURE
        return OutcomeKind.UNEXPECTED_STATUS


__all__ = ["OutcomeKind", "PublishOutcome", "SinkKind", "SinkTarget"]
