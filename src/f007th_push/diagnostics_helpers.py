"""Connectivity probe used by the diagnostics command."""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass
from urllib.parse import urlsplit


@dataclass(slots=True)
class ConnectivityResult:
    """Represents the outcome of probing the endpoint's TCP port."""

    success: bool
    host: str | None = None
    port: int | None = None
    latency_ms: float | None = None
    error: str | None = None


def probe_url_endpoint(url: str, timeout: float = 1.0) -> ConnectivityResult:
    """Open (and immediately close) a TCP connection to the host serving ``url``."""
    parts = urlsplit(url)
    host = parts.hostname
    if not host:
        return ConnectivityResult(success=False, error=f"No host in URL {url!r}")
    try:
        port = parts.port or (443 if parts.scheme.lower() == "https" else 80)
    except ValueError as exc:
        return ConnectivityResult(success=False, host=host, error=str(exc))

    start = time.perf_counter()
    try:
        with socket.create_connection((host, port), timeout=timeout):
            latency = round((time.perf_counter() - start) * 1000, 1)
        return ConnectivityResult(success=True, host=host, port=port, latency_ms=latency)
    except OSError as exc:
        return ConnectivityResult(success=False, host=host, port=port, error=str(exc))


__all__ = ["ConnectivityResult", "probe_url_endpoint"]
