"""Logging setup shared by the CLI commands."""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path

LOG_LEVEL_ENV_VAR = "F007TH_PUSH_LOG_LEVEL"

_ALIASES = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def resolve_log_level(candidate: str | None) -> int:
    """Return a logging level from ``candidate`` or the environment, else INFO."""
    for value in (candidate, os.getenv(LOG_LEVEL_ENV_VAR)):
        if not value:
            continue
        stripped = value.strip()
        if not stripped:
            continue
        lower = stripped.lower()
        if lower in _ALIASES:
            return _ALIASES[lower]
        if stripped.isdigit():
            return int(stripped)
    return logging.INFO


def configure_logging(level_name: str | None, log_file: Path | None = None) -> Path | None:
    """Log to stdout and, when ``log_file`` is given, to that file (UTC timestamps).

    Returns the log file actually in use, or None if it could not be opened.
    """
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    handlers: list[logging.Handler] = [stream_handler]

    active: Path | None = None
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as exc:
            print(f"Unable to open log file {log_file}: {exc}", file=sys.stderr)
        else:
            file_formatter = logging.Formatter("%(asctime)sZ %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
            file_formatter.converter = time.gmtime
            file_handler.setFormatter(file_formatter)
            handlers.append(file_handler)
            active = log_file

    logging.basicConfig(level=resolve_log_level(level_name), handlers=handlers, force=True)
    # urllib3 chatter would drown the diagnostics stream
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return active


__all__ = ["LOG_LEVEL_ENV_VAR", "configure_logging", "resolve_log_level"]
