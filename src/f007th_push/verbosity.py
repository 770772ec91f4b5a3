"""Verbosity flags controlling the diagnostics stream."""

from __future__ import annotations

import logging
from enum import IntFlag

DIAG = logging.getLogger("f007th_push.diagnostics")


class Verbosity(IntFlag):
    NONE = 0
    INFO = 0x01
    PRINT_PAYLOAD = 0x02
    PRINT_HTTP = 0x04
    PRINT_UNDECODED = 0x08
    PRINT_DETAILS = 0x10
    PRINT_STATISTICS = 0x20
    # -V turns on everything except periodic statistics
    MORE = INFO | PRINT_PAYLOAD | PRINT_HTTP | PRINT_UNDECODED | PRINT_DETAILS


def enable_diagnostics(verbosity: Verbosity) -> None:
    """Let requested verbose output through whatever the global log level is."""
    DIAG.setLevel(logging.INFO if verbosity else logging.NOTSET)


def echo(verbosity: Verbosity, flag: Verbosity, message: str, *args: object) -> None:
    """Log ``message`` on the diagnostics logger when ``flag`` is enabled."""
    if verbosity & flag:
        DIAG.info(message, *args)


__all__ = ["DIAG", "Verbosity", "echo", "enable_diagnostics"]
