"""Exception types shared across the publish pipeline."""

from __future__ import annotations


class PushError(RuntimeError):
    """Base class for errors raised by f007th-push."""


class ConfigurationError(PushError, ValueError):
    """Raised when startup configuration is invalid (URL, sink type, numbers)."""


__all__ = ["PushError", "ConfigurationError"]
