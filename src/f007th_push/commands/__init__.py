"""CLI command handlers."""

from .diagnostics import run_diagnostics
from .send import run_send
from .setup import run_setup

__all__ = ["run_send", "run_setup", "run_diagnostics"]
