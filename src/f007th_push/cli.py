"""Command-line interface entry points for f007th-push."""

from __future__ import annotations

import argparse
import sys
from argparse import Namespace
from typing import Protocol

from f007th_push import __version__
from f007th_push.commands import run_diagnostics, run_send, run_setup
from f007th_push.logging_config import configure_logging

DEFAULT_COMMAND = "send"


class CommandHandler(Protocol):
    """Callable signature for CLI subcommands."""

    def __call__(self, args: Namespace) -> int:  # pragma: no cover - typing hook
        ...


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", help="Path to configuration file (overrides default location)")
    p.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level",
    )


def _add_target_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("-s", "--send-to", metavar="URL", help="Server URL (http:// or https://)")
    p.add_argument(
        "-t",
        "--server-type",
        metavar="TYPE",
        help="Server type: REST (default) or InfluxDB",
    )
    p.add_argument(
        "-A",
        "--all",
        action="store_true",
        help="Send all data; only changed and valid data is sent by default",
    )
    p.add_argument("-l", "--log-file", help="Path to log file")
    p.add_argument("--payload-buffer-size", type=int, help="Payload buffer capacity in bytes")
    p.add_argument("--response-buffer-size", type=int, help="Server response capture limit in bytes")
    p.add_argument("--connect-timeout", type=float, help="HTTP connect timeout in seconds (0 disables)")
    p.add_argument("--read-timeout", type=float, help="HTTP read timeout in seconds (0 disables)")


def build_parser(handlers: dict[str, CommandHandler] | None = None) -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""

    handlers = handlers or _command_handlers()

    parser = argparse.ArgumentParser(
        prog="f007th-push",
        description="Receive decoded F007TH sensor readings and send them to a REST or InfluxDB server.",
    )
    parser.add_argument("--version", action="version", version=f"f007th-push {__version__}")
    parser.set_defaults(command=DEFAULT_COMMAND, handler=handlers[DEFAULT_COMMAND])

    subparsers = parser.add_subparsers(dest="command", required=False)

    send_parser = subparsers.add_parser("send", help="Publish changed readings to the server")
    send_parser.set_defaults(command="send", handler=handlers["send"])
    _add_common_flags(send_parser)
    _add_target_flags(send_parser)
    send_parser.add_argument("url", nargs="?", help="Server URL (same as --send-to)")
    send_parser.add_argument(
        "-i",
        "--input",
        default="-",
        help="JSON-lines file of decoded readings ('-' reads stdin)",
    )
    send_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    send_parser.add_argument(
        "-V",
        "--more-verbose",
        "--more_verbose",
        dest="more_verbose",
        action="store_true",
        help="More verbose output (payloads, HTTP transcript, responses)",
    )
    send_parser.add_argument(
        "-T", "--statistics", action="store_true", help="Print statistics periodically"
    )
    send_parser.add_argument(
        "--once", action="store_true", help="Process a single reading and exit (debug/testing)"
    )

    setup_parser = subparsers.add_parser("setup", help="Write a configuration file")
    setup_parser.set_defaults(command="setup", handler=handlers["setup"])
    _add_common_flags(setup_parser)
    _add_target_flags(setup_parser)
    setup_parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing configuration before starting",
    )
    setup_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run validation without writing any files",
    )

    diagnostics_parser = subparsers.add_parser(
        "diagnostics", help="Check configuration and server reachability"
    )
    diagnostics_parser.set_defaults(command="diagnostics", handler=handlers["diagnostics"])
    _add_common_flags(diagnostics_parser)
    _add_target_flags(diagnostics_parser)
    diagnostics_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit diagnostics in JSON format",
    )
    diagnostics_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show extended diagnostic information",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Process CLI arguments and dispatch to the requested command."""

    handlers = _command_handlers()
    parser = build_parser(handlers)

    argv_list = list(sys.argv[1:] if argv is None else argv)
    normalized = _normalize_argv(argv_list, handlers)
    args = parser.parse_args(normalized)

    # console-only until a command knows its log file
    configure_logging(getattr(args, "log_level", None))

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    return handler(args)


def _command_handlers() -> dict[str, CommandHandler]:
    """Return the mapping of subcommand names to handler callables."""

    return {
        "send": run_send,
        "setup": run_setup,
        "diagnostics": run_diagnostics,
    }


def _normalize_argv(argv: list[str], handlers: dict[str, CommandHandler]) -> list[str]:
    """Inject the default subcommand when the user omits one."""

    if not argv:
        return [DEFAULT_COMMAND]

    first = argv[0]
    if first in ("-h", "--help", "--version"):
        return argv

    if first in handlers:
        return argv

    # flags or a bare server URL belong to the default command
    return [DEFAULT_COMMAND, *argv]


if __name__ == "__main__":  # pragma: no cover - direct CLI execution path
    raise SystemExit(main())
