"""Runtime command: read decoded readings and publish the changed ones."""

from __future__ import annotations

import logging
import sys
import time
from argparse import Namespace
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from f007th_push import config as config_module
from f007th_push.config_layering import resolve_push_config
from f007th_push.errors import ConfigurationError
from f007th_push.logging_config import configure_logging
from f007th_push.publisher import SKIP_EMPTY, SKIP_INVALID, SKIP_UNCHANGED, Publisher
from f007th_push.readings import ChangeMask, DecodedReading, iter_readings
from f007th_push.sensors import ChangeDetector, SensorState
from f007th_push.transport import TransportClient
from f007th_push.verbosity import Verbosity, echo, enable_diagnostics

LOG = logging.getLogger(__name__)

STATS_INTERVAL_S = 60.0
USAGE_HINT = "Run `f007th-push send --help` for usage."


@dataclass(slots=True)
class RelayStats:
    """Counters for the readings seen by the send loop."""

    received: int = 0
    missing: int = 0
    undecoded: int = 0
    invalid: int = 0
    unchanged: int = 0
    sent: int = 0
    failed: int = 0

    def format(self) -> str:
        return (
            f"[stats] received={self.received} sent={self.sent} failed={self.failed} "
            f"unchanged={self.unchanged} invalid={self.invalid} "
            f"undecoded={self.undecoded} missing={self.missing}"
        )


def resolve_verbosity(args: Namespace) -> Verbosity:
    verbosity = Verbosity.NONE
    if getattr(args, "verbose", False):
        verbosity |= Verbosity.INFO
    if getattr(args, "more_verbose", False):
        verbosity |= Verbosity.MORE
    if getattr(args, "statistics", False):
        verbosity |= Verbosity.PRINT_STATISTICS
    return verbosity


def run_send(args: Namespace) -> int:
    """Run the receive → gate → publish loop until input ends or Ctrl-C."""
    try:
        push_config = resolve_push_config(args)
        push_config.validate()
        target = push_config.target()
    except ConfigurationError as exc:
        print(f"ERROR: {exc}.", file=sys.stderr)
        print(USAGE_HINT, file=sys.stderr)
        return 2

    log_file = Path(push_config.log_file) if push_config.log_file else (
        config_module.get_logs_dir() / config_module.DEFAULT_LOG_FILENAME
    )
    configure_logging(push_config.log_level, log_file)
    verbosity = resolve_verbosity(args)
    enable_diagnostics(verbosity)

    input_name = getattr(args, "input", None) or "-"
    try:
        source = _open_input(input_name)
    except OSError as exc:
        print(f"Unable to open readings input {input_name}: {exc}", file=sys.stderr)
        return 1

    stats = RelayStats()
    detector = SensorState()
    next_stats_report = time.monotonic() + STATS_INTERVAL_S

    try:
        with TransportClient(push_config.connect_timeout, push_config.read_timeout) as transport:
            publisher = Publisher(
                target,
                transport,
                changes_only=push_config.changes_only,
                payload_capacity=push_config.payload_buffer_size,
                response_capacity=push_config.response_buffer_size,
            )
            echo(verbosity, Verbosity.INFO, "Receiving data...")
            for reading in iter_readings(source):
                process_reading(reading, publisher, detector, stats, verbosity)
                if getattr(args, "once", False):
                    break
                if verbosity & Verbosity.PRINT_STATISTICS and time.monotonic() >= next_stats_report:
                    echo(verbosity, Verbosity.PRINT_STATISTICS, "%s", stats.format())
                    next_stats_report = time.monotonic() + STATS_INTERVAL_S
    except KeyboardInterrupt:
        pass
    finally:
        if source is not sys.stdin:
            source.close()

    echo(verbosity, Verbosity.INFO, "Exiting...")
    echo(verbosity, Verbosity.PRINT_STATISTICS, "%s", stats.format())
    return 0


def process_reading(
    reading: DecodedReading,
    publisher: Publisher,
    detector: ChangeDetector,
    stats: RelayStats,
    verbosity: Verbosity = Verbosity.NONE,
) -> bool:
    """Handle one reading; return True when a publish attempt was made."""
    stats.received += 1

    if reading.empty:
        stats.missing += 1
        LOG.error("ERROR: Missing data.")
        return False
    echo(verbosity, Verbosity.INFO, "%s", reading.describe())
    if reading.is_undecoded:
        stats.undecoded += 1
        echo(
            verbosity,
            Verbosity.INFO | Verbosity.PRINT_UNDECODED,
            "Could not decode the received data (error %04x).",
            reading.decoding_status,
        )
        return False

    changed = detector.update(reading) if reading.valid else ChangeMask.NONE
    sent = publisher.publish(reading, changed, verbosity)

    outcome = publisher.last_outcome
    if sent and outcome is not None and outcome.success:
        stats.sent += 1
        return True

    if sent:
        stats.failed += 1
    elif publisher.last_skip_reason == SKIP_INVALID:
        stats.invalid += 1
    elif publisher.last_skip_reason == SKIP_UNCHANGED:
        stats.unchanged += 1

    if changed:
        # keep the change pending so the next reading retries it
        rollback = getattr(detector, "rollback", None)
        if rollback is not None:
            rollback(reading)
    if sent or publisher.last_skip_reason == SKIP_EMPTY:
        echo(verbosity, Verbosity.INFO, "No data was sent to server.")
    return sent


def _open_input(name: str) -> IO[str]:
    if name == "-":
        return sys.stdin
    return Path(name).open("r", encoding="utf-8")


__all__ = ["RelayStats", "process_reading", "resolve_verbosity", "run_send"]
