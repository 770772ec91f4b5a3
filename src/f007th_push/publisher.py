"""Publish orchestration: gate, serialize, transmit, report."""

from __future__ import annotations

import logging
from typing import Optional

from f007th_push.buffers import BoundedBuffer, BoundedResponseSink
from f007th_push.readings import ChangeMask, DecodedReading
from f007th_push.serializer import serialize
from f007th_push.sinks import OutcomeKind, PublishOutcome, SinkKind, SinkTarget
from f007th_push.transport import TransportClient
from f007th_push.verbosity import Verbosity, echo

LOG = logging.getLogger(__name__)

PAYLOAD_BUFFER_SIZE = 5120
RESPONSE_BUFFER_SIZE = 4096

SKIP_INVALID = "invalid"
SKIP_UNCHANGED = "unchanged"
SKIP_EMPTY = "empty payload"


class Publisher:
    """Owns the payload/response buffers and publishes one reading at a time."""

    def __init__(
        self,
        target: SinkTarget,
        transport: TransportClient,
        *,
        changes_only: bool = True,
        payload_capacity: int = PAYLOAD_BUFFER_SIZE,
        response_capacity: int = RESPONSE_BUFFER_SIZE,
    ) -> None:
        self.target = target
        self.changes_only = changes_only
        self._transport = transport
        self._payload = BoundedBuffer(payload_capacity)
        self._response = BoundedResponseSink(response_capacity)
        self.last_outcome: Optional[PublishOutcome] = None
        self.last_skip_reason: Optional[str] = None

    @property
    def payload_capacity(self) -> int:
        return self._payload.capacity

    @property
    def response_capacity(self) -> int:
        return self._response.capacity

    def effective_mask(self, reading: DecodedReading, changed: ChangeMask) -> ChangeMask:
        """Return the mask to publish with, or ``ChangeMask.NONE`` to skip."""
        if changed:
            if reading.valid or not self.changes_only:
                return ChangeMask(changed)
            return ChangeMask.NONE
        if self.changes_only:
            return ChangeMask.NONE
        # send-all mode: invalid readings still go to the REST sink
        if reading.valid or self.target.kind is SinkKind.REST:
            return ChangeMask.ALL
        return ChangeMask.NONE

    def publish(
        self,
        reading: DecodedReading,
        changed: ChangeMask,
        verbosity: Verbosity = Verbosity.NONE,
    ) -> bool:
        """Publish ``reading`` if it passes the gate.

        Returns True when a network attempt was made, whatever its outcome.
        """
        self.last_outcome = None
        self.last_skip_reason = None

        mask = self.effective_mask(reading, changed)
        if not mask:
            reason = SKIP_UNCHANGED if reading.valid else SKIP_INVALID
            return self._skip(reason, verbosity)

        echo(verbosity, Verbosity.PRINT_DETAILS, "===> publishing %s", reading.describe())
        size = serialize(reading, mask, self.target.kind, self._payload)
        if size <= 0:
            return self._skip(SKIP_EMPTY, verbosity)

        payload = self._payload.getvalue()
        echo(verbosity, Verbosity.PRINT_PAYLOAD, "%s", payload.decode("utf-8"))

        outcome = self._transport.exchange(self.target, payload, self._response, verbosity)
        self.last_outcome = outcome
        self._report(outcome, verbosity)
        return True

    def _skip(self, reason: str, verbosity: Verbosity) -> bool:
        self.last_skip_reason = reason
        if reason == SKIP_INVALID:
            echo(verbosity, Verbosity.INFO, "Data is not valid and is not sent to server.")
        elif reason == SKIP_UNCHANGED:
            echo(verbosity, Verbosity.INFO, "Data is not changed and is not sent to server.")
        else:
            echo(verbosity, Verbosity.PRINT_DETAILS, "Output data was not generated; nothing to send.")
        return False

    def _report(self, outcome: PublishOutcome, verbosity: Verbosity) -> None:
        url = self.target.url
        kind = outcome.kind
        if kind is OutcomeKind.SUCCESS:
            LOG.debug("Published to %s (HTTP %s)", url, outcome.http_status)
        elif kind is OutcomeKind.TRANSPORT_FAILURE:
            if outcome.aborted:
                LOG.error("ERROR: %s.", outcome.error)
            else:
                LOG.error("ERROR: Sending data to %s failed: %s", url, outcome.error)
        else:
            LOG.error("ERROR: Got HTTP status code %d.", outcome.http_status)
            if outcome.response_text:
                LOG.error("%s", outcome.response_text)

        if outcome.response_text:
            echo(
                verbosity,
                Verbosity.PRINT_DETAILS,
                "%s%s",
                outcome.response_text,
                " [truncated]" if outcome.truncated else "",
            )


__all__ = [
    "PAYLOAD_BUFFER_SIZE",
    "RESPONSE_BUFFER_SIZE",
    "Publisher",
    "SKIP_EMPTY",
    "SKIP_INVALID",
    "SKIP_UNCHANGED",
]
