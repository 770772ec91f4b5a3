"""Render readings into REST JSON or InfluxDB line-protocol payloads.

Payloads are rendered completely before anything touches the destination
buffer, so a payload that does not fit leaves the buffer empty.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any

from f007th_push.buffers import BoundedBuffer
from f007th_push.readings import ChangeMask, DecodedReading
from f007th_push.sinks import SinkKind

LOG = logging.getLogger(__name__)


def serialize(
    reading: DecodedReading,
    changed: ChangeMask,
    kind: SinkKind,
    buffer: BoundedBuffer,
    *,
    full_dump: bool = False,
) -> int:
    """Write the payload for ``reading`` into ``buffer``.

    Returns the number of bytes written, or 0 when there is nothing to send
    or the payload would exceed the buffer capacity.
    """
    buffer.reset()
    mask = ChangeMask.ALL if full_dump else ChangeMask(changed)

    if kind is SinkKind.REST:
        text = render_json(reading, mask)
    elif kind is SinkKind.INFLUX:
        text = render_line_protocol(reading, mask)
    else:  # pragma: no cover - closed enum
        raise ValueError(f"Unsupported sink kind: {kind!r}")

    if not text:
        return 0
    data = text.encode("utf-8")
    if len(data) > buffer.capacity:
        LOG.warning(
            "Payload of %d bytes exceeds buffer capacity of %d bytes; not sending",
            len(data),
            buffer.capacity,
        )
        return 0
    return buffer.write(data)


def render_json(reading: DecodedReading, mask: ChangeMask) -> str:
    """Return a compact JSON object with identity plus the selected fields."""
    fields = _selected_fields(reading, mask)
    if not fields:
        return ""
    document: dict[str, Any] = {
        "sensor_type": reading.sensor_type,
        "channel": reading.channel,
        "rolling_code": reading.rolling_code,
        "valid": reading.valid,
    }
    if reading.timestamp is not None:
        document["time"] = int(reading.timestamp)
    for name, value in fields:
        document[name] = value
        if name == "temperature":
            document["temperature_f"] = reading.temperature_f
    try:
        return json.dumps(document, separators=(",", ":"), allow_nan=False)
    except ValueError:
        LOG.warning("Reading %s has a non-finite value; not sending", reading.describe())
        return ""


def render_line_protocol(reading: DecodedReading, mask: ChangeMask) -> str:
    """Return one line-protocol record per selected field."""
    tags = ",".join(
        (
            f"type={_escape_tag(reading.sensor_type)}",
            f"channel={reading.channel}",
            f"rolling_code={reading.rolling_code}",
        )
    )
    suffix = ""
    if reading.timestamp is not None:
        suffix = f" {int(round(reading.timestamp * 1_000_000_000))}"

    lines = [
        f"{_escape_measurement(name)},{tags} value={_field_value(value)}{suffix}"
        for name, value in _selected_fields(reading, mask)
    ]
    return "\n".join(lines)


def _selected_fields(reading: DecodedReading, mask: ChangeMask) -> list[tuple[str, Any]]:
    candidates = (
        (ChangeMask.TEMPERATURE, "temperature", reading.temperature_c),
        (ChangeMask.HUMIDITY, "humidity", reading.humidity),
        (ChangeMask.BATTERY, "battery_ok", reading.battery_ok),
    )
    return [
        (name, value)
        for flag, name, value in candidates
        if mask & flag and value is not None and not _non_finite(value)
    ]


def _non_finite(value: Any) -> bool:
    return isinstance(value, float) and not math.isfinite(value)


def _field_value(value: Any) -> str:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(round(value, 2))
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _escape_measurement(name: str) -> str:
    return name.replace(",", "\\,").replace(" ", "\\ ")


def _escape_tag(value: str) -> str:
    return value.replace(",", "\\,").replace("=", "\\=").replace(" ", "\\ ")


__all__ = ["serialize", "render_json", "render_line_protocol"]
