"""Decoded sensor readings and the JSON-lines source that produces them."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import IntFlag
from typing import Any, Iterable, Iterator

LOG = logging.getLogger(__name__)

DEFAULT_SENSOR_TYPE = "F007TH"


class ChangeMask(IntFlag):
    """Fields that differ from the last published value of a sensor."""

    NONE = 0
    TEMPERATURE = 0x01
    HUMIDITY = 0x02
    BATTERY = 0x04
    ALL = TEMPERATURE | HUMIDITY | BATTERY


@dataclass(frozen=True, slots=True)
class DecodedReading:
    """One decoded observation from a thermo/hygrometer sensor."""

    channel: int
    rolling_code: int
    temperature_c: float | None = None
    humidity: int | None = None
    battery_ok: bool | None = None
    valid: bool = True
    decoding_status: int = 0
    timestamp: float | None = None
    sensor_type: str = DEFAULT_SENSOR_TYPE
    empty: bool = False

    @property
    def sensor_key(self) -> tuple[str, int, int]:
        return (self.sensor_type, self.channel, self.rolling_code)

    @property
    def is_undecoded(self) -> bool:
        return self.decoding_status != 0

    @property
    def temperature_f(self) -> float | None:
        if self.temperature_c is None:
            return None
        return round(self.temperature_c * 9.0 / 5.0 + 32.0, 1)

    @classmethod
    def empty_reading(cls) -> DecodedReading:
        return cls(channel=0, rolling_code=0, valid=False, empty=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DecodedReading:
        """Build a reading from a producer record.

        Temperature may be given as ``temperature_c`` (or ``temperature``) or
        as ``temperature_f``; Fahrenheit is converted to Celsius.
        """
        if not data:
            return cls.empty_reading()

        temperature_c = _optional_float(data.get("temperature_c", data.get("temperature")))
        if temperature_c is None:
            temperature_f = _optional_float(data.get("temperature_f"))
            if temperature_f is not None:
                temperature_c = round((temperature_f - 32.0) * 5.0 / 9.0, 1)

        return cls(
            channel=int(data.get("channel", 0)),
            rolling_code=int(data.get("rolling_code", 0)),
            temperature_c=temperature_c,
            humidity=_optional_int(data.get("humidity")),
            battery_ok=_optional_bool(data.get("battery_ok")),
            valid=_optional_bool(data.get("valid", True)) is not False,
            decoding_status=int(data.get("decoding_status", 0)),
            timestamp=_optional_float(data.get("timestamp")),
            sensor_type=str(data.get("sensor_type") or DEFAULT_SENSOR_TYPE),
        )

    def describe(self) -> str:
        """Return a one-line human-readable summary."""
        if self.empty:
            return "<no data>"
        parts = [f"{self.sensor_type} channel={self.channel} rolling_code={self.rolling_code}"]
        if self.temperature_c is not None:
            parts.append(f"temperature={self.temperature_c:.1f}C")
        if self.humidity is not None:
            parts.append(f"humidity={self.humidity}%")
        if self.battery_ok is not None:
            parts.append("battery=ok" if self.battery_ok else "battery=low")
        if not self.valid:
            parts.append("(invalid)")
        return " ".join(parts)


def iter_readings(lines: Iterable[str]) -> Iterator[DecodedReading]:
    """Yield readings from JSON-lines text, one record per line.

    Blank lines are skipped. Lines that cannot be parsed yield an empty
    reading so the caller can report missing data.
    """
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
            if not isinstance(record, dict):
                raise ValueError(f"expected an object, got {type(record).__name__}")
            yield DecodedReading.from_dict(record)
        except (TypeError, ValueError, OverflowError) as exc:
            LOG.debug("Malformed reading line %r: %s", line[:80], exc)
            yield DecodedReading.empty_reading()


def _optional_float(value: Any) -> float | None:
    if value in (None, ""):
        return None
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number: {value!r}")
    return number


def _optional_bool(value: Any) -> bool | None:
    """Accept JSON booleans, 0/1 and true/false words; reject anything else."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in ("true", "yes", "1"):
            return True
        if word in ("false", "no", "0"):
            return False
    raise ValueError(f"not a boolean: {value!r}")


def _optional_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    return int(value)


__all__ = ["ChangeMask", "DecodedReading", "DEFAULT_SENSOR_TYPE", "iter_readings"]
