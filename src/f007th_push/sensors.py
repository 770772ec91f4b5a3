"""Last-known values per physical sensor and change detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from f007th_push.readings import ChangeMask, DecodedReading


class ChangeDetector(Protocol):
    """Keyed state that reports which fields of a reading are new."""

    def update(self, reading: DecodedReading) -> ChangeMask:  # pragma: no cover - interface
        ...


@dataclass(slots=True)
class _Snapshot:
    temperature_c: float | None
    humidity: int | None
    battery_ok: bool | None


class SensorState:
    """In-memory change detector keyed by ``DecodedReading.sensor_key``.

    ``update`` advances the stored values. ``rollback`` restores what was
    stored before the most recent update of that sensor, so a change whose
    publish failed is reported again by the next reading.
    """

    def __init__(self) -> None:
        self._current: dict[tuple[str, int, int], _Snapshot] = {}
        self._previous: dict[tuple[str, int, int], _Snapshot | None] = {}

    def __len__(self) -> int:
        return len(self._current)

    def update(self, reading: DecodedReading) -> ChangeMask:
        key = reading.sensor_key
        old = self._current.get(key)
        new = _Snapshot(
            temperature_c=_rounded(reading.temperature_c),
            humidity=reading.humidity,
            battery_ok=reading.battery_ok,
        )

        changed = ChangeMask.NONE
        if old is None:
            if new.temperature_c is not None:
                changed |= ChangeMask.TEMPERATURE
            if new.humidity is not None:
                changed |= ChangeMask.HUMIDITY
            if new.battery_ok is not None:
                changed |= ChangeMask.BATTERY
        else:
            if new.temperature_c != old.temperature_c:
                changed |= ChangeMask.TEMPERATURE
            if new.humidity != old.humidity:
                changed |= ChangeMask.HUMIDITY
            if new.battery_ok != old.battery_ok:
                changed |= ChangeMask.BATTERY

        if changed:
            self._previous[key] = old
            self._current[key] = new
        return changed

    def rollback(self, reading: DecodedReading) -> None:
        """Undo the last update recorded for the reading's sensor."""
        key = reading.sensor_key
        if key not in self._previous:
            return
        previous = self._previous.pop(key)
        if previous is None:
            self._current.pop(key, None)
        else:
            self._current[key] = previous


def _rounded(value: float | None) -> float | None:
    # sensors report tenths of a degree
    return None if value is None else round(value, 1)


__all__ = ["ChangeDetector", "SensorState"]
