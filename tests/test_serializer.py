"""Tests for REST JSON and InfluxDB line-protocol serialization."""

from __future__ import annotations

import json
import math

import pytest

from f007th_push.buffers import BoundedBuffer
from f007th_push.readings import ChangeMask, DecodedReading
from f007th_push.serializer import render_line_protocol, serialize
from f007th_push.sinks import SinkKind


def sample_reading(**overrides) -> DecodedReading:
    values = {
        "channel": 1,
        "rolling_code": 123,
        "temperature_c": 21.5,
        "humidity": 45,
        "battery_ok": True,
    }
    values.update(overrides)
    return DecodedReading(**values)


def test_rest_payload_contains_only_temperature_fields() -> None:
    buffer = BoundedBuffer(512)

    size = serialize(sample_reading(), ChangeMask.TEMPERATURE, SinkKind.REST, buffer)

    assert size == len(buffer)
    document = json.loads(buffer.getvalue())
    assert document == {
        "sensor_type": "F007TH",
        "channel": 1,
        "rolling_code": 123,
        "valid": True,
        "temperature": 21.5,
        "temperature_f": 70.7,
    }


def test_rest_payload_full_dump_includes_every_field() -> None:
    buffer = BoundedBuffer(512)

    serialize(sample_reading(), ChangeMask.NONE, SinkKind.REST, buffer, full_dump=True)

    document = json.loads(buffer.getvalue())
    assert document["temperature"] == 21.5
    assert document["humidity"] == 45
    assert document["battery_ok"] is True


def test_rest_payload_includes_time_when_reading_has_timestamp() -> None:
    buffer = BoundedBuffer(512)

    serialize(sample_reading(timestamp=1700000000.9), ChangeMask.HUMIDITY, SinkKind.REST, buffer)

    document = json.loads(buffer.getvalue())
    assert document["time"] == 1700000000
    assert "temperature" not in document


def test_influx_payload_one_record_per_field() -> None:
    buffer = BoundedBuffer(512)

    serialize(sample_reading(), ChangeMask.ALL, SinkKind.INFLUX, buffer)

    lines = buffer.getvalue().decode("utf-8").split("\n")
    assert lines == [
        "temperature,type=F007TH,channel=1,rolling_code=123 value=21.5",
        "humidity,type=F007TH,channel=1,rolling_code=123 value=45i",
        "battery_ok,type=F007TH,channel=1,rolling_code=123 value=true",
    ]


def test_influx_payload_appends_nanosecond_timestamp() -> None:
    text = render_line_protocol(sample_reading(timestamp=1700000000.5), ChangeMask.BATTERY)

    assert text == "battery_ok,type=F007TH,channel=1,rolling_code=123 value=true 1700000000500000000"


def test_influx_tags_are_escaped() -> None:
    text = render_line_protocol(sample_reading(sensor_type="F007 TH,x=y"), ChangeMask.HUMIDITY)

    assert text.startswith("humidity,type=F007\\ TH\\,x\\=y,channel=1,")


def test_serialization_is_deterministic() -> None:
    reading = sample_reading(timestamp=1700000000.0)
    outputs = set()
    for kind in (SinkKind.REST, SinkKind.INFLUX):
        first = BoundedBuffer(512)
        second = BoundedBuffer(512)
        serialize(reading, ChangeMask.ALL, kind, first)
        serialize(reading, ChangeMask.ALL, kind, second)
        assert first.getvalue() == second.getvalue()
        outputs.add(first.getvalue())
    assert len(outputs) == 2


def test_payload_larger_than_capacity_is_not_written() -> None:
    buffer = BoundedBuffer(20)
    buffer.write(b"previous")

    size = serialize(sample_reading(), ChangeMask.ALL, SinkKind.REST, buffer)

    assert size == 0
    assert buffer.getvalue() == b""


def test_nothing_selected_yields_empty_payload() -> None:
    buffer = BoundedBuffer(512)
    reading = sample_reading(humidity=None)

    assert serialize(reading, ChangeMask.HUMIDITY, SinkKind.REST, buffer) == 0
    assert serialize(reading, ChangeMask.NONE, SinkKind.INFLUX, buffer) == 0
    assert buffer.getvalue() == b""


@pytest.mark.parametrize("temperature", [math.nan, math.inf, -math.inf])
def test_non_finite_temperature_is_never_serialized(temperature) -> None:
    buffer = BoundedBuffer(512)
    reading = sample_reading(temperature_c=temperature)

    assert serialize(reading, ChangeMask.TEMPERATURE, SinkKind.REST, buffer) == 0
    assert serialize(reading, ChangeMask.TEMPERATURE, SinkKind.INFLUX, buffer) == 0

    serialize(reading, ChangeMask.ALL, SinkKind.REST, buffer)
    document = json.loads(buffer.getvalue(), parse_constant=lambda name: pytest.fail(name))
    assert "temperature" not in document
    assert document["humidity"] == 45

    serialize(reading, ChangeMask.ALL, SinkKind.INFLUX, buffer)
    body = buffer.getvalue().decode("utf-8")
    assert "temperature" not in body
    assert "nan" not in body and "inf" not in body
