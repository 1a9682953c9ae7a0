import asyncio
import io

import pytest

from airmon.ingestion.sensor_source import (
    LineStreamSource,
    MockSensorSource,
    Reading,
    build_source,
    parse_line,
    pump,
)
from airmon.state.hub import SensorHub
from airmon.state.sample_store import AppendOutcome


async def _collect(source):
    return [reading async for reading in source.readings()]


def _clock(*times):
    it = iter(times)
    return lambda: next(it)


def test_parse_line():
    assert parse_line("T 22.43 (extra words)\n") == Reading("T", 22.43)
    assert parse_line("C 612") == Reading("C", 612.0)
    assert parse_line("H 44.5") == Reading("H", 44.5)
    assert parse_line("") is None
    assert parse_line("Bad number of bytes read") is None
    assert parse_line("T warm") is None
    assert parse_line("X 1.0") is None
    assert parse_line("T nan") is None
    assert parse_line("H inf") is None
    assert parse_line("C -inf") is None


def test_line_stream_source_skips_noise():
    stream = io.StringIO("T 21.0 (21.00 C)\nMissing packet terminator\n\nC 640\n")
    readings = asyncio.run(_collect(LineStreamSource(stream)))
    assert readings == [Reading("T", 21.0), Reading("C", 640.0)]


def test_mock_source_cycles_metrics_within_limits():
    source = MockSensorSource(interval=0.0, seed=3, limit=9)
    readings = asyncio.run(_collect(source))

    assert [r.metric for r in readings] == ["T", "H", "C"] * 3
    for r in readings:
        low, high = MockSensorSource.LIMITS[r.metric]
        assert low <= r.value <= high
    assert all(r.value == int(r.value) for r in readings if r.metric == "C")


def test_mock_source_is_reproducible():
    a = MockSensorSource(interval=0.0, seed=11)
    b = MockSensorSource(interval=0.0, seed=11)
    assert [a.next_reading() for _ in range(6)] == [b.next_reading() for _ in range(6)]


def test_pump_stamps_arrival_time_and_appends():
    hub = SensorHub(capacity=20)
    source = MockSensorSource(interval=0.0, seed=1, limit=4)

    accepted = asyncio.run(pump(source, hub, clock=_clock(1000, 1667, 2333, 3000)))

    assert accepted == 4
    assert [r["t"] for r in hub.store.records()] == [1000, 1667, 2333, 3000]
    assert [r["m"] for r in hub.store.records()] == ["T", "H", "C", "T"]


def test_pump_drops_clock_regressions():
    hub = SensorHub(capacity=20)
    source = MockSensorSource(interval=0.0, seed=1, limit=3)

    accepted = asyncio.run(pump(source, hub, clock=_clock(2000, 1500, 2500)))

    assert accepted == 2
    assert [r["t"] for r in hub.store.records()] == [2000, 2500]


def test_pump_stops_on_corrupted_store():
    class _CorruptHub:
        calls = 0

        def ingest(self, sample):
            self.calls += 1
            return AppendOutcome.CORRUPTED

    hub = _CorruptHub()
    accepted = asyncio.run(pump(MockSensorSource(interval=0.0, limit=5), hub, clock=_clock(1, 2, 3, 4, 5)))

    assert accepted == 0
    assert hub.calls == 1


def test_build_source():
    assert isinstance(build_source("mock", interval=0.1), MockSensorSource)
    assert isinstance(build_source("stdin", stream=io.StringIO("")), LineStreamSource)
    with pytest.raises(ValueError):
        build_source("hidraw")


def test_non_finite_driver_values_never_reach_the_store():
    hub = SensorHub(capacity=3)
    source = LineStreamSource(io.StringIO("T 21.0\nT nan\nT 22.0\nT 23.0\n"))

    accepted = asyncio.run(pump(source, hub, clock=_clock(1000, 2000, 3000)))

    assert accepted == 3
    assert [r["v"] for r in hub.store.records()] == [21.0, 22.0, 23.0]
    status = hub.status()
    assert status["min_value"] == 21.0
    assert status["max_value"] == 23.0
