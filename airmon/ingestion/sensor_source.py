"""Sensor reading sources and the pump feeding them into the hub.

The hardware driver and the conversion of raw device values into
engineering units live outside this package. A source only has to yield
``Reading(metric, value)`` pairs with values already converted; the pump
stamps each one with its arrival time.
"""
from __future__ import annotations

import asyncio
import logging
import math
import random
import sys
import time
from typing import AsyncIterator, Callable, NamedTuple, Optional, Protocol, TextIO

from airmon.config import MOCK_DATA_SEED
from airmon.state.hub import SensorHub
from airmon.state.sample import METRIC_CO2, METRIC_HUMIDITY, METRIC_TEMPERATURE, METRICS, Sample
from airmon.state.sample_store import AppendOutcome

logger = logging.getLogger(__name__)


class Reading(NamedTuple):
    metric: str
    value: float


class ReadingSource(Protocol):
    def readings(self) -> AsyncIterator[Reading]:
        ...


def now_ms() -> int:
    """Arrival instant in epoch milliseconds."""
    return int(time.time() * 1000)


def parse_line(line: str) -> Optional[Reading]:
    """
    Parse a ``"<metric> <value> [ignored...]"`` driver line.

    Returns None for blank lines, unknown metric codes and unparsable or
    non-finite values.
    """
    words = line.split()
    if len(words) < 2 or words[0] not in METRICS:
        return None
    try:
        value = float(words[1])
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return Reading(words[0], value)


class LineStreamSource:
    """Readings from a text stream written by the external driver (e.g. stdin)."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    async def readings(self) -> AsyncIterator[Reading]:
        loop = asyncio.get_running_loop()
        while True:
            # Blocking readline runs in the default executor
            line = await loop.run_in_executor(None, self.stream.readline)
            if not line:
                logger.info("Driver stream closed")
                return
            reading = parse_line(line)
            if reading is None:
                logger.debug("Ignoring driver line %r", line.rstrip())
                continue
            yield reading


class MockSensorSource:
    """
    Synthetic air-quality readings for development.

    Cycles through temperature, humidity and CO2, applying a bounded random
    walk to each. With the default interval this matches the real device's
    rate of three readings every two seconds.
    """

    BASELINES = {
        METRIC_TEMPERATURE: 22.5,  # degC
        METRIC_HUMIDITY: 45.0,  # %
        METRIC_CO2: 600.0,  # ppm
    }

    STEPS = {
        METRIC_TEMPERATURE: 0.05,
        METRIC_HUMIDITY: 0.3,
        METRIC_CO2: 8.0,
    }

    LIMITS = {
        METRIC_TEMPERATURE: (10.0, 35.0),
        METRIC_HUMIDITY: (0.0, 100.0),
        METRIC_CO2: (400.0, 5000.0),
    }

    def __init__(self, interval: float = 0.667, seed: Optional[int] = None, limit: Optional[int] = None):
        """
        Args:
            interval: Seconds between readings
            seed: Random seed for reproducibility
            limit: Stop after this many readings (None runs forever)
        """
        self.interval = interval
        self.limit = limit
        self.seed = seed if seed is not None else MOCK_DATA_SEED
        self._rng = random.Random(self.seed)
        self._current = dict(self.BASELINES)
        self._turn = 0
        logger.info("MockSensorSource initialized with seed=%d interval=%.3fs", self.seed, interval)

    def next_reading(self) -> Reading:
        metric = METRICS[self._turn % len(METRICS)]
        self._turn += 1
        low, high = self.LIMITS[metric]
        value = self._current[metric] + self._rng.gauss(0.0, self.STEPS[metric])
        value = min(max(value, low), high)
        self._current[metric] = value
        if metric == METRIC_CO2:
            # The device reports whole ppm
            value = float(round(value))
        return Reading(metric, value)

    async def readings(self) -> AsyncIterator[Reading]:
        produced = 0
        while self.limit is None or produced < self.limit:
            yield self.next_reading()
            produced += 1
            await asyncio.sleep(self.interval)


async def pump(source: ReadingSource, hub: SensorHub, clock: Callable[[], int] = now_ms) -> int:
    """
    Feed readings from ``source`` into ``hub`` until the source ends.

    Out-of-order points (clock regressions) are dropped by the store. A
    corrupted store stops the pump. Returns the number of accepted samples.
    """
    accepted = 0
    async for reading in source.readings():
        sample = Sample(time=clock(), value=reading.value, metric=reading.metric)
        outcome = hub.ingest(sample)
        if outcome is AppendOutcome.ACCEPTED:
            accepted += 1
        elif outcome is AppendOutcome.CORRUPTED:
            logger.critical("Stopping ingestion: sample store is corrupted")
            break
    logger.info("Ingestion finished after %d accepted samples", accepted)
    return accepted


def build_source(kind: str, interval: float = 0.667, stream: Optional[TextIO] = None) -> ReadingSource:
    """Source selected by name: ``mock`` or ``stdin``."""
    if kind == "mock":
        return MockSensorSource(interval=interval)
    if kind == "stdin":
        return LineStreamSource(stream or sys.stdin)
    raise ValueError(f"Unknown sensor source: {kind}")
