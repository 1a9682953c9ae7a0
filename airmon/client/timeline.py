"""Per-metric client-side series used by dashboards."""
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from airmon.state.nearest import nearest_sample
from airmon.state.ring_buffer import RingBuffer
from airmon.state.sample import METRIC_CO2, METRIC_HUMIDITY, METRIC_TEMPERATURE, Sample


def dynamic_min(value: float, step: float) -> float:
    """Largest multiple of ``step`` strictly below ``value``."""
    m = step * math.floor(value / step)
    if m == value:
        return m - step
    return m


def dynamic_max(value: float, step: float) -> float:
    """Smallest multiple of ``step`` strictly above ``value``."""
    m = step * math.ceil(value / step)
    if m == value:
        return m + step
    return m


@dataclass(frozen=True)
class MetricConfig:
    code: str
    label: str
    unit: str
    default_min: float  # axis range while no data is present
    default_max: float
    scale_step: float  # axis bounds snap to multiples of this
    decimals: int = 1

    def format(self, value: float, decimals: Optional[int] = None) -> str:
        digits = self.decimals if decimals is None else decimals
        return f"{value:.{digits}f}{self.unit}"


METRIC_CONFIGS: Dict[str, MetricConfig] = {
    METRIC_TEMPERATURE: MetricConfig(METRIC_TEMPERATURE, "Temperature", "°C", 22.0, 25.0, 1.0),
    METRIC_HUMIDITY: MetricConfig(METRIC_HUMIDITY, "Humidity", "%", 40.0, 60.0, 5.0),
    METRIC_CO2: MetricConfig(METRIC_CO2, "CO₂ concentration", " ppm", 500.0, 700.0, 50.0, decimals=0),
}


class MetricTimeline:
    """Bounded history of one metric with the value range needed for plotting."""

    def __init__(self, config: MetricConfig, capacity: int = 1000):
        self.config = config
        self.buffer: RingBuffer[None] = RingBuffer(capacity)

    def add(self, time: int, value: float) -> None:
        self.buffer.add(time, value)

    def relative_time(self, time: int) -> float:
        """Position of ``time`` between the oldest (0.0) and newest (1.0) sample."""
        if self.buffer.is_empty():
            return 0.0
        span = self.buffer.max_time - self.buffer.min_time
        if span == 0:
            return 0.0
        return (time - self.buffer.min_time) / span

    def nearest_sample(self, fraction: float) -> Optional[Sample]:
        return nearest_sample(self.buffer, fraction)

    def scale_bounds(self) -> Tuple[float, float]:
        """Axis bounds snapped to the metric's step, strictly enclosing the data."""
        if self.buffer.is_empty():
            return self.config.default_min, self.config.default_max
        return (
            dynamic_min(self.buffer.min_value, self.config.scale_step),
            dynamic_max(self.buffer.max_value, self.config.scale_step),
        )

    def latest(self) -> Optional[Sample]:
        return self.buffer.latest()

    def size(self) -> int:
        return self.buffer.size()
