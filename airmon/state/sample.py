"""Immutable timestamped sensor sample."""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

METRIC_TEMPERATURE = "T"
METRIC_HUMIDITY = "H"
METRIC_CO2 = "C"

METRICS = (METRIC_TEMPERATURE, METRIC_HUMIDITY, METRIC_CO2)


@dataclass(frozen=True)
class Sample:
    time: int  # epoch milliseconds
    value: float
    metric: Optional[str] = None  # metric code, None for untagged series

    def to_record(self) -> Dict[str, Any]:
        """Wire/snapshot form ``{"m", "t", "v"}``."""
        return {"m": self.metric, "t": self.time, "v": self.value}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Sample":
        """
        Build a sample from its ``{"m", "t", "v"}`` form.

        Raises ValueError for NaN or infinite values, which JSON responses
        cannot carry.
        """
        value = float(record["v"])
        if not math.isfinite(value):
            raise ValueError(f"non-finite sample value: {record['v']!r}")
        return cls(time=int(record["t"]), value=value, metric=record.get("m"))
