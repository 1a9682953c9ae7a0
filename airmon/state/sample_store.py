"""Server-side store of metric-tagged samples."""
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from .errors import InvariantViolation, OutOfOrderError
from .nearest import nearest_sample
from .ring_buffer import RingBuffer
from .sample import Sample
from .time_range import query_since

logger = logging.getLogger(__name__)


class AppendOutcome(str, Enum):
    ACCEPTED = "accepted"
    OUT_OF_ORDER = "out_of_order"
    CORRUPTED = "corrupted"


class SampleStore:
    """
    Single-writer store of the most recent samples across all metrics.

    Buffer errors are turned into an ``AppendOutcome`` so the ingestion side
    decides whether to drop, abort or escalate. After an invariant violation
    the store refuses every further append.
    """

    def __init__(self, capacity: int = 5400):
        self._buffer: RingBuffer[str] = RingBuffer(capacity)
        self._corrupted = False

    def append(self, sample: Sample) -> AppendOutcome:
        if self._corrupted:
            return AppendOutcome.CORRUPTED
        try:
            if self._buffer.append(sample.time, sample.value, sample.metric):
                self._buffer.recalibrate()
        except OutOfOrderError as exc:
            logger.warning("Dropping out-of-order sample %s: %s", sample, exc)
            return AppendOutcome.OUT_OF_ORDER
        except InvariantViolation as exc:
            logger.critical("Sample store corrupted, refusing further appends: %s", exc)
            self._corrupted = True
            return AppendOutcome.CORRUPTED
        return AppendOutcome.ACCEPTED

    def query_since(self, watermark: int) -> Optional[List[Sample]]:
        """Samples newer than ``watermark`` (oldest first) or None if there are none yet."""
        return query_since(self._buffer, watermark)

    def nearest(self, fraction: float) -> Optional[Sample]:
        return nearest_sample(self._buffer, fraction)

    def records(self) -> List[Dict[str, Any]]:
        """All retained samples in snapshot form, oldest first."""
        return self._buffer.records()

    def status(self) -> Dict[str, Any]:
        return {
            "size": self._buffer.size(),
            "capacity": self._buffer.capacity,
            "min_time": self._buffer.min_time,
            "max_time": self._buffer.max_time,
            "min_value": self._buffer.min_value,
            "max_value": self._buffer.max_value,
            "corrupted": self._corrupted,
        }

    @property
    def buffer(self) -> RingBuffer[str]:
        return self._buffer

    @property
    def corrupted(self) -> bool:
        return self._corrupted

    def size(self) -> int:
        return self._buffer.size()

    @property
    def capacity(self) -> int:
        return self._buffer.capacity
