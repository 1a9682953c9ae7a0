"""Fixed-capacity circular store of timestamped values with cached extrema."""
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar
import logging

import numpy as np

from .errors import InvariantViolation, OutOfOrderError
from .sample import Sample

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """
    Bounded buffer keeping the most recent ``capacity`` samples.

    Times and values live in parallel numpy arrays; an optional tag per slot
    (the metric code for the server store, ``None`` for per-metric client
    series) lives in a plain list. Times must be appended in non-decreasing
    order. ``min_time``/``max_time`` and ``min_value``/``max_value`` are kept
    up to date on every append, with a full rescan only when an extremal
    value is evicted.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._times = np.zeros(capacity, dtype=np.int64)
        self._values = np.zeros(capacity, dtype=np.float64)
        self._tags: List[Optional[T]] = [None] * capacity

        self._size = 0
        self._cursor = 0  # next write slot

        self._min_time: Optional[int] = None
        self._max_time: Optional[int] = None
        self._min_value: Optional[float] = None
        self._max_value: Optional[float] = None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, time: int, value: float, tag: Optional[T] = None) -> bool:
        """
        Store a sample in the next slot, evicting the oldest one when full.

        Returns True when the evicted value was a cached extremum; the caller
        must then call ``recalibrate()`` before reading the value range.

        Raises:
            OutOfOrderError: ``time`` is older than the newest retained time.
            InvariantViolation: the slot being overwritten is not the oldest.
        """
        time = int(time)
        value = float(value)

        if self._max_time is not None and time < self._max_time:
            raise OutOfOrderError(time, self._max_time)

        needs_recalibration = False
        full = self._size == self._capacity
        if full:
            evicted_time = int(self._times[self._cursor])
            if evicted_time != self._min_time:
                raise InvariantViolation(
                    f"slot {self._cursor} holds time {evicted_time}, expected oldest time {self._min_time}"
                )
            evicted_value = float(self._values[self._cursor])
            if evicted_value == self._min_value or evicted_value == self._max_value:
                needs_recalibration = True
        else:
            if self._size == 0:
                self._min_time = time
            self._size += 1

        self._max_time = time
        self._times[self._cursor] = time
        self._values[self._cursor] = value
        self._tags[self._cursor] = tag
        self._cursor += 1
        if self._cursor == self._capacity:
            self._cursor = 0

        if full:
            # The cursor now points at the new oldest slot
            self._min_time = int(self._times[self._cursor])

        if not needs_recalibration:
            if self._max_value is None or value > self._max_value:
                self._max_value = value
            if self._min_value is None or value < self._min_value:
                self._min_value = value

        return needs_recalibration

    def add(self, time: int, value: float, tag: Optional[T] = None) -> None:
        """Append and recalibrate when the eviction requires it."""
        if self.append(time, value, tag):
            self.recalibrate()

    def recalibrate(self) -> None:
        """Recompute min/max value with a full scan of the retained slots."""
        if self._size == 0:
            self._min_value = None
            self._max_value = None
            return
        # Slots [0, size) are exactly the retained ones, full or not
        window = self._values[: self._size]
        self._min_value = float(window.min())
        self._max_value = float(window.max())
        logger.debug(
            "Recalibrated value range over %d samples: [%s, %s]",
            self._size,
            self._min_value,
            self._max_value,
        )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def oldest_index(self) -> int:
        """Slot of the oldest sample: 0 until the buffer first fills, then the cursor."""
        return 0 if self._size < self._capacity else self._cursor

    def newest_index(self) -> Optional[int]:
        if self._size == 0:
            return None
        return (self._cursor - 1) % self._capacity

    def next_index(self, index: int) -> int:
        index += 1
        return 0 if index == self._capacity else index

    def prev_index(self, index: int) -> int:
        return self._capacity - 1 if index == 0 else index - 1

    def chronological_indices(self, start: Optional[int] = None) -> Iterator[int]:
        """Yield slot indices from ``start`` (default: oldest) up to the newest."""
        if self._size == 0:
            return
        index = self.oldest_index() if start is None else start
        end = self.next_index(self.newest_index())
        while True:
            yield index
            index = self.next_index(index)
            if index == end:
                break

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def time_at(self, index: int) -> int:
        return int(self._times[index])

    def value_at(self, index: int) -> float:
        return float(self._values[index])

    def tag_at(self, index: int) -> Optional[T]:
        return self._tags[index]

    def sample_at(self, index: int) -> Sample:
        return Sample(time=self.time_at(index), value=self.value_at(index), metric=self._tags[index])

    def __iter__(self) -> Iterator[Sample]:
        for index in self.chronological_indices():
            yield self.sample_at(index)

    def __len__(self) -> int:
        return self._size

    def samples(self) -> List[Sample]:
        """Retained samples, oldest first."""
        return list(self)

    def records(self) -> List[Dict[str, Any]]:
        """Retained samples in ``{"m", "t", "v"}`` form, oldest first."""
        return [sample.to_record() for sample in self]

    def latest(self) -> Optional[Sample]:
        index = self.newest_index()
        return self.sample_at(index) if index is not None else None

    def is_empty(self) -> bool:
        return self._size == 0

    def is_full(self) -> bool:
        return self._size == self._capacity

    def size(self) -> int:
        """Current number of retained samples."""
        return self._size

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def min_time(self) -> Optional[int]:
        return self._min_time

    @property
    def max_time(self) -> Optional[int]:
        return self._max_time

    @property
    def min_value(self) -> Optional[float]:
        return self._min_value

    @property
    def max_value(self) -> Optional[float]:
        return self._max_value
