"""Nearest-sample lookup by relative position on the time axis."""
from typing import Optional

from .ring_buffer import RingBuffer
from .sample import Sample


def target_time(buffer: RingBuffer, fraction: float) -> float:
    """Absolute time at ``fraction`` of the way from the oldest to the newest sample."""
    return buffer.min_time + fraction * (buffer.max_time - buffer.min_time)


def nearest_index(buffer: RingBuffer, fraction: float) -> Optional[int]:
    """
    Slot of the retained sample closest in time to ``target_time(fraction)``.

    Times are non-decreasing in scan order, so the distance to the target
    falls and then rises. The scan stops at the first increase and returns
    the slot before it. An equal distance keeps the earlier slot.
    Returns None when the buffer is empty.
    """
    if buffer.is_empty():
        return None

    target = target_time(buffer, fraction)
    best_index = None
    best_delta = float("inf")
    for index in buffer.chronological_indices():
        delta = abs(buffer.time_at(index) - target)
        if delta > best_delta:
            break
        if delta < best_delta:
            best_delta = delta
            best_index = index
    return best_index


def nearest_sample(buffer: RingBuffer, fraction: float) -> Optional[Sample]:
    index = nearest_index(buffer, fraction)
    return buffer.sample_at(index) if index is not None else None
