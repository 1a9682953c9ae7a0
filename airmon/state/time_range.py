"""Watermark range query over a ring buffer."""
from typing import List, Optional

from .ring_buffer import RingBuffer
from .sample import Sample


def first_index_after(buffer: RingBuffer, watermark: int) -> int:
    """
    Slot of the oldest sample with ``time > watermark``.

    Requires ``min_time <= watermark < max_time``. The scan starts from the
    boundary whose time is closer to the watermark and walks toward it.
    """
    dist_from_min = abs(watermark - buffer.min_time)
    dist_from_max = abs(watermark - buffer.max_time)

    if dist_from_min < dist_from_max:
        index = buffer.oldest_index()
        while buffer.time_at(index) <= watermark:
            index = buffer.next_index(index)
        return index

    index = buffer.newest_index()
    while True:
        prev = buffer.prev_index(index)
        if buffer.time_at(prev) <= watermark:
            return index
        index = prev


def query_since(buffer: RingBuffer, watermark: int) -> Optional[List[Sample]]:
    """
    Return retained samples strictly newer than ``watermark``, oldest first.

    Returns None ("no newer data yet") when the buffer is empty or the
    watermark is at or past the newest time. A watermark older than every
    retained sample yields the whole retained set.
    """
    if buffer.is_empty() or watermark >= buffer.max_time:
        return None
    if watermark < buffer.min_time:
        return buffer.samples()

    start = first_index_after(buffer, watermark)
    return [buffer.sample_at(index) for index in buffer.chronological_indices(start)]
