import random
from collections import deque

import pytest

from airmon.state.ring_buffer import RingBuffer
from airmon.state.time_range import query_since


def _buffer(capacity, times):
    buf = RingBuffer(capacity)
    for t in times:
        buf.add(t, float(t) / 10.0)
    return buf


def _times(samples):
    return [s.time for s in samples]


def test_returns_newer_samples_in_chronological_order():
    buf = _buffer(5, [10, 20, 30, 40, 50])

    assert _times(query_since(buf, 25)) == [30, 40, 50]
    assert _times(query_since(buf, 5)) == [10, 20, 30, 40, 50]
    assert query_since(buf, 50) is None


def test_empty_buffer_returns_sentinel():
    assert query_since(RingBuffer(3), 0) is None


def test_watermark_past_newest_returns_sentinel():
    buf = _buffer(3, [10, 20])
    assert query_since(buf, 20) is None
    assert query_since(buf, 1000) is None


def test_watermark_equal_to_oldest_excludes_it():
    buf = _buffer(4, [10, 20, 30])
    assert _times(query_since(buf, 10)) == [20, 30]


def test_scan_from_either_end_gives_same_answer_after_wrap():
    # Capacity 5 with 8 samples: retained 40..80, cursor in the middle
    buf = _buffer(5, [10, 20, 30, 40, 50, 60, 70, 80])

    # Closer to the oldest time
    assert _times(query_since(buf, 45)) == [50, 60, 70, 80]
    # Closer to the newest time
    assert _times(query_since(buf, 75)) == [80]
    # Before eviction horizon
    assert _times(query_since(buf, 35)) == [40, 50, 60, 70, 80]


def test_duplicate_times_are_all_included_or_excluded():
    buf = _buffer(6, [10, 20, 20, 20, 30])
    assert _times(query_since(buf, 19)) == [20, 20, 20, 30]
    assert _times(query_since(buf, 20)) == [30]


def test_returned_samples_carry_values_and_tags():
    buf = RingBuffer(3)
    buf.add(1, 21.0, "T")
    buf.add(2, 40.0, "H")

    result = query_since(buf, 1)
    assert len(result) == 1
    assert result[0].metric == "H"
    assert result[0].value == 40.0


@pytest.mark.parametrize("capacity", [1, 2, 4, 7])
def test_matches_brute_force_filter(capacity):
    rng = random.Random(100 + capacity)
    buf = RingBuffer(capacity)
    reference = deque(maxlen=capacity)
    t = 0

    for _ in range(60):
        t += rng.choice([0, 1, 3])
        buf.add(t, rng.uniform(0, 1))
        reference.append(t)

        for watermark in range(reference[0] - 2, reference[-1] + 2):
            expected = [x for x in reference if x > watermark]
            result = query_since(buf, watermark)
            if watermark >= reference[-1]:
                assert result is None
            else:
                assert _times(result) == expected
            if watermark < reference[0]:
                assert _times(result) == list(reference)
