"""
In-memory sensor state (ring buffer, range queries, long-poll broker).
"""

from .sample import Sample
from .errors import StoreError, OutOfOrderError, InvariantViolation

# Buffers
from .ring_buffer import RingBuffer
from .sample_store import AppendOutcome, SampleStore

# Queries
from .time_range import query_since
from .nearest import nearest_index, nearest_sample

# Delivery
from .long_poll import LongPollBroker, PollResponse
from .hub import SensorHub

__all__ = [
    "Sample",
    "StoreError",
    "OutOfOrderError",
    "InvariantViolation",

    # Buffers
    "RingBuffer",
    "AppendOutcome",
    "SampleStore",

    # Queries
    "query_since",
    "nearest_index",
    "nearest_sample",

    # Delivery
    "LongPollBroker",
    "PollResponse",
    "SensorHub",
]
