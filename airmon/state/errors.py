"""Exceptions raised by the sample store."""


class StoreError(Exception):
    """Base class for ring buffer and store failures."""

    pass


class OutOfOrderError(StoreError):
    """Raised when a sample is older than the newest retained sample."""

    def __init__(self, time: int, max_time: int):
        super().__init__(f"sample time {time} is older than newest retained time {max_time}")
        self.time = time
        self.max_time = max_time


class InvariantViolation(StoreError):
    """Raised when the slot about to be overwritten does not hold the oldest time.

    This can only happen if the buffer was mutated outside ``append``; the
    cached aggregates can no longer be trusted.
    """

    pass
