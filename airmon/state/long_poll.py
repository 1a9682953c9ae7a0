"""Long-poll broker holding queries until new data, a timeout, or shutdown."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .sample import Sample
from .sample_store import SampleStore

logger = logging.getLogger(__name__)

KIND_DATA = "data"
KIND_RETRY = "retry"
KIND_SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class PollResponse:
    """Outcome delivered to a waiting client."""

    kind: str
    # Query result at delivery time; None when nothing was newer than the watermark
    samples: Optional[List[Sample]] = None

    @classmethod
    def data(cls, samples: Optional[List[Sample]]) -> "PollResponse":
        return cls(kind=KIND_DATA, samples=samples)

    @classmethod
    def retry(cls) -> "PollResponse":
        return cls(kind=KIND_RETRY)

    @classmethod
    def shutting_down(cls) -> "PollResponse":
        return cls(kind=KIND_SHUTDOWN)

    def to_dict(self) -> Dict[str, Any]:
        if self.kind != KIND_DATA:
            return {"status": self.kind}
        return {"data": [s.to_record() for s in self.samples or []]}


Requester = Callable[[PollResponse], None]


@dataclass
class PendingRequest:
    requester: Requester
    watermark: int


class LongPollBroker:
    """
    Pending long-poll queries sharing a single timeout timer.

    Every method is synchronous and meant to run on the event loop thread,
    so the pending list needs no lock. The timer is armed by the first
    registration and cancelled by ``notify`` or ``shutdown``; when it fires
    every waiting client is told to retry.

    Limitations: a client that disconnects stays pending until the next
    delivery, and the pending list is unbounded.
    """

    def __init__(
        self,
        store: SampleStore,
        timeout: float = 60.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._store = store
        self.timeout = timeout
        self._loop = loop
        self._pending: List[PendingRequest] = []
        self._timer: Optional[asyncio.TimerHandle] = None

    def add(self, requester: Requester, watermark: int) -> None:
        """Register a waiting query; arms the shared timer if none is running."""
        self._pending.append(PendingRequest(requester, watermark))
        if self._timer is None:
            loop = self._loop or asyncio.get_running_loop()
            self._timer = loop.call_later(self.timeout, self.serve)
        logger.debug("Long poll registered since=%s pending=%d", watermark, len(self._pending))

    def notify(self) -> None:
        """Answer every pending query with what it can see right now."""
        pending = self._take_pending()
        self._cancel_timer()
        for request in pending:
            result = self._store.query_since(request.watermark)
            if result is None:
                logger.debug("Notify found nothing newer than %s", request.watermark)
            self._deliver(request, PollResponse.data(result))

    def serve(self) -> None:
        """Timer callback: tell every waiting client to re-issue its query."""
        self._timer = None
        pending = self._take_pending()
        if pending:
            logger.info("Long-poll timeout, asking %d clients to retry", len(pending))
        for request in pending:
            self._deliver(request, PollResponse.retry())

    def shutdown(self) -> None:
        """Send the terminal shutdown status to every waiting client."""
        pending = self._take_pending()
        self._cancel_timer()
        logger.info("Notifying %d pending clients of shutdown", len(pending))
        for request in pending:
            self._deliver(request, PollResponse.shutting_down())

    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    def _take_pending(self) -> List[PendingRequest]:
        pending, self._pending = self._pending, []
        return pending

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _deliver(self, request: PendingRequest, response: PollResponse) -> None:
        try:
            request.requester(response)
        except Exception as exc:
            logger.error("Failed to deliver %s response: %s", response.kind, exc, exc_info=True)
