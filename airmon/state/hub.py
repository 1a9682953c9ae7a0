"""Owner of the sample store and long-poll broker for one running service."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .long_poll import LongPollBroker, PollResponse
from .sample import Sample
from .sample_store import AppendOutcome, SampleStore
from .snapshot import load_snapshot, write_snapshot

logger = logging.getLogger(__name__)


class SensorHub:
    """
    Store + broker pair with an explicit lifecycle.

    ``start()`` restores the snapshot, ``ingest()`` appends and wakes
    waiting clients, ``poll()`` answers a query immediately or parks it in
    the broker, and ``close()`` tells waiting clients to stop and writes the
    snapshot. All calls must come from the event loop thread.
    """

    def __init__(
        self,
        capacity: int = 5400,
        poll_timeout: float = 60.0,
        snapshot_path: Optional[Path] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.store = SampleStore(capacity)
        self.broker = LongPollBroker(self.store, timeout=poll_timeout, loop=loop)
        self.snapshot_path = Path(snapshot_path) if snapshot_path is not None else None
        self.closing = False

    def start(self) -> None:
        if self.snapshot_path is not None:
            load_snapshot(self.snapshot_path, self.store)
        logger.info(
            "Sensor hub started (capacity=%d, retained=%d, poll_timeout=%.1fs)",
            self.store.capacity,
            self.store.size(),
            self.broker.timeout,
        )

    def ingest(self, sample: Sample) -> AppendOutcome:
        """Append one sample; on success every pending poll is answered."""
        outcome = self.store.append(sample)
        if outcome is AppendOutcome.ACCEPTED:
            self.broker.notify()
        return outcome

    async def poll(self, since: int) -> PollResponse:
        """Samples newer than ``since``, waiting for new data if there are none yet."""
        if self.closing:
            return PollResponse.shutting_down()

        result = self.store.query_since(since)
        if result is not None:
            return PollResponse.data(result)

        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def deliver(response: PollResponse) -> None:
            # The handler may have been cancelled by a disconnecting client
            if not future.done():
                future.set_result(response)

        self.broker.add(deliver, since)
        return await future

    def begin_shutdown(self) -> None:
        """Refuse new polls and release every waiting client with the shutdown status."""
        if self.closing:
            return
        self.closing = True
        logger.info("Shutting down sensor hub...")
        self.broker.shutdown()

    def close(self) -> None:
        """Release waiting clients, then write the snapshot."""
        self.begin_shutdown()
        if self.snapshot_path is None:
            return
        try:
            write_snapshot(self.snapshot_path, self.store.records())
        except OSError as exc:
            logger.error("Could not write snapshot to %s: %s", self.snapshot_path, exc)

    def status(self) -> Dict[str, Any]:
        status = self.store.status()
        status["pending_polls"] = self.broker.pending_count()
        status["closing"] = self.closing
        return status
