"""Long-poll dashboard client feeding per-metric timelines."""
from __future__ import annotations

import argparse
import logging
import time
from typing import Any, Dict, Optional

import requests

from airmon.config import CLIENT_CAPACITY, CLIENT_SERVER_URL, setup_logging
from airmon.state.errors import OutOfOrderError
from airmon.state.sample import METRICS, Sample
from .timeline import METRIC_CONFIGS, MetricTimeline

logger = logging.getLogger(__name__)

RESULT_DATA = "data"
RESULT_RETRY = "retry"
RESULT_SHUTDOWN = "shutdown"
RESULT_INVALID = "invalid"


class DashboardPoller:
    """
    Poll ``/get?since=<last_event>`` and route samples into per-metric timelines.

    The watermark advances to the newest time seen. A ``retry`` answer is
    re-issued immediately with the same watermark; ``shutdown`` stops the loop.
    """

    def __init__(
        self,
        server_url: str,
        capacity: int = 1000,
        request_timeout: float = 75.0,
        error_backoff: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.request_timeout = request_timeout
        self.error_backoff = error_backoff
        self.session = session or requests.Session()
        self.timelines: Dict[str, MetricTimeline] = {
            metric: MetricTimeline(METRIC_CONFIGS[metric], capacity) for metric in METRICS
        }
        self.last_event = 0
        self.stopped = False

    def run(self, max_polls: Optional[int] = None) -> None:
        """Poll until the server shuts down (or ``max_polls`` requests were made)."""
        logger.info("Starting DashboardPoller against %s", self.server_url)
        polls = 0
        try:
            while not self.stopped and (max_polls is None or polls < max_polls):
                polls += 1
                try:
                    self.poll_once()
                except requests.RequestException as exc:
                    logger.error("Poll failed: %s", exc)
                    time.sleep(self.error_backoff)
                except Exception as exc:
                    logger.error("Error handling poll response: %s", exc, exc_info=True)
                    time.sleep(self.error_backoff)
        except KeyboardInterrupt:
            logger.info("DashboardPoller stopped by user")

    def poll_once(self) -> str:
        resp = self.session.get(
            f"{self.server_url}/get",
            params={"since": self.last_event},
            timeout=self.request_timeout,
        )
        resp.raise_for_status()
        return self.process_response(resp.json())

    def process_response(self, payload: Dict[str, Any]) -> str:
        status = payload.get("status")
        if status == RESULT_SHUTDOWN:
            logger.warning("Server shutting down, reload once it is back")
            self.stopped = True
            return RESULT_SHUTDOWN
        if status == RESULT_RETRY:
            return RESULT_RETRY

        records = payload.get("data")
        if not isinstance(records, list):
            logger.warning("Unexpected poll response: %s", payload)
            return RESULT_INVALID

        for record in records:
            try:
                sample = Sample.from_record(record)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed record %r: %s", record, exc)
                continue
            timeline = self.timelines.get(sample.metric)
            if timeline is None:
                logger.debug("Skipping sample for unknown metric %r", sample.metric)
            else:
                try:
                    timeline.add(sample.time, sample.value)
                except OutOfOrderError as exc:
                    logger.warning("Dropping %s sample: %s", sample.metric, exc)
            if sample.time > self.last_event:
                self.last_event = sample.time

        if records:
            logger.info("%s", self.summary())
        return RESULT_DATA

    def summary(self) -> str:
        """One-line view of the latest value and axis range of every metric."""
        parts = []
        for metric, timeline in self.timelines.items():
            cfg = timeline.config
            latest = timeline.latest()
            low, high = timeline.scale_bounds()
            current = cfg.format(latest.value) if latest is not None else "n/a"
            parts.append(f"{cfg.label}: {current} [{cfg.format(low, 0)}..{cfg.format(high, 0)}]")
        return " | ".join(parts)


def main() -> None:
    parser = argparse.ArgumentParser(description="Follow the air monitor from the terminal")
    parser.add_argument(
        "--url",
        default=CLIENT_SERVER_URL,
        help=f"Server base URL (default: {CLIENT_SERVER_URL})",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=CLIENT_CAPACITY,
        help=f"Samples kept per metric (default: {CLIENT_CAPACITY})",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)",
    )
    args = parser.parse_args()

    setup_logging(level=args.log_level)
    DashboardPoller(args.url, capacity=args.capacity).run()


if __name__ == "__main__":  # pragma: no cover
    main()
