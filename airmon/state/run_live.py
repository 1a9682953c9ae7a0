"""CLI entrypoint to run the live sensor store and long-poll server."""
import argparse
import asyncio
import logging
from pathlib import Path

import uvicorn

from airmon.config import (
    LONG_POLL_TIMEOUT,
    MOCK_INTERVAL,
    SENSOR_SOURCE,
    SERVER_HOST,
    SERVER_PORT,
    SNAPSHOT_PATH,
    STORE_CAPACITY,
    setup_logging,
)
from airmon.ingestion.sensor_source import build_source
from .hub import SensorHub
from .service import create_app

logger = logging.getLogger(__name__)


class HubServer(uvicorn.Server):
    """Uvicorn server that releases waiting long polls as soon as a stop signal arrives.

    Without this, uvicorn would wait for every parked poll to time out
    before running the app's shutdown.
    """

    def __init__(self, config: uvicorn.Config, hub: SensorHub):
        super().__init__(config)
        self.hub = hub

    def handle_exit(self, sig, frame) -> None:
        try:
            asyncio.get_running_loop().call_soon_threadsafe(self.hub.begin_shutdown)
        except RuntimeError:
            self.hub.begin_shutdown()
        super().handle_exit(sig, frame)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the live air monitor server")
    parser.add_argument(
        "--host",
        default=SERVER_HOST,
        help=f"Bind address (default: {SERVER_HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=SERVER_PORT,
        help=f"HTTP port (default: {SERVER_PORT})",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=STORE_CAPACITY,
        help=f"Number of samples retained (default: {STORE_CAPACITY})",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=SNAPSHOT_PATH,
        help=f"Snapshot file restored at startup and written at shutdown (default: {SNAPSHOT_PATH})",
    )
    parser.add_argument(
        "--source",
        choices=("mock", "stdin"),
        default=SENSOR_SOURCE,
        help="Where readings come from: synthetic data or driver lines on stdin",
    )
    parser.add_argument(
        "--mock-interval",
        type=float,
        default=MOCK_INTERVAL,
        help="Seconds between synthetic readings",
    )
    parser.add_argument(
        "--poll-timeout",
        type=float,
        default=LONG_POLL_TIMEOUT,
        help="Seconds a long poll waits before the client is told to retry",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)",
    )
    args = parser.parse_args()

    if args.capacity <= 0:
        parser.error("--capacity must be positive")
    if args.poll_timeout <= 0:
        parser.error("--poll-timeout must be positive")

    setup_logging(level=args.log_level)

    hub = SensorHub(
        capacity=args.capacity,
        poll_timeout=args.poll_timeout,
        snapshot_path=args.snapshot,
    )
    source = build_source(args.source, interval=args.mock_interval)
    app = create_app(hub=hub, source=source)

    config = uvicorn.Config(app, host=args.host, port=args.port, log_config=None)
    server = HubServer(config, hub)
    logger.info("Serving on http://%s:%d", args.host, args.port)
    server.run()


if __name__ == "__main__":  # pragma: no cover
    main()
