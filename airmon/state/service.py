"""FastAPI app factory wiring the sensor hub and its ingestion source."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from airmon.config import LONG_POLL_TIMEOUT, SNAPSHOT_PATH, STORE_CAPACITY
from airmon.ingestion.sensor_source import ReadingSource, pump
from . import store_api
from .hub import SensorHub

logger = logging.getLogger(__name__)


def create_app(hub: Optional[SensorHub] = None, source: Optional[ReadingSource] = None) -> FastAPI:
    hub = hub or SensorHub(
        capacity=STORE_CAPACITY,
        poll_timeout=LONG_POLL_TIMEOUT,
        snapshot_path=SNAPSHOT_PATH,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        hub.start()
        ingest_task = asyncio.create_task(pump(source, hub)) if source is not None else None
        logger.info("airmon service started")
        yield
        if ingest_task is not None:
            ingest_task.cancel()
            try:
                await ingest_task
            except asyncio.CancelledError:
                pass
            except Exception as exc:
                logger.error("Ingestion task failed: %s", exc, exc_info=True)
        hub.close()
        logger.info("airmon service stopped")

    app = FastAPI(title="airmon", version="0.1.0", lifespan=lifespan)
    store_api.attach_to_app(app, hub)
    return app
