"""ASGI entrypoint: ``uvicorn app:app``."""
from airmon.config import MOCK_INTERVAL, SENSOR_SOURCE
from airmon.ingestion.sensor_source import build_source
from airmon.state.service import create_app

app = create_app(source=build_source(SENSOR_SOURCE, interval=MOCK_INTERVAL))
