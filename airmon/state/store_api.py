"""FastAPI adapters for the sensor hub (long-poll query and status)."""
import logging

try:
    from fastapi import APIRouter, HTTPException, Query, Request
except ImportError as exc:  # pragma: no cover - optional dependency
    raise ImportError(
        "FastAPI is required for airmon.state.store_api; install fastapi to use these endpoints"
    ) from exc

from .hub import SensorHub

logger = logging.getLogger(__name__)

router = APIRouter()


def get_hub(request: Request) -> SensorHub:
    """Return the hub attached to the running app."""
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise HTTPException(status_code=503, detail="Sensor hub not running")
    return hub


@router.get("/get")
async def get_since(
    request: Request,
    since: int = Query(0, description="Exclusive lower bound in epoch ms; 0 returns all retained data"),
):
    hub = get_hub(request)
    response = await hub.poll(since)
    return response.to_dict()


@router.get("/nearest")
def get_nearest(
    request: Request,
    fraction: float = Query(..., ge=0.0, le=1.0, description="Relative position between oldest and newest sample"),
):
    hub = get_hub(request)
    sample = hub.store.nearest(fraction)
    if sample is None:
        raise HTTPException(status_code=404, detail="No samples available")
    return sample.to_record()


@router.get("/status")
def get_status(request: Request):
    return get_hub(request).status()


def attach_to_app(app, hub: SensorHub) -> None:
    """Store the hub on the app and include the query routes."""
    app.state.hub = hub
    app.include_router(router)
    logger.info("Attached sensor hub routes")
