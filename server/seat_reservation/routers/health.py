"""Health check router."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import get_store
from ..core.exceptions import StorageError
from ..schemas.health import HealthResponse, HealthStatus
from ..services.reservation_store import ReservationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping() -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status and timestamp.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        timestamp=datetime.now(timezone.utc),
        version="1.0.0"
    )

    logger.debug(
        "Health check requested",
        extra={"status": response_data.status}
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )


@router.post("/ready", response_model=HealthResponse)
async def health_ready(store: ReservationStore = Depends(get_store)) -> JSONResponse:
    """
    Readiness check that round-trips the reservation store.

    Returns 503 with status ``degraded`` when the database is unreachable.
    """
    status = HealthStatus.HEALTHY
    try:
        await store.ping()
    except StorageError:
        status = HealthStatus.DEGRADED

    response_data = HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc),
        version="1.0.0",
        checks={"database": "ok" if status == HealthStatus.HEALTHY else "unavailable"}
    )
    return JSONResponse(
        status_code=200 if status == HealthStatus.HEALTHY else 503,
        content=response_data.model_dump(mode="json")
    )
