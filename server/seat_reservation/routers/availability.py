"""Availability router: occupied-seat snapshots and live streams."""

import logging
from typing import AsyncGenerator

import anyio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from ..core.dependencies import RequiredAuth, get_availability_synchronizer
from ..schemas.availability import Availability
from ..services.availability_service import AvailabilitySynchronizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/availability", tags=["availability"])

SYNCHRONIZER_DEPENDENCY = Depends(get_availability_synchronizer)


@router.get("/{trip_id}", response_model=Availability)
async def get_availability(
    trip_id: str,
    user: dict = RequiredAuth,
    synchronizer: AvailabilitySynchronizer = SYNCHRONIZER_DEPENDENCY,
) -> JSONResponse:
    """Current occupied seats of a trip."""
    availability = await synchronizer.snapshot(trip_id)
    return JSONResponse(status_code=200, content=availability.model_dump())


@router.get("/{trip_id}/stream")
async def stream_availability(
    trip_id: str,
    user: dict = RequiredAuth,
    synchronizer: AvailabilitySynchronizer = SYNCHRONIZER_DEPENDENCY,
) -> EventSourceResponse:
    """
    Stream availability as Server-Sent Events.

    The first event is ``snapshot``; every later one is ``update`` and is sent
    after a reservation on the trip changes.
    """
    # Fail with 404 before the stream starts
    await synchronizer.snapshot(trip_id)

    async def event_generator() -> AsyncGenerator[dict, None]:
        event_type = "snapshot"
        try:
            async for availability in synchronizer.watch(trip_id):
                yield {"event": event_type, "data": availability.model_dump_json()}
                event_type = "update"
        except anyio.get_cancelled_exc_class():
            logger.info(
                "Availability stream disconnected",
                extra={"trip_id": trip_id, "user_id": user["user_id"]}
            )
            raise

    return EventSourceResponse(event_generator())
