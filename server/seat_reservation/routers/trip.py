"""Trip router for schedules and seat layouts."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminAuth, RequiredAuth, get_trip_service
from ..core.exceptions import ValidationError
from ..schemas.trip import CreateTripRequest, SearchTripsRequest, SearchTripsResponse, SeatLayout, Trip
from ..services.seat_layout import AISLE, generate_seat_layout, layout_rows
from ..services.trip_service import TripService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/trip", tags=["trip"])
layout_router = APIRouter(prefix="/v1/layout", tags=["trip"])

SERVICE_DEPENDENCY = Depends(get_trip_service)


@router.post("/create", response_model=Trip, status_code=201)
async def create_trip(
    request: CreateTripRequest,
    user: dict = AdminAuth,
    service: TripService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Schedule a trip on an active route (admin only)."""
    trip = await service.create_trip(request)
    return JSONResponse(
        status_code=201,
        content=Trip.model_validate(trip).model_dump(mode="json")
    )


@router.post("/search", response_model=SearchTripsResponse)
async def search_trips(
    request: SearchTripsRequest,
    user: dict = RequiredAuth,
    service: TripService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Search trips by route and date.

    Results are ordered by date then departure time.
    """
    trips = await service.search_trips(request)
    response_data = SearchTripsResponse(items=[Trip.model_validate(trip) for trip in trips])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.get("/{trip_id}/layout", response_model=SeatLayout)
async def trip_layout(
    trip_id: str,
    user: dict = RequiredAuth,
    service: TripService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Seat map of a trip."""
    layout = await service.get_layout(trip_id)
    response_data = SeatLayout(
        trip_id=trip_id,
        capacity=sum(1 for seat in layout if seat != AISLE),
        layout=layout,
        rows=layout_rows(layout),
    )
    return JSONResponse(status_code=200, content=response_data.model_dump())


@layout_router.get("", response_model=SeatLayout)
async def layout_for_capacity(
    capacity: int = Query(..., description="Number of seats"),
    rear_bench: int = Query(0, ge=0, description="Seats on the back bench"),
) -> JSONResponse:
    """Seat map for an arbitrary capacity."""
    try:
        layout = generate_seat_layout(capacity, rear_bench=rear_bench)
    except ValueError as e:
        raise ValidationError(detail=str(e), errors={"capacity": str(e)}) from e

    response_data = SeatLayout(capacity=capacity, layout=layout, rows=layout_rows(layout))
    return JSONResponse(status_code=200, content=response_data.model_dump())
