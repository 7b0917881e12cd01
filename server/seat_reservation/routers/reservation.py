"""Reservation router for seat reservation operations."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminAuth, RequiredAuth, get_reservation_service
from ..core.exceptions import ProblemDetailsException
from ..schemas.common import PROBLEM_RESPONSES, Problem
from ..schemas.reservation import Reservation, ReservationIdRequest, ReservationList, ReserveSeatRequest
from ..services.reservation_service import (
    MY_RESERVATIONS_LIMIT,
    RECENT_RESERVATIONS_LIMIT,
    ReservationService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/reservation", tags=["reservation"])

# Define dependencies to avoid B008 linting errors
SERVICE_DEPENDENCY = Depends(get_reservation_service)

RESERVE_RESPONSES = {
    **PROBLEM_RESPONSES,
    409: {"model": Problem, "description": "Seat already held (SEAT_TAKEN) or trip inactive (TRIP_INACTIVE)"},
}


def _reservation_response(reservation, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Reservation.model_validate(reservation).model_dump(mode="json")
    )


def _list_response(reservations) -> JSONResponse:
    response_data = ReservationList(
        items=[Reservation.model_validate(reservation) for reservation in reservations]
    )
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/reserve", response_model=Reservation, status_code=201, responses=RESERVE_RESPONSES)
async def reserve_seat(
    request: ReserveSeatRequest,
    user: dict = RequiredAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Reserve one seat on a trip.

    Exactly one of any number of concurrent requests for the same seat
    succeeds; the others receive 409 with code SEAT_TAKEN.
    """
    try:
        reservation = await service.reserve(
            trip_id=request.trip_id,
            seat_id=request.seat_id,
            passenger_name=request.passenger_name,
            passenger_phone=request.passenger_phone,
            user=user,
        )
        return _reservation_response(reservation, status_code=201)

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in seat reservation",
            extra={
                "trip_id": request.trip_id,
                "seat_id": request.seat_id,
                "user_id": user["user_id"],
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/cancel", response_model=Reservation)
async def cancel_reservation(
    request: ReservationIdRequest,
    user: dict = RequiredAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Cancel a reservation and free its seat.

    Cancelling an already cancelled reservation returns it unchanged.
    """
    reservation = await service.cancel(request.reservation_id, user)
    return _reservation_response(reservation)


@router.post("/retract", response_model=Reservation)
async def retract_reservation(
    request: ReservationIdRequest,
    user: dict = AdminAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Release a held seat regardless of owner (admin only)."""
    reservation = await service.retract(request.reservation_id)
    return _reservation_response(reservation)


@router.post("/get", response_model=Reservation)
async def get_reservation(
    request: ReservationIdRequest,
    user: dict = RequiredAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Get one of the caller's reservations (admins may read any)."""
    reservation = await service.get(request.reservation_id, user)
    return _reservation_response(reservation)


@router.get("/mine", response_model=ReservationList)
async def my_reservations(
    limit: int = Query(MY_RESERVATIONS_LIMIT, ge=1, le=50),
    user: dict = RequiredAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """The caller's most recent reservations, newest first."""
    reservations = await service.list_for_user(user["user_id"], limit=limit)
    return _list_response(reservations)


@router.get("/recent", response_model=ReservationList)
async def recent_reservations(
    limit: int = Query(RECENT_RESERVATIONS_LIMIT, ge=1, le=1000),
    user: dict = AdminAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Most recent reservations across all trips (admin only)."""
    reservations = await service.list_recent(limit=limit)
    return _list_response(reservations)


@router.post("/delete", status_code=204)
async def delete_reservation(
    request: ReservationIdRequest,
    user: dict = AdminAuth,
    service: ReservationService = SERVICE_DEPENDENCY,
) -> None:
    """Permanently delete one reservation record (admin only)."""
    await service.delete(request.reservation_id)
    logger.info(
        "Reservation deleted by administrator",
        extra={"reservation_id": request.reservation_id, "admin_id": user["user_id"]}
    )
