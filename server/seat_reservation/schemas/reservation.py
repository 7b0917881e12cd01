"""Reservation-related Pydantic schemas."""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""
    HELD = "held"
    RETRACTED = "retracted"


class ReserveSeatRequest(BaseModel):
    """
    Request schema for reserving a seat.

    Passenger details are checked by the reservation service so that a bad
    name or phone is reported as a Problem Details validation error.
    """

    trip_id: str = Field(..., min_length=1, description="Trip to book")
    seat_id: str = Field(..., max_length=8, description="Seat identifier from the trip layout")
    passenger_name: str = Field(..., max_length=120, description="Passenger full name")
    passenger_phone: str = Field(..., max_length=20, description="Passenger mobile number")


class ReservationIdRequest(BaseModel):
    """Request schema for operations addressing one reservation."""

    reservation_id: str = Field(..., min_length=1, description="Composite reservation ID")


class Reservation(BaseModel):
    """Reservation response schema."""

    id: str = Field(..., description="Composite reservation ID (<trip_id>_<seat_id>)")
    trip_id: str = Field(..., description="Associated trip ID")
    seat_id: str = Field(..., description="Reserved seat")
    passenger_name: str = Field(..., description="Passenger full name")
    passenger_phone: str = Field(..., description="Passenger mobile number")
    user_id: str = Field(..., description="Owning user")
    status: ReservationStatus = Field(..., description="Reservation status")
    route_label: str | None = Field(None, description="Route at the time of booking")
    trip_date: str | None = Field(None, description="Trip date at the time of booking")
    trip_time: str | None = Field(None, description="Trip time at the time of booking")
    created_at: datetime | None = Field(None, description="Reservation time (ISO 8601)")

    class Config:
        from_attributes = True


class ReservationList(BaseModel):
    """List of reservations, newest first."""

    items: list[Reservation] = Field(..., description="Reservations")
