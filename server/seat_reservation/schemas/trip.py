"""Trip-related Pydantic schemas."""

from datetime import date as date_type, datetime

from pydantic import BaseModel, Field, field_validator


class CreateTripRequest(BaseModel):
    """Request schema for scheduling a trip on a route."""

    route_id: str = Field(..., description="Route the trip runs on")
    date: date_type = Field(..., description="Departure date (YYYY-MM-DD)")
    time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Departure time (HH:MM)")
    price: float = Field(..., ge=0, description="Ticket price")
    seat_count: int | None = Field(None, ge=1, le=200, description="Seat capacity, defaults to the configured coach size")


class SearchTripsRequest(BaseModel):
    """Request schema for listing trips."""

    route_id: str | None = Field(None, description="Filter by route ID")
    date: date_type | None = Field(None, description="Filter by departure date")
    active_only: bool = Field(True, description="Only return bookable trips")
    limit: int = Field(100, ge=1, le=500, description="Maximum number of trips")


class DeleteTripRequest(BaseModel):
    """Request schema for deleting a trip and its reservations."""

    trip_id: str = Field(..., description="Trip to delete")


class Trip(BaseModel):
    """Trip response schema."""

    id: str = Field(..., description="Unique trip ID")
    route_id: str = Field(..., description="Associated route ID")
    date: str = Field(..., description="Departure date (YYYY-MM-DD)")
    time: str = Field(..., description="Departure time (HH:MM)")
    price: float = Field(..., ge=0, description="Ticket price")
    seat_count: int = Field(..., ge=1, description="Seat capacity")
    is_active: bool = Field(..., description="Whether the trip accepts reservations")
    created_at: datetime | None = Field(None, description="Creation time (ISO 8601)")

    @field_validator("date", mode="before")
    @classmethod
    def stringify_date(cls, v):
        if isinstance(v, date_type):
            return v.isoformat()
        return v

    class Config:
        from_attributes = True


class SearchTripsResponse(BaseModel):
    """Response schema for trip search."""

    items: list[Trip] = Field(..., description="Matching trips ordered by date and time")


class SeatLayout(BaseModel):
    """Seat map for a trip."""

    trip_id: str | None = Field(None, description="Trip the layout belongs to")
    capacity: int = Field(..., ge=1, description="Number of seats")
    layout: list[str] = Field(..., description="Seat identifiers interleaved with AISLE markers")
    rows: list[list[str]] = Field(..., description="Layout grouped into display rows")
