"""Availability and administrative deletion schemas."""

from pydantic import BaseModel, Field


class Availability(BaseModel):
    """Snapshot of the seats held on a trip."""

    trip_id: str = Field(..., description="Trip ID")
    capacity: int = Field(..., ge=1, description="Seat capacity")
    occupied: list[str] = Field(..., description="Held seat identifiers, sorted")
    available: int = Field(..., ge=0, description="Number of free seats")


class DeletionSummary(BaseModel):
    """Outcome of a cascading delete or purge."""

    routes_deleted: int = Field(0, ge=0, description="Routes removed")
    trips_deleted: int = Field(0, ge=0, description="Trips removed")
    reservations_deleted: int = Field(0, ge=0, description="Reservations removed")
    batches: list[int] = Field(default_factory=list, description="Size of each delete batch, in submission order")
