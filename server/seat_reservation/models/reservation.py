"""Reservation model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .trip import Trip


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""
    HELD = "held"
    RETRACTED = "retracted"


def reservation_id_for(trip_id: str, seat_id: str) -> str:
    """
    Build the composite identity of the reservation for a seat on a trip.

    The identity doubles as the concurrency token: two claims on the same
    seat always race on the same primary key.
    """
    return f"{trip_id}_{seat_id}"


class Reservation(Base):
    """Reservation entity claiming one seat on one trip for one passenger."""

    __tablename__ = "reservations"

    # Composite identity "<trip_id>_<seat_id>"
    id: Mapped[str] = mapped_column(String(80), primary_key=True)

    # Foreign key to trip; the row must be purged before its trip can go
    trip_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("trips.id"),
        nullable=False,
        index=True
    )
    seat_id: Mapped[str] = mapped_column(String(8), nullable=False)

    # Passenger details
    passenger_name: Mapped[str] = mapped_column(String(120), nullable=False)
    passenger_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    status: Mapped[ReservationStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.HELD,
        index=True
    )

    # Display snapshot taken when the seat was claimed
    route_label: Mapped[str | None] = mapped_column(String(255), nullable=True)
    trip_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    trip_time: Mapped[str | None] = mapped_column(String(5), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        server_onupdate=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("length(passenger_name) >= 2", name="ck_reservation_passenger_name_min_length"),
        CheckConstraint("length(seat_id) > 0", name="ck_reservation_seat_id_not_empty"),
        CheckConstraint("status IN ('held', 'retracted')", name="ck_reservation_status_valid"),
        Index("ix_reservations_trip_status", "trip_id", "status"),
    )

    # Relationships
    trip: Mapped["Trip"] = relationship("Trip", back_populates="reservations")

    @property
    def is_held(self) -> bool:
        return self.status == ReservationStatus.HELD

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, trip_id={self.trip_id}, "
            f"seat_id={self.seat_id}, status={self.status})>"
        )
