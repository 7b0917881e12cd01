"""Trip (schedule) model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import expression

from ..core.database import Base

if TYPE_CHECKING:
    from .reservation import Reservation
    from .route import Route


def _new_id() -> str:
    return str(uuid4())


class Trip(Base):
    """Trip entity representing a single scheduled departure of a route."""

    __tablename__ = "trips"

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    # Foreign key to route; deleting a route with trips is refused by the database
    route_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("routes.id"),
        nullable=False,
        index=True
    )

    # Departure details (ISO date and 24h time, as entered by the administrator)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    seat_count: Mapped[int] = mapped_column(Integer, nullable=False, default=44)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true()
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    # Constraints
    __table_args__ = (
        CheckConstraint("seat_count > 0", name="ck_trip_seat_count_positive"),
        CheckConstraint("price >= 0", name="ck_trip_price_non_negative"),
        Index("ix_trips_route_date_time", "route_id", "date", "time"),
    )

    # Relationships
    route: Mapped["Route"] = relationship("Route", back_populates="trips")
    reservations: Mapped[list["Reservation"]] = relationship(
        "Reservation",
        back_populates="trip",
        passive_deletes="all"
    )

    def __repr__(self) -> str:
        return (
            f"<Trip(id={self.id}, route_id={self.route_id}, "
            f"date={self.date}, time={self.time}, seat_count={self.seat_count})>"
        )
