"""Route model definition."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import expression

from ..core.database import Base

if TYPE_CHECKING:
    from .trip import Trip


def _new_id() -> str:
    return str(uuid4())


class Route(Base):
    """Route entity: an origin/destination pair that owns trips."""

    __tablename__ = "routes"

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    # Route information
    origin: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    destination: Mapped[str] = mapped_column(String(120), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true(),
        index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("length(origin) >= 2", name="ck_route_origin_min_length"),
        CheckConstraint("length(destination) >= 2", name="ck_route_destination_min_length"),
    )

    # Relationships; no ORM cascade, dependent rows are removed explicitly
    trips: Mapped[list["Trip"]] = relationship("Trip", back_populates="route", passive_deletes="all")

    @property
    def label(self) -> str:
        """Human-readable "origin -> destination" label."""
        return f"{self.origin} ➝ {self.destination}"

    def __repr__(self) -> str:
        return f"<Route(id={self.id}, origin='{self.origin}', destination='{self.destination}')>"
