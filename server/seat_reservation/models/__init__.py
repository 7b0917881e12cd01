"""Models module exporting all database models."""

from .reservation import Reservation, ReservationStatus, reservation_id_for
from .route import Route
from .trip import Trip

__all__ = [
    # Catalog entities
    "Route",
    "Trip",

    # Reservation entity
    "Reservation",
    "ReservationStatus",
    "reservation_id_for",
]
