"""Service layer package."""

from .availability_service import AvailabilitySubscription, AvailabilitySynchronizer
from .cascade_service import CascadingDeletionService
from .reservation_service import ReservationService
from .reservation_store import ReservationStore
from .route_service import RouteService
from .trip_service import TripService

__all__ = [
    "AvailabilitySubscription",
    "AvailabilitySynchronizer",
    "CascadingDeletionService",
    "ReservationService",
    "ReservationStore",
    "RouteService",
    "TripService",
]
