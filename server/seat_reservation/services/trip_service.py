"""Trip service for business logic operations."""

import logging
from typing import Optional

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError
from ..models.trip import Trip
from ..schemas.trip import CreateTripRequest, SearchTripsRequest
from .reservation_store import ReservationStore
from .route_service import RouteService
from .seat_layout import generate_seat_layout

logger = logging.getLogger(__name__)


class TripService:
    """Service for trip-related operations."""

    def __init__(self, store: ReservationStore):
        self.store = store
        self.route_service = RouteService(store)

    async def create_trip(self, request: CreateTripRequest) -> Trip:
        """
        Schedule a new trip on an existing route.

        Args:
            request: Trip creation request

        Returns:
            Created trip entity

        Raises:
            NotFoundError: If route not found
            ValidationError: If the route is disabled
        """
        route = await self.route_service.get_route_by_id_or_raise(request.route_id)
        if not route.is_active:
            raise ValidationError(
                detail=f"Route {route.id} is disabled",
                errors={"route_id": "Select an active route"}
            )

        trip = await self.store.add_trip(
            route_id=route.id,
            date=request.date.isoformat(),
            time=request.time,
            price=request.price,
            seat_count=request.seat_count or settings.default_seat_count,
            is_active=True,
        )

        logger.info(
            "Trip created successfully",
            extra={
                "trip_id": trip.id,
                "route_id": trip.route_id,
                "date": trip.date,
                "time": trip.time,
                "seat_count": trip.seat_count
            }
        )

        return trip

    async def search_trips(self, request: SearchTripsRequest) -> list[Trip]:
        """
        List trips for a route and/or date, ordered by departure time.

        Args:
            request: Search criteria

        Returns:
            Matching trips
        """
        trips = await self.store.query_trips(
            route_id=request.route_id,
            date=request.date.isoformat() if request.date else None,
            active_only=request.active_only,
            limit=request.limit,
        )

        logger.info(
            "Trip search completed",
            extra={
                "total_found": len(trips),
                "filters": {
                    "route_id": request.route_id,
                    "date": request.date.isoformat() if request.date else None,
                    "active_only": request.active_only
                }
            }
        )

        return trips

    async def get_trip_by_id(self, trip_id: str) -> Optional[Trip]:
        """Get trip by ID, or None."""
        return await self.store.get_trip(trip_id)

    async def get_trip_by_id_or_raise(self, trip_id: str) -> Trip:
        """
        Get trip by ID or raise NotFoundError.

        Args:
            trip_id: Trip ID to search for

        Returns:
            Trip entity

        Raises:
            NotFoundError: If trip not found
        """
        trip = await self.get_trip_by_id(trip_id)
        if not trip:
            logger.warning(
                "Trip not found",
                extra={"trip_id": trip_id}
            )
            raise NotFoundError(
                resource_type="trip",
                resource_id=trip_id
            )
        return trip

    async def get_layout(self, trip_id: str) -> list[str]:
        """Seat layout of a trip, derived from its capacity."""
        trip = await self.get_trip_by_id_or_raise(trip_id)
        return generate_seat_layout(trip.seat_count)
