"""Route service for business logic operations."""

import logging
from typing import Optional

from ..core.exceptions import ConflictError, NotFoundError
from ..models.route import Route
from ..schemas.route import CreateRouteRequest
from .reservation_store import ReservationStore

logger = logging.getLogger(__name__)


class RouteService:
    """Service for route-related operations."""

    def __init__(self, store: ReservationStore):
        self.store = store

    async def create_route(self, request: CreateRouteRequest) -> Route:
        """
        Create a new route.

        Args:
            request: Route creation request

        Returns:
            Created route entity

        Raises:
            ConflictError: If the same origin/destination pair already exists
        """
        existing_route = await self.find_route(request.origin, request.destination)
        if existing_route:
            logger.warning(
                "Route creation failed - pair already exists",
                extra={
                    "origin": request.origin,
                    "destination": request.destination,
                    "existing_route_id": existing_route.id
                }
            )
            raise ConflictError(
                detail=f"Route {request.origin} ➝ {request.destination} already exists",
                conflicting_resource={
                    "id": existing_route.id,
                    "origin": existing_route.origin,
                    "destination": existing_route.destination
                }
            )

        route = await self.store.add_route(request.origin, request.destination)

        logger.info(
            "Route created successfully",
            extra={
                "route_id": route.id,
                "origin": route.origin,
                "destination": route.destination
            }
        )

        return route

    async def find_route(self, origin: str, destination: str) -> Optional[Route]:
        """Find a route by its origin/destination pair, case-insensitively."""
        for route in await self.store.list_routes():
            if route.origin.lower() == origin.lower() and route.destination.lower() == destination.lower():
                return route
        return None

    async def list_routes(self, active_only: bool = False) -> list[Route]:
        """List routes ordered by origin."""
        return await self.store.list_routes(active_only=active_only)

    async def get_route_by_id(self, route_id: str) -> Optional[Route]:
        """
        Get route by ID.

        Args:
            route_id: Route ID to search for

        Returns:
            Route if found, None otherwise
        """
        return await self.store.get_route(route_id)

    async def get_route_by_id_or_raise(self, route_id: str) -> Route:
        """
        Get route by ID or raise NotFoundError.

        Raises:
            NotFoundError: If route not found
        """
        route = await self.get_route_by_id(route_id)
        if not route:
            logger.warning(
                "Route not found",
                extra={"route_id": route_id}
            )
            raise NotFoundError(
                resource_type="route",
                resource_id=route_id
            )
        return route

    async def set_route_active(self, route_id: str, is_active: bool) -> Route:
        """Enable or disable a route."""
        route = await self.store.set_route_active(route_id, is_active)
        if route is None:
            raise NotFoundError(resource_type="route", resource_id=route_id)

        logger.info(
            "Route enabled" if is_active else "Route disabled",
            extra={"route_id": route_id}
        )
        return route
