"""Route router for route catalog operations."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminAuth, RequiredAuth, get_route_service
from ..schemas.route import CreateRouteRequest, Route, SetRouteActiveRequest
from ..services.reservation_service import is_admin
from ..services.route_service import RouteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/route", tags=["route"])

SERVICE_DEPENDENCY = Depends(get_route_service)


@router.post("/create", response_model=Route, status_code=201)
async def create_route(
    request: CreateRouteRequest,
    user: dict = AdminAuth,
    service: RouteService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Create a new route (admin only).

    The origin/destination pair must be unique.
    """
    route = await service.create_route(request)
    return JSONResponse(
        status_code=201,
        content=Route.model_validate(route).model_dump(mode="json")
    )


@router.post("/set-active", response_model=Route)
async def set_route_active(
    request: SetRouteActiveRequest,
    user: dict = AdminAuth,
    service: RouteService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Enable or disable a route (admin only)."""
    route = await service.set_route_active(request.route_id, request.is_active)
    return JSONResponse(
        status_code=200,
        content=Route.model_validate(route).model_dump(mode="json")
    )


@router.get("/list", response_model=list[Route])
async def list_routes(
    include_inactive: bool = Query(False, description="Admins only: include disabled routes"),
    user: dict = RequiredAuth,
    service: RouteService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """List routes; passengers only ever see active ones."""
    active_only = not (include_inactive and is_admin(user))
    routes = await service.list_routes(active_only=active_only)
    return JSONResponse(
        status_code=200,
        content=[Route.model_validate(route).model_dump(mode="json") for route in routes]
    )
