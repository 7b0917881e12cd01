"""Admin router for cascading deletes."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminAuth, get_cascade_service
from ..schemas.availability import DeletionSummary
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.route import DeleteRouteRequest
from ..schemas.trip import DeleteTripRequest
from ..services.cascade_service import CascadingDeletionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])

SERVICE_DEPENDENCY = Depends(get_cascade_service)


@router.post("/route/delete", response_model=DeletionSummary, responses=PROBLEM_RESPONSES)
async def delete_route(
    request: DeleteRouteRequest,
    user: dict = AdminAuth,
    service: CascadingDeletionService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """
    Delete a route with all of its trips and reservations.

    Safe to repeat: a failed run can be re-issued to finish the job.
    """
    summary = await service.delete_route(request.route_id)
    logger.info(
        "Route deletion requested",
        extra={"route_id": request.route_id, "admin_id": user["user_id"]}
    )
    return JSONResponse(status_code=200, content=summary.model_dump())


@router.post("/schedule/delete", response_model=DeletionSummary, responses=PROBLEM_RESPONSES)
async def delete_schedule(
    request: DeleteTripRequest,
    user: dict = AdminAuth,
    service: CascadingDeletionService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Delete a trip with all of its reservations."""
    summary = await service.delete_schedule(request.trip_id)
    logger.info(
        "Schedule deletion requested",
        extra={"trip_id": request.trip_id, "admin_id": user["user_id"]}
    )
    return JSONResponse(status_code=200, content=summary.model_dump())


@router.post("/reservations/purge", response_model=DeletionSummary, responses=PROBLEM_RESPONSES)
async def purge_reservations(
    user: dict = AdminAuth,
    service: CascadingDeletionService = SERVICE_DEPENDENCY,
) -> JSONResponse:
    """Delete every reservation on every trip."""
    summary = await service.purge_reservations()
    logger.warning(
        "All reservations purged",
        extra={"admin_id": user["user_id"], "reservations_deleted": summary.reservations_deleted}
    )
    return JSONResponse(status_code=200, content=summary.model_dump())
