"""FastAPI routers package."""

from .admin import router as admin_router
from .availability import router as availability_router
from .health import router as health_router
from .metrics import router as metrics_router
from .reservation import router as reservation_router
from .route import router as route_router
from .trip import layout_router
from .trip import router as trip_router

__all__ = [
    "admin_router",
    "availability_router",
    "health_router",
    "layout_router",
    "metrics_router",
    "reservation_router",
    "route_router",
    "trip_router",
]
