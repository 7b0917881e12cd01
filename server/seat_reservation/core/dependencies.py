"""FastAPI dependencies for authentication and service wiring."""

from typing import Optional

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import settings
from .database import get_session_factory
from .exceptions import AuthenticationError, AuthorizationError
from ..services.availability_service import AvailabilitySynchronizer
from ..services.cascade_service import CascadingDeletionService
from ..services.reservation_service import ADMIN_ROLE, ReservationService, is_admin
from ..services.reservation_store import ReservationStore
from ..services.route_service import RouteService
from ..services.trip_service import TripService


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")
    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        # PyJWT enforces "exp" when present
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError(detail="Invalid token payload")

    return {
        "user_id": str(user_id),
        "username": payload.get("username"),
        "email": payload.get("email"),
        "roles": payload.get("roles", []),
    }


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """
    Authorization dependency for administrator-only operations.

    Raises:
        AuthorizationError: If the user lacks the admin role
    """
    if not is_admin(user):
        raise AuthorizationError(required_permissions=[ADMIN_ROLE])
    return user


def get_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)
) -> ReservationStore:
    """Store adapter bound to the process-wide session factory."""
    return ReservationStore(session_factory)


def get_route_service(store: ReservationStore = Depends(get_store)) -> RouteService:
    return RouteService(store)


def get_trip_service(store: ReservationStore = Depends(get_store)) -> TripService:
    return TripService(store)


def get_reservation_service(store: ReservationStore = Depends(get_store)) -> ReservationService:
    return ReservationService(store)


def get_availability_synchronizer(store: ReservationStore = Depends(get_store)) -> AvailabilitySynchronizer:
    return AvailabilitySynchronizer(store)


def get_cascade_service(store: ReservationStore = Depends(get_store)) -> CascadingDeletionService:
    return CascadingDeletionService(store)


RequiredAuth = Depends(get_current_user)
AdminAuth = Depends(require_admin)
