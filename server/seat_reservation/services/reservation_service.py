"""Reservation service: validation, atomic seat claims and retraction."""

import logging
import re
from typing import Any, Mapping, Optional

from ..core.config import settings
from ..core.exceptions import (
    AuthorizationError,
    NotFoundError,
    SeatTakenError,
    TripClosedError,
    ValidationError,
)
from ..core.observability import metrics_collector
from ..models.reservation import Reservation, ReservationStatus, reservation_id_for
from .reservation_store import ReservationStore
from .seat_layout import seat_ids
from .trip_service import TripService

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
MIN_NAME_LENGTH = 2
MY_RESERVATIONS_LIMIT = 5
RECENT_RESERVATIONS_LIMIT = 300


def is_admin(user: Mapping[str, Any]) -> bool:
    """Return True if the authenticated user carries the admin role."""
    return ADMIN_ROLE in (user.get("roles") or [])


def validate_passenger(
    seat_id: str,
    passenger_name: str,
    passenger_phone: str,
    phone_pattern: Optional[str] = None,
) -> tuple[str, str, str]:
    """
    Check reservation input without touching the store.

    Args:
        seat_id: Seat identifier
        passenger_name: Passenger full name
        passenger_phone: Passenger mobile number
        phone_pattern: Override for the configured phone pattern

    Returns:
        The stripped (seat_id, name, phone)

    Raises:
        ValidationError: With one entry per offending field
    """
    seat = (seat_id or "").strip()
    name = (passenger_name or "").strip()
    phone = (passenger_phone or "").strip()
    pattern = re.compile(phone_pattern or settings.phone_pattern, re.ASCII)

    errors = {}
    if not seat:
        errors["seat_id"] = "Select a seat"
    if len(name) < MIN_NAME_LENGTH:
        errors["passenger_name"] = f"Name must be at least {MIN_NAME_LENGTH} characters"
    if not pattern.fullmatch(phone):
        errors["passenger_phone"] = "Enter a valid mobile number (+94XXXXXXXXX or 0XXXXXXXXX)"

    if errors:
        logger.info(
            "Reservation input rejected",
            extra={"fields": sorted(errors)}
        )
        raise ValidationError(
            detail="Passenger details are invalid",
            errors=errors
        )

    return seat, name, phone


class ReservationService:
    """Service for reservation-related operations."""

    def __init__(self, store: ReservationStore):
        self.store = store
        self.trip_service = TripService(store)

    async def reserve(
        self,
        trip_id: str,
        seat_id: str,
        passenger_name: str,
        passenger_phone: str,
        user: Mapping[str, Any],
    ) -> Reservation:
        """
        Claim one seat on a trip for a passenger.

        Input is validated before the store is consulted. The claim itself is
        a single transaction on the composite reservation id, so among any
        number of concurrent callers for the same seat exactly one succeeds.

        Args:
            trip_id: Trip to book
            seat_id: Seat identifier from the trip layout
            passenger_name: Passenger full name
            passenger_phone: Passenger mobile number
            user: Authenticated user claims

        Returns:
            The held reservation

        Raises:
            ValidationError: If passenger details or the seat are invalid
            NotFoundError: If the trip does not exist
            TripClosedError: If the trip is disabled
            SeatTakenError: If the seat is already held
            StorageError: If the store is unavailable
        """
        seat, name, phone = validate_passenger(seat_id, passenger_name, passenger_phone)

        trip = await self.trip_service.get_trip_by_id_or_raise(trip_id)
        if not trip.is_active:
            logger.warning(
                "Reservation rejected - trip inactive",
                extra={"trip_id": trip_id, "seat_id": seat}
            )
            raise TripClosedError(trip_id)

        if seat not in seat_ids(trip.seat_count):
            raise ValidationError(
                detail=f"Seat {seat} does not exist on trip {trip_id}",
                errors={"seat_id": f"Choose a seat between the trip's {trip.seat_count} seats"}
            )

        route = await self.store.get_route(trip.route_id)
        reservation_id = reservation_id_for(trip.id, seat)
        reservation = await self.store.claim({
            "id": reservation_id,
            "trip_id": trip.id,
            "seat_id": seat,
            "passenger_name": name,
            "passenger_phone": phone,
            "user_id": user["user_id"],
            "status": ReservationStatus.HELD.value,
            "route_label": route.label if route else None,
            "trip_date": trip.date,
            "trip_time": trip.time,
        })

        if reservation is None:
            # A lost claim can also mean the trip vanished mid-flight
            if await self.store.get_trip(trip.id) is None:
                raise NotFoundError(resource_type="trip", resource_id=trip.id)

            metrics_collector.record_seat_conflict()
            logger.warning(
                "Reservation rejected - seat already held",
                extra={
                    "trip_id": trip.id,
                    "seat_id": seat,
                    "user_id": user["user_id"]
                }
            )
            raise SeatTakenError(trip.id, seat)

        metrics_collector.record_seat_reserved()
        logger.info(
            "Seat reserved successfully",
            extra={
                "reservation_id": reservation.id,
                "trip_id": trip.id,
                "seat_id": seat,
                "user_id": user["user_id"]
            }
        )

        return reservation

    async def cancel(self, reservation_id: str, user: Mapping[str, Any]) -> Reservation:
        """
        Cancel a reservation on behalf of its owner or an administrator.

        Cancelling an already retracted reservation returns it unchanged.

        Raises:
            NotFoundError: If the reservation does not exist
            AuthorizationError: If the user neither owns it nor is an admin
        """
        reservation = await self.get_reservation_or_raise(reservation_id)

        if reservation.user_id != user["user_id"] and not is_admin(user):
            logger.warning(
                "Cancellation rejected - not the owner",
                extra={
                    "reservation_id": reservation_id,
                    "user_id": user["user_id"]
                }
            )
            raise AuthorizationError(
                detail="Only the passenger who made the reservation or an administrator can cancel it",
                required_permissions=[ADMIN_ROLE]
            )

        return await self._retract(reservation, reason="cancel")

    async def retract(self, reservation_id: str) -> Reservation:
        """
        Release a held seat without ownership checks.

        Raises:
            NotFoundError: If the reservation does not exist
        """
        reservation = await self.get_reservation_or_raise(reservation_id)
        return await self._retract(reservation, reason="retract")

    async def _retract(self, reservation: Reservation, reason: str) -> Reservation:
        if reservation.status == ReservationStatus.RETRACTED.value:
            logger.info(
                "Reservation already retracted - returning existing reservation",
                extra={"reservation_id": reservation.id}
            )
            return reservation

        changed = await self.store.conditional_update(
            reservation.id,
            {"status": ReservationStatus.RETRACTED.value},
            expected_status=ReservationStatus.HELD,
        )
        if changed:
            metrics_collector.record_retraction(reason)
            logger.info(
                "Reservation retracted",
                extra={
                    "reservation_id": reservation.id,
                    "trip_id": reservation.trip_id,
                    "seat_id": reservation.seat_id,
                    "reason": reason
                }
            )

        # Re-read so the caller sees the committed state, whoever wrote it
        return await self.get_reservation_or_raise(reservation.id)

    async def get_reservation_or_raise(self, reservation_id: str) -> Reservation:
        """Get reservation by ID or raise NotFoundError."""
        reservation = await self.store.get_reservation(reservation_id)
        if not reservation:
            logger.warning(
                "Reservation not found",
                extra={"reservation_id": reservation_id}
            )
            raise NotFoundError(
                resource_type="reservation",
                resource_id=reservation_id
            )
        return reservation

    async def get(self, reservation_id: str, user: Mapping[str, Any]) -> Reservation:
        """
        Get a reservation visible to the user.

        Other passengers' reservations are reported as missing.
        """
        reservation = await self.get_reservation_or_raise(reservation_id)
        if reservation.user_id != user["user_id"] and not is_admin(user):
            raise NotFoundError(resource_type="reservation", resource_id=reservation_id)
        return reservation

    async def list_for_user(self, user_id: str, limit: int = MY_RESERVATIONS_LIMIT) -> list[Reservation]:
        """A user's most recent reservations, newest first."""
        return await self.store.query_reservations(
            user_id=user_id,
            newest_first=True,
            limit=limit,
        )

    async def list_recent(self, limit: int = RECENT_RESERVATIONS_LIMIT) -> list[Reservation]:
        """Most recent reservations across all trips, for administrators."""
        return await self.store.query_reservations(newest_first=True, limit=limit)

    async def delete(self, reservation_id: str) -> None:
        """
        Permanently remove one reservation record.

        Raises:
            NotFoundError: If the reservation does not exist
        """
        reservation = await self.get_reservation_or_raise(reservation_id)
        deleted = await self.store.delete_batch([reservation.id], trip_id=reservation.trip_id)
        metrics_collector.record_deletions("reservation", deleted)

        logger.info(
            "Reservation deleted",
            extra={
                "reservation_id": reservation.id,
                "trip_id": reservation.trip_id,
                "deleted": deleted
            }
        )
