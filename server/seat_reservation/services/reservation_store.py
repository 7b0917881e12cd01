"""Reservation store adapter: the only component that talks to the database."""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional, Sequence

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import ConflictError, StorageError
from ..models.reservation import Reservation, ReservationStatus
from ..models.route import Route
from ..models.trip import Trip
from .change_feed import ChangeFeed, ChangeKind, ChangeListener, ReservationChange, change_feed

logger = logging.getLogger(__name__)

# Hard ceiling on rows touched by one atomic delete batch
MAX_BATCH_WRITES = 500


class ReservationStore:
    """
    Persistence primitives for routes, trips and reservations.

    Every public coroutine opens its own session, so concurrent callers never
    share a connection and the database remains the only serialization point.
    Committed reservation mutations are announced on the change feed.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeed = change_feed,
    ):
        self.session_factory = session_factory
        self.feed = feed

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session and translate driver failures into domain errors."""
        try:
            async with self.session_factory() as session:
                yield session
        except IntegrityError as e:
            logger.warning(
                "Store integrity violation",
                extra={"operation": operation, "error": str(e.orig)}
            )
            raise ConflictError(detail=f"Operation '{operation}' violates a data constraint") from e
        except (OperationalError, InterfaceError, DBAPIError, OSError) as e:
            logger.error(
                "Store operation failed",
                extra={"operation": operation, "error": str(e)},
                exc_info=True
            )
            raise StorageError(operation=operation) from e

    async def ping(self) -> None:
        """Round-trip the database; raises StorageError when unreachable."""
        async with self._session("ping") as session:
            await session.execute(select(1))

    # Routes

    async def add_route(self, origin: str, destination: str) -> Route:
        async with self._session("add_route") as session:
            route = Route(origin=origin, destination=destination, is_active=True)
            session.add(route)
            await session.commit()
            await session.refresh(route)
            return route

    async def get_route(self, route_id: str) -> Route | None:
        async with self._session("get_route") as session:
            return await session.get(Route, route_id)

    async def list_routes(self, active_only: bool = False) -> list[Route]:
        stmt = select(Route).order_by(Route.origin, Route.destination)
        if active_only:
            stmt = stmt.where(Route.is_active.is_(True))
        async with self._session("list_routes") as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def set_route_active(self, route_id: str, is_active: bool) -> Route | None:
        async with self._session("set_route_active") as session:
            route = await session.get(Route, route_id)
            if route is None:
                return None
            route.is_active = is_active
            await session.commit()
            await session.refresh(route)
            return route

    async def delete_route(self, route_id: str) -> bool:
        """
        Delete a route row; returns False if it was already gone.

        Trips (and their reservations) added after the caller last listed them
        are removed in the same transaction.
        """
        route_trips = select(Trip.id).where(Trip.route_id == route_id)
        async with self._session("delete_route") as session:
            async with session.begin():
                stragglers = await self._delete_reservations_where(session, Reservation.trip_id.in_(route_trips))
                await session.execute(
                    delete(Trip)
                    .where(Trip.route_id == route_id)
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(
                    delete(Route)
                    .where(Route.id == route_id)
                    .execution_options(synchronize_session=False)
                )

        if stragglers:
            self._announce_stragglers("delete_route", stragglers)
        return result.rowcount > 0

    # Trips

    async def add_trip(self, **fields: Any) -> Trip:
        async with self._session("add_trip") as session:
            trip = Trip(**fields)
            session.add(trip)
            await session.commit()
            await session.refresh(trip)
            return trip

    async def get_trip(self, trip_id: str) -> Trip | None:
        async with self._session("get_trip") as session:
            return await session.get(Trip, trip_id)

    async def query_trips(
        self,
        route_id: Optional[str] = None,
        date: Optional[str] = None,
        active_only: bool = False,
        limit: Optional[int] = None,
    ) -> list[Trip]:
        """Query trips ordered by date then time."""
        stmt = select(Trip)
        if route_id is not None:
            stmt = stmt.where(Trip.route_id == route_id)
        if date is not None:
            stmt = stmt.where(Trip.date == date)
        if active_only:
            stmt = stmt.where(Trip.is_active.is_(True))
        stmt = stmt.order_by(Trip.date, Trip.time, Trip.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._session("query_trips") as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def set_trip_active(self, trip_id: str, is_active: bool) -> Trip | None:
        async with self._session("set_trip_active") as session:
            trip = await session.get(Trip, trip_id)
            if trip is None:
                return None
            trip.is_active = is_active
            await session.commit()
            await session.refresh(trip)
            return trip

    async def delete_trip(self, trip_id: str) -> bool:
        """
        Delete a trip row; returns False if it was already gone.

        Reservations claimed after the caller last listed them are removed in
        the same transaction, so the trip row never outlives its children.
        """
        async with self._session("delete_trip") as session:
            async with session.begin():
                stragglers = await self._delete_reservations_where(session, Reservation.trip_id == trip_id)
                result = await session.execute(
                    delete(Trip)
                    .where(Trip.id == trip_id)
                    .execution_options(synchronize_session=False)
                )

        if stragglers:
            self._announce_stragglers("delete_trip", stragglers)
        return result.rowcount > 0

    # Reservations

    async def claim(self, fields: dict[str, Any]) -> Reservation | None:
        """
        Atomically take the seat named by ``fields["id"]``.

        Within one transaction the record is overwritten only when it is not
        currently held; when no record exists it is inserted. A competing
        claim on the same identity either finds the row held or collides on
        the primary key, so at most one caller wins.

        Returns:
            The held reservation, or None if the seat is already held
        """
        reservation_id = fields["id"]
        async with self._session("claim") as session:
            try:
                async with session.begin():
                    reclaimed = await self._update_unless_held(session, reservation_id, fields)
                    if not reclaimed:
                        await session.execute(insert(Reservation).values(**fields))
            except IntegrityError:
                logger.info(
                    "Seat claim lost to a concurrent holder",
                    extra={"reservation_id": reservation_id}
                )
                return None

            reservation = await session.get(Reservation, reservation_id)

        self.feed.publish(
            ReservationChange(ChangeKind.CLAIMED, fields["trip_id"], (reservation_id,))
        )
        return reservation

    async def create_if_absent(self, fields: dict[str, Any]) -> bool:
        """Insert a reservation record unless one with the same id exists."""
        async with self._session("create_if_absent") as session:
            try:
                async with session.begin():
                    await session.execute(insert(Reservation).values(**fields))
            except IntegrityError:
                return False

        self.feed.publish(
            ReservationChange(ChangeKind.CLAIMED, fields["trip_id"], (fields["id"],))
        )
        return True

    async def conditional_update(
        self,
        reservation_id: str,
        values: dict[str, Any],
        expected_status: Optional[ReservationStatus] = None,
    ) -> bool:
        """
        Update a reservation only if it currently has ``expected_status``.

        Returns:
            True if a row changed
        """
        stmt = update(Reservation).where(Reservation.id == reservation_id)
        if expected_status is not None:
            stmt = stmt.where(Reservation.status == expected_status.value)
        stmt = stmt.values(**values, updated_at=func.now()).execution_options(synchronize_session=False)

        async with self._session("conditional_update") as session:
            async with session.begin():
                result = await session.execute(stmt)
                trip_id = (
                    await session.execute(select(Reservation.trip_id).where(Reservation.id == reservation_id))
                ).scalar_one_or_none()

        changed = result.rowcount > 0
        if changed:
            kind = ChangeKind.RETRACTED if values.get("status") == ReservationStatus.RETRACTED.value else ChangeKind.CLAIMED
            self.feed.publish(ReservationChange(kind, trip_id, (reservation_id,)))
        return changed

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        async with self._session("get_reservation") as session:
            return await session.get(Reservation, reservation_id)

    async def query_reservations(
        self,
        trip_id: Optional[str] = None,
        status: Optional[ReservationStatus] = None,
        user_id: Optional[str] = None,
        trip_ids: Optional[Iterable[str]] = None,
        newest_first: bool = False,
        limit: Optional[int] = None,
    ) -> list[Reservation]:
        """Query reservations with simple equality filters."""
        stmt = select(Reservation)
        if trip_id is not None:
            stmt = stmt.where(Reservation.trip_id == trip_id)
        if trip_ids is not None:
            stmt = stmt.where(Reservation.trip_id.in_(list(trip_ids)))
        if status is not None:
            stmt = stmt.where(Reservation.status == status.value)
        if user_id is not None:
            stmt = stmt.where(Reservation.user_id == user_id)
        if newest_first:
            stmt = stmt.order_by(Reservation.created_at.desc(), Reservation.id.desc())
        else:
            stmt = stmt.order_by(Reservation.id)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._session("query_reservations") as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def held_seat_ids(self, trip_id: str) -> frozenset[str]:
        """Read the set of seats currently held on a trip."""
        stmt = select(Reservation.seat_id).where(
            Reservation.trip_id == trip_id,
            Reservation.status == ReservationStatus.HELD.value,
        )
        async with self._session("held_seat_ids") as session:
            result = await session.execute(stmt)
            return frozenset(result.scalars())

    async def reservation_ids(self, trip_id: Optional[str] = None) -> list[str]:
        """List reservation identities, optionally restricted to one trip."""
        stmt = select(Reservation.id).order_by(Reservation.id)
        if trip_id is not None:
            stmt = stmt.where(Reservation.trip_id == trip_id)
        async with self._session("reservation_ids") as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def delete_batch(self, reservation_ids: Sequence[str], trip_id: Optional[str] = None) -> int:
        """
        Delete one batch of reservations in a single transaction.

        Raises:
            ValueError: If the batch exceeds the store's write ceiling
        """
        if len(reservation_ids) > MAX_BATCH_WRITES:
            raise ValueError(
                f"Batch of {len(reservation_ids)} exceeds the {MAX_BATCH_WRITES} write limit"
            )
        if not reservation_ids:
            return 0

        async with self._session("delete_batch") as session:
            async with session.begin():
                result = await session.execute(
                    delete(Reservation)
                    .where(Reservation.id.in_(list(reservation_ids)))
                    .execution_options(synchronize_session=False)
                )

        self.feed.publish(ReservationChange(ChangeKind.DELETED, trip_id, tuple(reservation_ids)))
        return result.rowcount

    def subscribe(self, trip_id: Optional[str]) -> ChangeListener:
        """Register a live query on reservation changes for a trip."""
        return self.feed.listen(trip_id)

    async def _delete_reservations_where(self, session: AsyncSession, criterion) -> list[tuple[str, str]]:
        rows = (await session.execute(select(Reservation.id, Reservation.trip_id).where(criterion))).all()
        if rows:
            await session.execute(
                delete(Reservation)
                .where(criterion)
                .execution_options(synchronize_session=False)
            )
        return [(row.id, row.trip_id) for row in rows]

    def _announce_stragglers(self, operation: str, stragglers: list[tuple[str, str]]) -> None:
        by_trip: dict[str, list[str]] = {}
        for reservation_id, trip_id in stragglers:
            by_trip.setdefault(trip_id, []).append(reservation_id)

        logger.warning(
            "Removed reservations claimed during a delete",
            extra={"operation": operation, "reservation_ids": [rid for rid, _ in stragglers]}
        )
        for trip_id, reservation_ids in by_trip.items():
            self.feed.publish(ReservationChange(ChangeKind.DELETED, trip_id, tuple(reservation_ids)))

    async def _update_unless_held(
        self,
        session: AsyncSession,
        reservation_id: str,
        fields: dict[str, Any],
    ) -> bool:
        values = {key: value for key, value in fields.items() if key != "id"}
        stmt = (
            update(Reservation)
            .where(
                Reservation.id == reservation_id,
                Reservation.status != ReservationStatus.HELD.value,
            )
            .values(**values, created_at=func.now(), updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1
