"""Real-time seat availability for open trip views."""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Set, Union

from ..core.config import settings
from ..core.exceptions import StorageError
from ..core.observability import metrics_collector
from ..schemas.availability import Availability
from .change_feed import ChangeListener
from .reservation_store import ReservationStore
from .trip_service import TripService

logger = logging.getLogger(__name__)

OccupiedCallback = Callable[[frozenset], Union[None, Awaitable[None]]]
ConflictCallback = Callable[[str], Union[None, Awaitable[None]]]


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class AvailabilitySubscription:
    """
    Live view of the seats held on one trip.

    The subscription owns a task that re-reads the occupied set after every
    change notification and hands it to ``on_change``. A locally selected
    seat that shows up as occupied is cleared and reported to
    ``on_conflict``. Use as an async context manager, or call ``close()``.
    """

    def __init__(
        self,
        store: ReservationStore,
        trip_id: str,
        on_change: OccupiedCallback,
        on_conflict: Optional[ConflictCallback] = None,
        poll_seconds: float = 0.0,
    ):
        self.store = store
        self.trip_id = trip_id
        self.on_change = on_change
        self.on_conflict = on_conflict
        self.poll_seconds = poll_seconds
        self.occupied: frozenset = frozenset()
        self._selected: Optional[str] = None
        self._listener: Optional[ChangeListener] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self._first_snapshot = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def selected(self) -> Optional[str]:
        return self._selected

    def start(self) -> None:
        """Register the live query and start delivering snapshots."""
        if self._task is not None or self._closed:
            return
        # Listen before the first read so no commit falls between them
        self._listener = self.store.subscribe(self.trip_id)
        self._task = asyncio.create_task(self._run(), name=f"availability:{self.trip_id}")
        metrics_collector.subscription_opened()
        logger.info(
            "Availability subscription opened",
            extra={"trip_id": self.trip_id, "poll_seconds": self.poll_seconds}
        )

    async def wait_ready(self, timeout: Optional[float] = None) -> None:
        """Wait until the initial snapshot has been delivered."""
        await asyncio.wait_for(self._first_snapshot.wait(), timeout)

    def select(self, seat_id: str) -> bool:
        """
        Mark a seat as the local selection.

        Returns:
            False if the seat is already known to be occupied
        """
        if seat_id in self.occupied:
            return False
        self._selected = seat_id
        return True

    def clear_selection(self) -> None:
        self._selected = None

    async def close(self) -> None:
        """Release the live query. No callback runs after this returns."""
        if self._closed:
            return
        self._closed = True

        if self._listener is not None:
            self._listener.close()

        task = self._task
        if task is not None:
            if task is not asyncio.current_task():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            metrics_collector.subscription_closed()

        logger.info("Availability subscription closed", extra={"trip_id": self.trip_id})

    async def __aenter__(self) -> "AvailabilitySubscription":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _run(self) -> None:
        """Snapshot loop."""
        try:
            await self._refresh()
        finally:
            self._first_snapshot.set()

        while not self._closed:
            try:
                await self._listener.wait(timeout=self.poll_seconds or None)
                if self._closed:
                    break
                await self._refresh()
            except asyncio.CancelledError:
                logger.debug("Availability loop cancelled", extra={"trip_id": self.trip_id})
                raise
            except Exception as e:
                logger.error(
                    f"Availability refresh failed: {str(e)}",
                    exc_info=True,
                    extra={"trip_id": self.trip_id}
                )

    async def _refresh(self) -> None:
        try:
            occupied = await self.store.held_seat_ids(self.trip_id)
        except StorageError as e:
            # Keep the last good view; the next notification or poll retries
            logger.warning(
                "Availability read failed",
                extra={"trip_id": self.trip_id, "error": e.detail}
            )
            return

        if self._closed:
            return
        self.occupied = occupied

        try:
            await _invoke(self.on_change, occupied)
        except Exception:
            logger.exception("Availability callback failed", extra={"trip_id": self.trip_id})

        selected = self._selected
        if selected is not None and selected in occupied and not self._closed:
            self._selected = None
            logger.info(
                "Selected seat was just booked",
                extra={"trip_id": self.trip_id, "seat_id": selected}
            )
            if self.on_conflict is not None:
                try:
                    await _invoke(self.on_conflict, selected)
                except Exception:
                    logger.exception("Conflict callback failed", extra={"trip_id": self.trip_id})


class AvailabilitySynchronizer:
    """Opens and tracks availability subscriptions."""

    def __init__(self, store: ReservationStore, poll_seconds: Optional[float] = None):
        self.store = store
        self.trip_service = TripService(store)
        self.poll_seconds = settings.availability_poll_seconds if poll_seconds is None else poll_seconds
        self._subscriptions: Set[AvailabilitySubscription] = set()

    async def subscribe(
        self,
        trip_id: str,
        on_change: OccupiedCallback,
        on_conflict: Optional[ConflictCallback] = None,
    ) -> AvailabilitySubscription:
        """
        Start watching the occupied seats of a trip.

        Args:
            trip_id: Trip to watch
            on_change: Called with the occupied seat set on every snapshot
            on_conflict: Called with the selected seat when someone else takes it

        Returns:
            Running subscription handle
        """
        subscription = AvailabilitySubscription(
            self.store,
            trip_id,
            on_change,
            on_conflict=on_conflict,
            poll_seconds=self.poll_seconds,
        )
        subscription.start()
        self._subscriptions.add(subscription)
        return subscription

    async def unsubscribe(self, subscription: AvailabilitySubscription) -> None:
        """Close a subscription; safe to call more than once."""
        self._subscriptions.discard(subscription)
        await subscription.close()

    async def close_all(self) -> None:
        for subscription in list(self._subscriptions):
            await self.unsubscribe(subscription)

    @property
    def active_count(self) -> int:
        return sum(1 for subscription in self._subscriptions if not subscription.closed)

    async def snapshot(self, trip_id: str) -> Availability:
        """
        Read the current availability of a trip.

        Raises:
            NotFoundError: If the trip does not exist
        """
        trip = await self.trip_service.get_trip_by_id_or_raise(trip_id)
        occupied = await self.store.held_seat_ids(trip.id)
        return Availability(
            trip_id=trip.id,
            capacity=trip.seat_count,
            occupied=sorted(occupied),
            available=max(trip.seat_count - len(occupied), 0),
        )

    async def watch(self, trip_id: str) -> AsyncIterator[Availability]:
        """
        Yield an availability snapshot now and after every change.

        Raises:
            NotFoundError: If the trip does not exist
        """
        trip = await self.trip_service.get_trip_by_id_or_raise(trip_id)
        updates: asyncio.Queue = asyncio.Queue()

        subscription = await self.subscribe(trip.id, updates.put_nowait)
        try:
            while True:
                occupied = await updates.get()
                # Skip intermediate states when the consumer fell behind
                while not updates.empty():
                    occupied = updates.get_nowait()
                yield Availability(
                    trip_id=trip.id,
                    capacity=trip.seat_count,
                    occupied=sorted(occupied),
                    available=max(trip.seat_count - len(occupied), 0),
                )
        finally:
            await self.unsubscribe(subscription)
