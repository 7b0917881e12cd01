"""In-process change feed for committed reservation mutations."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Set

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kind of committed reservation mutation."""
    CLAIMED = "claimed"
    RETRACTED = "retracted"
    DELETED = "deleted"


@dataclass(frozen=True)
class ReservationChange:
    """
    Notification that reservations changed.

    ``trip_id`` of ``None`` means the change may touch any trip (e.g. a
    global purge) and is delivered to every listener.
    """
    kind: ChangeKind
    trip_id: Optional[str]
    reservation_ids: tuple[str, ...] = field(default_factory=tuple)


class ChangeListener:
    """
    One live query registered on the feed.

    Notifications are coalesced into a dirty flag: a listener that falls
    behind re-reads once instead of replaying every change.
    """

    def __init__(self, feed: "ChangeFeed", trip_id: Optional[str]):
        self.trip_id = trip_id
        self._feed = feed
        self._dirty = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self, change: ReservationChange) -> None:
        if not self._closed:
            self._dirty.set()

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the next notification.

        Returns:
            True if a change arrived, False on timeout
        """
        try:
            if timeout:
                await asyncio.wait_for(self._dirty.wait(), timeout)
            else:
                await self._dirty.wait()
        except asyncio.TimeoutError:
            return False
        self._dirty.clear()
        return True

    def close(self) -> None:
        """Detach from the feed; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._feed._remove(self)


class ChangeFeed:
    """Publish/subscribe hub keyed by trip identifier."""

    def __init__(self) -> None:
        self._listeners: Dict[Optional[str], Set[ChangeListener]] = {}

    def listen(self, trip_id: Optional[str] = None) -> ChangeListener:
        """
        Register a listener for one trip, or for all trips when ``trip_id`` is None.
        """
        listener = ChangeListener(self, trip_id)
        self._listeners.setdefault(trip_id, set()).add(listener)
        logger.debug(
            "Change listener registered",
            extra={"trip_id": trip_id, "listeners": len(self._listeners[trip_id])}
        )
        return listener

    def publish(self, change: ReservationChange) -> int:
        """
        Flag every interested listener. Never blocks the publisher.

        Returns:
            Number of listeners notified
        """
        if change.trip_id is None:
            targets = [listener for group in self._listeners.values() for listener in group]
        else:
            targets = list(self._listeners.get(change.trip_id, ())) + list(self._listeners.get(None, ()))

        for listener in targets:
            listener.notify(change)

        logger.debug(
            "Reservation change published",
            extra={
                "kind": change.kind.value,
                "trip_id": change.trip_id,
                "reservations": len(change.reservation_ids),
                "listeners": len(targets),
            }
        )
        return len(targets)

    def listener_count(self, trip_id: Optional[str] = None) -> int:
        if trip_id is None:
            return sum(len(group) for group in self._listeners.values())
        return len(self._listeners.get(trip_id, ()))

    def _remove(self, listener: ChangeListener) -> None:
        group = self._listeners.get(listener.trip_id)
        if not group:
            return
        group.discard(listener)
        if not group:
            del self._listeners[listener.trip_id]


# Global change feed instance
change_feed = ChangeFeed()
