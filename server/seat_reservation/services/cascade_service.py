"""Cascading deletion of routes, trips and their reservations."""

import logging
from typing import Optional

from ..core.config import settings
from ..core.exceptions import ConflictError, StorageError
from ..core.observability import metrics_collector
from ..schemas.availability import DeletionSummary
from .reservation_store import MAX_BATCH_WRITES, ReservationStore

logger = logging.getLogger(__name__)


class CascadingDeletionService:
    """
    Removes a parent entity together with everything that hangs off it.

    Deletes run child-first in bounded batches that commit independently.
    Nothing is rolled back on failure: the raised ``StorageError`` carries
    the partial summary, and re-running the same delete finishes the job.
    A constraint conflict from a write racing the delete is reported the
    same way.
    """

    def __init__(self, store: ReservationStore, batch_size: Optional[int] = None):
        batch_size = batch_size or settings.cascade_batch_size
        if not 1 <= batch_size <= MAX_BATCH_WRITES:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_WRITES}")
        self.store = store
        self.batch_size = batch_size

    async def delete_schedule(self, trip_id: str) -> DeletionSummary:
        """
        Delete a trip and all of its reservations.

        Args:
            trip_id: Trip to delete

        Returns:
            What was removed; deleting an absent trip is not an error

        Raises:
            StorageError: With ``partial_summary`` in its extensions
        """
        summary = DeletionSummary()
        try:
            await self._delete_schedule(trip_id, summary)
        except (StorageError, ConflictError) as e:
            raise self._partial_failure("delete_schedule", trip_id, summary) from e

        self._record(summary)
        logger.info(
            "Schedule deleted",
            extra={"trip_id": trip_id, **summary.model_dump()}
        )
        return summary

    async def delete_route(self, route_id: str) -> DeletionSummary:
        """
        Delete a route, its trips and all their reservations.

        Trips are processed one after another so at most one batch is in
        flight at a time.

        Raises:
            StorageError: With ``partial_summary`` in its extensions
        """
        summary = DeletionSummary()
        try:
            trips = await self.store.query_trips(route_id=route_id)
            for trip in trips:
                await self._delete_schedule(trip.id, summary)

            if await self.store.delete_route(route_id):
                summary.routes_deleted += 1
        except (StorageError, ConflictError) as e:
            raise self._partial_failure("delete_route", route_id, summary) from e

        self._record(summary)
        logger.info(
            "Route deleted",
            extra={"route_id": route_id, **summary.model_dump()}
        )
        return summary

    async def purge_reservations(self) -> DeletionSummary:
        """
        Delete every reservation on every trip.

        Raises:
            StorageError: With ``partial_summary`` in its extensions
        """
        summary = DeletionSummary()
        try:
            reservation_ids = await self.store.reservation_ids()
            await self._delete_reservations(reservation_ids, None, summary)
        except (StorageError, ConflictError) as e:
            raise self._partial_failure("purge_reservations", None, summary) from e

        self._record(summary)
        logger.info("Reservations purged", extra=summary.model_dump())
        return summary

    async def _delete_schedule(self, trip_id: str, summary: DeletionSummary) -> None:
        reservation_ids = await self.store.reservation_ids(trip_id=trip_id)
        await self._delete_reservations(reservation_ids, trip_id, summary)

        if await self.store.delete_trip(trip_id):
            summary.trips_deleted += 1

    async def _delete_reservations(
        self,
        reservation_ids: list[str],
        trip_id: Optional[str],
        summary: DeletionSummary,
    ) -> None:
        for start in range(0, len(reservation_ids), self.batch_size):
            chunk = reservation_ids[start:start + self.batch_size]
            summary.reservations_deleted += await self.store.delete_batch(chunk, trip_id=trip_id)
            summary.batches.append(len(chunk))
            logger.debug(
                "Reservation batch deleted",
                extra={"trip_id": trip_id, "batch_size": len(chunk), "batch": len(summary.batches)}
            )

    def _record(self, summary: DeletionSummary) -> None:
        metrics_collector.record_deletions("route", summary.routes_deleted)
        metrics_collector.record_deletions("trip", summary.trips_deleted)
        metrics_collector.record_deletions("reservation", summary.reservations_deleted)
        metrics_collector.record_delete_batches(len(summary.batches))

    def _partial_failure(
        self,
        operation: str,
        target_id: Optional[str],
        summary: DeletionSummary,
    ) -> StorageError:
        self._record(summary)
        logger.error(
            "Cascading delete interrupted",
            extra={"operation": operation, "target_id": target_id, **summary.model_dump()}
        )
        return StorageError(
            detail=f"{operation} stopped part-way; re-run it to finish",
            operation=operation,
            extensions={"partial_summary": summary.model_dump()},
        )
