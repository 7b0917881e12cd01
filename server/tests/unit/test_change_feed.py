"""Unit tests for the in-process change feed."""

import pytest

from seat_reservation.services.change_feed import ChangeFeed, ChangeKind, ReservationChange


@pytest.mark.asyncio
async def test_publish_reaches_only_matching_trip():
    feed = ChangeFeed()
    trip_a = feed.listen("trip-a")
    trip_b = feed.listen("trip-b")

    notified = feed.publish(ReservationChange(ChangeKind.CLAIMED, "trip-a", ("trip-a_1A",)))

    assert notified == 1
    assert await trip_a.wait(timeout=0.1)
    assert not await trip_b.wait(timeout=0.05)


@pytest.mark.asyncio
async def test_trip_wide_change_reaches_everyone():
    feed = ChangeFeed()
    listeners = [feed.listen("trip-a"), feed.listen("trip-b"), feed.listen(None)]

    assert feed.publish(ReservationChange(ChangeKind.DELETED, None)) == 3
    for listener in listeners:
        assert await listener.wait(timeout=0.1)


@pytest.mark.asyncio
async def test_bursts_coalesce_into_one_wakeup():
    feed = ChangeFeed()
    listener = feed.listen("trip-a")

    for seat in ("1A", "1B", "1C"):
        feed.publish(ReservationChange(ChangeKind.CLAIMED, "trip-a", (f"trip-a_{seat}",)))

    assert await listener.wait(timeout=0.1)
    assert not await listener.wait(timeout=0.05)


def test_close_is_idempotent():
    feed = ChangeFeed()
    listener = feed.listen("trip-a")

    listener.close()
    listener.close()

    assert listener.closed
    assert feed.listener_count() == 0
    assert feed.publish(ReservationChange(ChangeKind.CLAIMED, "trip-a")) == 0
