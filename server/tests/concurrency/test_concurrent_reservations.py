"""Concurrency tests for seat reservations."""

import asyncio

import pytest

from seat_reservation.core.exceptions import SeatTakenError
from seat_reservation.models.reservation import ReservationStatus
from seat_reservation.services.availability_service import AvailabilitySynchronizer
from seat_reservation.services.reservation_service import ReservationService

WAIT = 5.0


def _user(number: int) -> dict:
    return {"user_id": f"customer_{number}", "roles": []}


@pytest.mark.asyncio
async def test_concurrent_claims_single_winner(store, trip, passenger):
    """Many callers racing for one seat: exactly one wins."""
    num_concurrent_requests = 20

    async def reserve(customer_id: int):
        # A separate service per caller, simulating different requests
        service = ReservationService(store)
        return await service.reserve(trip.id, "1A", user=_user(customer_id), **passenger)

    results = await asyncio.gather(
        *(reserve(i) for i in range(num_concurrent_requests)),
        return_exceptions=True
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]

    assert len(winners) == 1
    assert len(losers) == num_concurrent_requests - 1
    assert all(isinstance(e, SeatTakenError) for e in losers)

    stored = await store.get_reservation(f"{trip.id}_1A")
    assert stored.status == ReservationStatus.HELD
    assert stored.user_id == winners[0].user_id
    assert await store.held_seat_ids(trip.id) == frozenset({"1A"})


@pytest.mark.asyncio
async def test_concurrent_claims_on_different_seats(store, trip, passenger):
    """Claims on distinct seats never interfere with each other."""
    seats = ["1A", "1B", "1C", "1D", "2A", "2B", "2C", "2D"]

    async def reserve(index: int, seat: str):
        return await ReservationService(store).reserve(trip.id, seat, user=_user(index), **passenger)

    results = await asyncio.gather(*(reserve(i, seat) for i, seat in enumerate(seats)))

    assert sorted(r.seat_id for r in results) == sorted(seats)
    assert await store.held_seat_ids(trip.id) == frozenset(seats)


@pytest.mark.asyncio
async def test_cancel_and_reclaim_race(store, trip, passenger, user):
    """A cancelled seat can be re-taken by exactly one of several callers."""
    service = ReservationService(store)
    original = await service.reserve(trip.id, "3A", user=user, **passenger)
    await service.cancel(original.id, user)

    results = await asyncio.gather(
        *(ReservationService(store).reserve(trip.id, "3A", user=_user(i), **passenger) for i in range(10)),
        return_exceptions=True
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    assert len(winners) == 1
    assert all(isinstance(r, SeatTakenError) for r in results if isinstance(r, Exception))

    reclaimed = await store.get_reservation(original.id)
    assert reclaimed.status == ReservationStatus.HELD
    assert reclaimed.user_id == winners[0].user_id


@pytest.mark.asyncio
async def test_two_clients_watching_the_same_seat(store, trip, passenger, user, other_user):
    """
    Client A has seat 1A selected while client B books it.

    A's availability view must show 1A occupied, A's selection must be
    dropped with a conflict notice, and A's own attempt must be refused.
    """
    seen_taken = asyncio.Event()
    conflicts: list[str] = []

    def on_change(occupied: frozenset) -> None:
        if "1A" in occupied:
            seen_taken.set()

    synchronizer = AvailabilitySynchronizer(store, poll_seconds=0)
    async with await synchronizer.subscribe(trip.id, on_change, conflicts.append) as client_a:
        await client_a.wait_ready(WAIT)
        assert client_a.select("1A")

        await ReservationService(store).reserve(trip.id, "1A", user=other_user, **passenger)
        await asyncio.wait_for(seen_taken.wait(), WAIT)

        assert conflicts == ["1A"]
        assert client_a.selected is None

        with pytest.raises(SeatTakenError):
            await ReservationService(store).reserve(trip.id, "1A", user=user, **passenger)


@pytest.mark.asyncio
async def test_concurrent_reserve_over_http(test_client, headers_for, trip, passenger):
    """Concurrent API requests for one seat: one 201, the rest 409 SEAT_TAKEN."""
    payload = {"trip_id": trip.id, "seat_id": "5C", **passenger}

    responses = await asyncio.gather(*(
        test_client.post("/v1/reservation/reserve", json=payload, headers=headers_for(f"customer_{i}"))
        for i in range(8)
    ))

    statuses = sorted(response.status_code for response in responses)
    assert statuses == [201] + [409] * 7
    assert all(
        response.json()["code"] == "SEAT_TAKEN"
        for response in responses
        if response.status_code == 409
    )
