"""Property-based tests for seat layout and reservation invariants."""

import asyncio
import tempfile
from pathlib import Path

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from conftest import create_schema, make_engine
from seat_reservation.core.exceptions import SeatTakenError
from seat_reservation.services.change_feed import ChangeFeed
from seat_reservation.services.reservation_service import ReservationService
from seat_reservation.services.reservation_store import ReservationStore
from seat_reservation.services.seat_layout import AISLE, generate_seat_layout, seat_ids
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Strategies for generating test data
capacities = st.integers(min_value=1, max_value=120)
PASSENGER = {"passenger_name": "Nimal Perera", "passenger_phone": "0771234567"}


@st.composite
def capacity_and_bench(draw):
    capacity = draw(capacities)
    return capacity, draw(st.integers(min_value=0, max_value=capacity))


@given(capacity_and_bench())
def test_layout_holds_every_seat_once(params):
    """Every seat appears exactly once and the count matches the capacity."""
    capacity, rear_bench = params

    seats = seat_ids(capacity, rear_bench)

    assert len(seats) == capacity
    assert len(set(seats)) == capacity


@given(capacity_and_bench())
def test_layout_shape(params):
    """Full rows are ``nA nB AISLE nC nD``; the trailing bench has no aisle."""
    capacity, rear_bench = params
    layout = generate_seat_layout(capacity, rear_bench)

    full_rows = (capacity - rear_bench) // 4
    for row in range(full_rows):
        number = row + 1
        assert layout[row * 5:row * 5 + 5] == [f"{number}A", f"{number}B", AISLE, f"{number}C", f"{number}D"]

    bench = layout[full_rows * 5:]
    assert AISLE not in bench
    assert bench == [str(n) for n in range(full_rows * 4 + 1, capacity + 1)]


@given(capacity_and_bench())
def test_layout_is_deterministic(params):
    capacity, rear_bench = params
    assert generate_seat_layout(capacity, rear_bench) == generate_seat_layout(capacity, rear_bench)


async def _race(db_path: Path, seat_count: int, requests: list[tuple[int, int]]) -> tuple[list, frozenset]:
    engine = make_engine(db_path)
    try:
        await create_schema(engine)
        store = ReservationStore(
            async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False),
            feed=ChangeFeed(),
        )
        route = await store.add_route("Colombo", "Kandy")
        trip = await store.add_trip(
            route_id=route.id, date="2030-01-15", time="08:30", price=1200.0, seat_count=seat_count, is_active=True
        )
        layout = seat_ids(seat_count)

        async def reserve(user_number: int, seat_index: int):
            service = ReservationService(store)
            return await service.reserve(
                trip.id, layout[seat_index % seat_count], user={"user_id": f"user-{user_number}", "roles": []}, **PASSENGER
            )

        results = await asyncio.gather(
            *(reserve(user_number, seat_index) for user_number, seat_index in requests),
            return_exceptions=True
        )
        return results, await store.held_seat_ids(trip.id)
    finally:
        await engine.dispose()


@settings(max_examples=15, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(
    seat_count=st.integers(min_value=1, max_value=8),
    requests=st.lists(
        st.tuples(st.integers(min_value=0, max_value=5), st.integers(min_value=0, max_value=7)),
        min_size=1,
        max_size=12
    )
)
def test_at_most_one_holder_per_seat(seat_count, requests):
    """However claims interleave, each seat ends up with at most one holder."""
    with tempfile.TemporaryDirectory() as tmp:
        results, held = asyncio.run(_race(Path(tmp) / "race.db", seat_count, requests))

    winners = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]

    assert all(isinstance(e, SeatTakenError) for e in failures)
    assert len({r.seat_id for r in winners}) == len(winners)
    assert {r.seat_id for r in winners} == held
    requested_seats = {seat_ids(seat_count)[seat_index % seat_count] for _, seat_index in requests}
    assert held == requested_seats
