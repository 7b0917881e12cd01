"""Test configuration and fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./seat_reservation_test.db")
os.environ.setdefault("BEARER_TOKEN_SECRET", "test-secret-key-for-seat-reservation-tests")

from datetime import date, timedelta  # noqa: E402
from pathlib import Path  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from seat_reservation.core.config import settings  # noqa: E402
from seat_reservation.core.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from seat_reservation.models import *  # noqa: F403,E402 - Import all models
from seat_reservation.services.change_feed import ChangeFeed  # noqa: E402
from seat_reservation.services.reservation_store import ReservationStore  # noqa: E402


def make_engine(db_path: Path) -> AsyncEngine:
    """
    File-backed SQLite engine where every session gets its own connection.

    Concurrent claims therefore contend on the database lock the same way
    separate clients would.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=False,
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    enable_sqlite_foreign_keys(engine)
    return engine


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def make_token(user_id: str = "user-1", roles: list[str] | None = None) -> str:
    """Sign a bearer token the API accepts."""
    payload = {"sub": user_id, "username": user_id, "roles": roles or []}
    return jwt.encode(payload, settings.bearer_token_secret, algorithm="HS256")


def auth_headers(user_id: str = "user-1", roles: list[str] | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, roles)}"}


@pytest.fixture
def headers_for():
    """Factory for Authorization headers: headers_for(user_id, roles)."""
    return auth_headers


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine on a fresh database file."""
    engine = make_engine(tmp_path / "reservations.db")
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def change_feed():
    """A change feed private to one test."""
    return ChangeFeed()


@pytest_asyncio.fixture(scope="function")
async def store(session_factory, change_feed):
    return ReservationStore(session_factory, feed=change_feed)


@pytest.fixture
def passenger():
    """Valid passenger details."""
    return {"passenger_name": "Nimal Perera", "passenger_phone": "0771234567"}


@pytest.fixture
def user():
    return {"user_id": "user-1", "roles": []}


@pytest.fixture
def other_user():
    return {"user_id": "user-2", "roles": []}


@pytest.fixture
def admin_user():
    return {"user_id": "admin-1", "roles": ["admin"]}


@pytest_asyncio.fixture(scope="function")
async def route(store):
    """An active Colombo -> Kandy route."""
    return await store.add_route("Colombo", "Kandy")


@pytest_asyncio.fixture(scope="function")
async def trip(store, route):
    """A 44-seat trip on the sample route."""
    return await store.add_trip(
        route_id=route.id,
        date=(date.today() + timedelta(days=7)).isoformat(),
        time="08:30",
        price=1200.0,
        seat_count=44,
        is_active=True,
    )


@pytest_asyncio.fixture(scope="function")
async def test_app(store):
    """Create the application with its store bound to the test database."""
    from seat_reservation.core.dependencies import get_store
    from seat_reservation.main import create_app

    app = create_app()
    app.dependency_overrides[get_store] = lambda: store

    yield app

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
