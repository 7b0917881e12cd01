#!/usr/bin/env python3
"""Setup script for the seat reservation API: migrate, then seed a sample trip."""

import asyncio
import logging
import sys
from datetime import date, timedelta
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from seat_reservation.core.database import async_session_factory, close_db
from seat_reservation.core.exceptions import ConflictError
from seat_reservation.schemas.route import CreateRouteRequest
from seat_reservation.schemas.trip import CreateTripRequest
from seat_reservation.services.reservation_store import ReservationStore
from seat_reservation.services.route_service import RouteService
from seat_reservation.services.trip_service import TripService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def migrate_database() -> None:
    """Bring the schema to the latest Alembic revision."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data() -> None:
    """Create one route with a week of daily trips, unless it already exists."""
    store = ReservationStore(async_session_factory)
    route_service = RouteService(store)
    trip_service = TripService(store)

    logger.info("Creating sample data...")
    try:
        route = await route_service.create_route(CreateRouteRequest(origin="Colombo", destination="Kandy"))
    except ConflictError:
        logger.info("Sample data already exists, skipping...")
        return

    first_day = date.today() + timedelta(days=1)
    for offset in range(7):
        await trip_service.create_trip(CreateTripRequest(
            route_id=route.id,
            date=first_day + timedelta(days=offset),
            time="08:30",
            price=1200.0,
        ))

    logger.info("Sample data created successfully!", extra={"route_id": route.id})


async def main():
    """Main setup function."""
    logger.info("Starting seat reservation API setup...")

    # Alembic drives its own event loop
    await asyncio.to_thread(migrate_database)
    await create_sample_data()
    await close_db()

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn seat_reservation.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
