"""Initial reservation schema

Revision ID: 0001
Revises:
Create Date: 2025-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create routes table
    op.create_table('routes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('origin', sa.String(length=120), nullable=False),
        sa.Column('destination', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('length(origin) >= 2', name='ck_route_origin_min_length'),
        sa.CheckConstraint('length(destination) >= 2', name='ck_route_destination_min_length'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_routes_origin'), 'routes', ['origin'], unique=False)
    op.create_index(op.f('ix_routes_is_active'), 'routes', ['is_active'], unique=False)

    # Create trips table; no ON DELETE CASCADE, children are purged in batches first
    op.create_table('trips',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('route_id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('time', sa.String(length=5), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('seat_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('seat_count > 0', name='ck_trip_seat_count_positive'),
        sa.CheckConstraint('price >= 0', name='ck_trip_price_non_negative'),
        sa.ForeignKeyConstraint(['route_id'], ['routes.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_trips_route_id'), 'trips', ['route_id'], unique=False)
    op.create_index('ix_trips_route_date_time', 'trips', ['route_id', 'date', 'time'], unique=False)

    # Create reservations table keyed by "<trip_id>_<seat_id>"
    op.create_table('reservations',
        sa.Column('id', sa.String(length=80), nullable=False),
        sa.Column('trip_id', sa.String(length=36), nullable=False),
        sa.Column('seat_id', sa.String(length=8), nullable=False),
        sa.Column('passenger_name', sa.String(length=120), nullable=False),
        sa.Column('passenger_phone', sa.String(length=20), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('route_label', sa.String(length=255), nullable=True),
        sa.Column('trip_date', sa.String(length=10), nullable=True),
        sa.Column('trip_time', sa.String(length=5), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('length(passenger_name) >= 2', name='ck_reservation_passenger_name_min_length'),
        sa.CheckConstraint('length(seat_id) > 0', name='ck_reservation_seat_id_not_empty'),
        sa.CheckConstraint("status IN ('held', 'retracted')", name='ck_reservation_status_valid'),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reservations_trip_id'), 'reservations', ['trip_id'], unique=False)
    op.create_index(op.f('ix_reservations_user_id'), 'reservations', ['user_id'], unique=False)
    op.create_index(op.f('ix_reservations_status'), 'reservations', ['status'], unique=False)
    op.create_index('ix_reservations_trip_status', 'reservations', ['trip_id', 'status'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index('ix_reservations_trip_status', table_name='reservations')
    op.drop_index(op.f('ix_reservations_status'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_user_id'), table_name='reservations')
    op.drop_index(op.f('ix_reservations_trip_id'), table_name='reservations')
    op.drop_table('reservations')

    op.drop_index('ix_trips_route_date_time', table_name='trips')
    op.drop_index(op.f('ix_trips_route_id'), table_name='trips')
    op.drop_table('trips')

    op.drop_index(op.f('ix_routes_is_active'), table_name='routes')
    op.drop_index(op.f('ix_routes_origin'), table_name='routes')
    op.drop_table('routes')
