"""Initial schema with resources and reservations

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create initial database schema."""
    # Stored values match ReservationStatus.value
    op.execute("CREATE TYPE reservationstatus AS ENUM ('pending', 'confirmed', 'cancelled', 'completed')")

    # Create resources table
    op.create_table(
        'resources',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('total_units', sa.Integer(), nullable=False),
        sa.Column('available_units', sa.Integer(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('price_per_period', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('total_units >= 0', name='check_nonnegative_total_units'),
        sa.CheckConstraint('available_units >= 0', name='check_nonnegative_available_units'),
        sa.CheckConstraint('available_units <= total_units', name='check_available_le_total'),
        sa.CheckConstraint('is_available = (available_units > 0)', name='check_availability_flag'),
        sa.CheckConstraint('price_per_period > 0', name='check_positive_price'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_resources_name', 'resources', ['name'])
    op.create_index('ix_resources_is_available', 'resources', ['is_available'])

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, primary_key=True),
        sa.Column('reference', sa.String(length=12), nullable=False),
        sa.Column('requester_id', sa.String(length=100), nullable=False),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('window_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('window_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('unit_price_per_period', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('addon_surcharge_per_period', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('period_count', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('addons', sa.JSON(), nullable=False),
        sa.Column('status', postgresql.ENUM('pending', 'confirmed', 'cancelled', 'completed', name='reservationstatus', create_type=False), nullable=False),
        sa.Column('pickup_location', sa.String(length=200), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('window_start < window_end', name='check_window_range'),
        sa.CheckConstraint('period_count >= 1', name='check_min_period_count'),
        sa.CheckConstraint('unit_price_per_period > 0', name='check_positive_unit_price'),
        sa.CheckConstraint('total_price > 0', name='check_positive_total_price'),
        sa.CheckConstraint(
            "status <> 'cancelled' OR cancellation_reason IS NOT NULL",
            name='check_cancellation_reason'
        ),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reservations_reference', 'reservations', ['reference'], unique=True)
    op.create_index('ix_reservations_requester_created', 'reservations', ['requester_id', sa.text('created_at DESC')])
    op.create_index('ix_reservations_resource_window', 'reservations', ['resource_id', 'window_start', 'window_end'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])


def downgrade() -> None:
    """Drop all tables and types."""
    op.drop_table('reservations')
    op.drop_table('resources')

    op.execute('DROP TYPE IF EXISTS reservationstatus')
