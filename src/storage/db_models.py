"""SQLAlchemy database models.

Maps domain models to PostgreSQL tables.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, relationship

from src.models.reservation import ReservationStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class ResourceTable(Base):
    """Resource entity table."""

    __tablename__ = "resources"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    total_units = Column(Integer, nullable=False, default=1)
    available_units = Column(Integer, nullable=False, default=1)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    price_per_period = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    reservations = relationship("ReservationTable", back_populates="resource")

    __table_args__ = (
        CheckConstraint("total_units >= 0", name="check_nonnegative_total_units"),
        CheckConstraint("available_units >= 0", name="check_nonnegative_available_units"),
        CheckConstraint("available_units <= total_units", name="check_available_le_total"),
        CheckConstraint("is_available = (available_units > 0)", name="check_availability_flag"),
        CheckConstraint("price_per_period > 0", name="check_positive_price"),
    )


class ReservationTable(Base):
    """Reservation entity table."""

    __tablename__ = "reservations"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    reference = Column(String(12), nullable=False)
    requester_id = Column(String(100), nullable=False)
    resource_id = Column(PG_UUID(as_uuid=True), ForeignKey("resources.id", ondelete="RESTRICT"), nullable=False)
    window_start = Column(DateTime(timezone=True), nullable=False)
    window_end = Column(DateTime(timezone=True), nullable=False)
    unit_price_per_period = Column(Numeric(10, 2), nullable=False)
    addon_surcharge_per_period = Column(Numeric(10, 2), nullable=False, default=0)
    period_count = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    addons = Column(JSON, nullable=False, default=list)
    status = Column(
        Enum(ReservationStatus, native_enum=True, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
    )
    pickup_location = Column(String(200), nullable=True)
    special_requests = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Relationships
    resource = relationship("ResourceTable", back_populates="reservations")

    __table_args__ = (
        CheckConstraint("window_start < window_end", name="check_window_range"),
        CheckConstraint("period_count >= 1", name="check_min_period_count"),
        CheckConstraint("unit_price_per_period > 0", name="check_positive_unit_price"),
        CheckConstraint("total_price > 0", name="check_positive_total_price"),
        CheckConstraint(
            "status <> 'cancelled' OR cancellation_reason IS NOT NULL",
            name="check_cancellation_reason",
        ),
        Index("ix_reservations_reference", reference, unique=True),
        Index("ix_reservations_requester_created", requester_id, created_at.desc()),
        Index("ix_reservations_resource_window", resource_id, window_start, window_end),
        Index("ix_reservations_status", status),
    )
