"""Reservation domain model."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from src.models.resource import utcnow


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def holds_unit(self) -> bool:
        """Whether a reservation in this status occupies a unit and a window."""
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})


class AddOn(str, Enum):
    """Optional extras charged per rental period."""

    EXTRA_DRIVER = "extra_driver"
    INSURANCE = "insurance"


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so all windows compare consistently."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Reservation(BaseModel):
    """A time-bounded claim on one unit of a resource."""

    id: UUID = Field(default_factory=uuid4)
    reference: str = Field(min_length=12, max_length=12, description="Customer-facing code (e.g., RES-A3F2B8C1)")
    requester_id: str = Field(min_length=1, description="Identity that booked the resource")
    resource_id: UUID = Field(description="Reserved resource")
    window_start: datetime = Field(description="Inclusive start of the rental window")
    window_end: datetime = Field(description="Exclusive end of the rental window")
    unit_price_per_period: Decimal = Field(gt=0, description="Resource rate at booking time")
    addon_surcharge_per_period: Decimal = Field(default=Decimal("0"), ge=0)
    period_count: int = Field(ge=1)
    total_price: Decimal = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    addons: frozenset[AddOn] = Field(default_factory=frozenset)
    status: ReservationStatus = Field(default=ReservationStatus.CONFIRMED)
    pickup_location: Optional[str] = Field(default=None, max_length=200)
    special_requests: Optional[str] = Field(default=None, max_length=500)
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("window_start", "window_end")
    @classmethod
    def normalize_window(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return _as_utc(v)

    @model_validator(mode="after")
    def validate_window(self) -> "Reservation":
        """Ensure window_start < window_end."""
        if self.window_end <= self.window_start:
            raise ValueError("window_end must be after window_start")
        return self

    @property
    def is_active(self) -> bool:
        """Check if reservation currently holds a unit."""
        return self.status.holds_unit

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap test against [start, end)."""
        return self.window_start < _as_utc(end) and _as_utc(start) < self.window_end


class ReservationRequest(BaseModel):
    """Input model for reservation creation.

    The window order is checked by the reservation service so that a
    reversed window surfaces as InvalidWindow rather than a parse error.
    """

    resource_id: UUID
    requester_id: str = Field(min_length=1)
    window_start: datetime
    window_end: datetime
    addons: frozenset[AddOn] = Field(default_factory=frozenset)
    pickup_location: Optional[str] = Field(default=None, max_length=200)
    special_requests: Optional[str] = Field(default=None, max_length=500)

    @field_validator("window_start", "window_end")
    @classmethod
    def normalize_window(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return _as_utc(v)


class ReservationPage(BaseModel):
    """One page of an administrative reservation listing."""

    items: list[Reservation]
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)

    @property
    def pages(self) -> int:
        """Number of pages at the current limit."""
        return -(-self.total // self.limit)
