"""Resource (vehicle) domain models."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class Resource(BaseModel):
    """A reservable item with a finite number of interchangeable units."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1, max_length=200)
    total_units: int = Field(ge=0, description="Units owned by the fleet")
    available_units: int = Field(ge=0, description="Units not held by an active reservation")
    is_available: bool = Field(description="Stored copy of available_units > 0")
    price_per_period: Decimal = Field(gt=0, decimal_places=2, description="Rate per rental period")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def validate_counters(self) -> "Resource":
        """Ensure available_units <= total_units and the flag matches it."""
        if self.available_units > self.total_units:
            raise ValueError("available_units cannot exceed total_units")
        if self.is_available != (self.available_units > 0):
            raise ValueError("is_available must equal available_units > 0")
        return self

    def with_available_units(self, available_units: int) -> "Resource":
        """Return a copy with a new unit count and a consistent availability flag."""
        return self.model_copy(
            update={
                "available_units": available_units,
                "is_available": available_units > 0,
                "updated_at": utcnow(),
            }
        )


class ResourceInput(BaseModel):
    """Input model for catalog registration of a resource."""

    name: str = Field(min_length=1, max_length=200)
    total_units: int = Field(default=1, ge=0)
    price_per_period: Decimal = Field(gt=0, decimal_places=2)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    def to_resource(self, default_currency: str = "USD") -> Resource:
        """Build a fresh resource with every unit available.

        Args:
            default_currency: Currency used when the input names none
        """
        return Resource(
            name=self.name,
            total_units=self.total_units,
            available_units=self.total_units,
            is_available=self.total_units > 0,
            price_per_period=self.price_per_period,
            currency=self.currency or default_currency,
        )
