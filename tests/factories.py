"""Builders for domain objects and fake collaborators used across tests."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from src.models.reservation import AddOn, Reservation, ReservationRequest, ReservationStatus
from src.models.resource import Resource


def day(n: int) -> datetime:
    """Midnight UTC of day ``n`` in a fixed test month."""
    return datetime(2026, 3, n, tzinfo=timezone.utc)


def make_resource(total_units: int = 1, price: str = "50.00", name: str = "Toyota Corolla") -> Resource:
    """Fresh resource with every unit available."""
    return Resource(
        id=uuid4(),
        name=name,
        total_units=total_units,
        available_units=total_units,
        is_available=total_units > 0,
        price_per_period=Decimal(price),
    )


def make_request(resource, start=1, end=3, requester_id="user-1", addons=()):
    """Reservation request for whole days of the test month."""
    return ReservationRequest(
        resource_id=resource.id,
        requester_id=requester_id,
        window_start=day(start),
        window_end=day(end),
        addons=frozenset(AddOn(a) for a in addons),
    )


def make_reservation(resource_id, start=1, end=3, status=ReservationStatus.CONFIRMED, **overrides):
    """Stored reservation at 50 per day."""
    fields = dict(
        reference="RES-0000ABCD",
        requester_id="user-1",
        resource_id=resource_id,
        window_start=day(start),
        window_end=day(end),
        unit_price_per_period=Decimal("50.00"),
        period_count=end - start,
        total_price=Decimal("50.00") * (end - start),
        status=status,
    )
    fields.update(overrides)
    return Reservation(**fields)


class RecordingNotifier:
    """Notification gateway that remembers every call."""

    def __init__(self):
        self.sent = []

    async def notify(self, event, reservation, resource, requester_id):
        self.sent.append((event, reservation.id, requester_id))

    @property
    def events(self):
        return [event for event, _, _ in self.sent]


class FailingNotifier:
    """Notification gateway whose delivery always fails."""

    def __init__(self):
        self.calls = 0

    async def notify(self, event, reservation, resource, requester_id):
        self.calls += 1
        raise ConnectionError("smtp unreachable")


class SlowNotifier:
    """Notification gateway that never finishes in time."""

    async def notify(self, event, reservation, resource, requester_id):
        await asyncio.sleep(10)
