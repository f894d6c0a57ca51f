"""Unit tests for resource and reservation models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.models.reservation import ReservationPage, ReservationRequest, ReservationStatus
from src.models.resource import Resource, ResourceInput
from tests.factories import day, make_reservation, make_resource


class TestResource:
    """Resource counter invariants."""

    def test_available_cannot_exceed_total(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            Resource(
                name="Van",
                total_units=1,
                available_units=2,
                is_available=True,
                price_per_period=Decimal("80.00"),
            )

    def test_flag_must_match_counter(self):
        with pytest.raises(ValidationError, match="is_available"):
            Resource(
                name="Van",
                total_units=1,
                available_units=0,
                is_available=True,
                price_per_period=Decimal("80.00"),
            )

    def test_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            Resource(
                name="Van",
                total_units=1,
                available_units=1,
                is_available=True,
                price_per_period=Decimal("0"),
            )

    def test_with_available_units_keeps_flag_consistent(self):
        resource = make_resource(total_units=2)

        empty = resource.with_available_units(0)

        assert empty.available_units == 0
        assert empty.is_available is False
        assert resource.available_units == 2

    def test_resource_input_builds_fully_available_resource(self):
        resource = ResourceInput(name="Sedan", total_units=3, price_per_period=Decimal("45.50")).to_resource()

        assert resource.available_units == 3
        assert resource.is_available is True

    def test_resource_input_with_no_units_is_unavailable(self):
        resource = ResourceInput(name="Sedan", total_units=0, price_per_period=Decimal("45.50")).to_resource()

        assert resource.is_available is False

    def test_resource_input_currency_falls_back_to_default(self):
        item = ResourceInput(name="Sedan", price_per_period=Decimal("45.50"))

        assert item.to_resource().currency == "USD"
        assert item.to_resource(default_currency="EUR").currency == "EUR"
        assert ResourceInput(name="Sedan", price_per_period=Decimal("45.50"), currency="GBP").to_resource(
            default_currency="EUR"
        ).currency == "GBP"


class TestReservation:
    """Reservation window handling."""

    def test_window_must_be_ordered(self):
        with pytest.raises(ValidationError, match="window_end"):
            make_reservation(uuid4(), 3, 3, period_count=1, total_price=Decimal("50"))

    def test_naive_timestamps_are_treated_as_utc(self):
        reservation = make_reservation(
            uuid4(),
            window_start=datetime(2026, 3, 1),
            window_end=datetime(2026, 3, 3),
        )

        assert reservation.window_start == day(1)
        assert reservation.window_end.tzinfo == timezone.utc

    def test_request_accepts_mixed_and_reversed_windows(self):
        """Order is left to the service; naive values become UTC."""
        request = ReservationRequest(
            resource_id=uuid4(),
            requester_id="user-1",
            window_start=day(3),
            window_end=datetime(2026, 3, 1),
        )

        assert request.window_end == day(1)
        assert request.window_end < request.window_start

    def test_overlaps_is_half_open(self):
        reservation = make_reservation(uuid4(), 2, 4)

        assert reservation.overlaps(day(1), day(3))
        assert reservation.overlaps(day(3), day(5))
        assert not reservation.overlaps(day(4), day(6))
        assert not reservation.overlaps(day(1), day(2))

    def test_contained_window_overlaps(self):
        reservation = make_reservation(uuid4(), 1, 10)

        assert reservation.overlaps(day(2), day(2) + timedelta(hours=1))

    @pytest.mark.parametrize(
        "status,active",
        [
            (ReservationStatus.PENDING, True),
            (ReservationStatus.CONFIRMED, True),
            (ReservationStatus.CANCELLED, False),
            (ReservationStatus.COMPLETED, False),
        ],
    )
    def test_is_active(self, status, active):
        reservation = make_reservation(uuid4(), status=status)

        assert reservation.is_active is active
        assert status.holds_unit is active

    def test_special_requests_length_limit(self):
        with pytest.raises(ValidationError):
            make_reservation(uuid4(), special_requests="x" * 501)


def test_reservation_request_allows_reversed_window():
    """Window order is enforced by the service, not at parse time."""
    request = ReservationRequest(
        resource_id=uuid4(),
        requester_id="user-1",
        window_start=day(3),
        window_end=day(1),
    )

    assert request.window_end < request.window_start


def test_reservation_request_requires_requester():
    """An empty requester id is rejected."""
    with pytest.raises(ValidationError):
        ReservationRequest(
            resource_id=uuid4(),
            requester_id="",
            window_start=day(1),
            window_end=day(2),
        )


@pytest.mark.parametrize("total,limit,pages", [(0, 20, 0), (20, 20, 1), (21, 20, 2), (5, 1, 5)])
def test_reservation_page_count(total, limit, pages):
    """Page count rounds up."""
    page = ReservationPage(items=[], page=1, limit=limit, total=total)

    assert page.pages == pages
