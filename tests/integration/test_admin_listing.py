"""Integration tests for reservation listings."""

import pytest
import pytest_asyncio

from src.bootstrap import build_in_memory_service
from src.models.reservation import ReservationStatus
from src.services.errors import Forbidden, InvalidStatus, ValidationError
from src.storage.memory_repos import InMemoryResourceCatalog
from tests.factories import make_request, make_resource


@pytest_asyncio.fixture
async def booked_service(settings, notifier):
    """Service with five bookings on a large fleet, two of them cancelled."""
    van = make_resource(total_units=10, name="Transit Van")
    service = build_in_memory_service(
        settings, catalog=InMemoryResourceCatalog([van]), notifier=notifier
    )

    reservations = []
    for i in range(5):
        reservation = await service.create_reservation(
            make_request(van, 1 + 2 * i, 2 + 2 * i, requester_id=f"user-{i % 2}")
        )
        reservations.append(reservation)

    for reservation in reservations[:2]:
        await service.cancel_reservation(
            reservation.id, reservation.requester_id, False, "change of plans"
        )

    return service


@pytest.mark.asyncio
async def test_list_all_requires_privilege(booked_service):
    with pytest.raises(Forbidden):
        await booked_service.list_reservations("user-1", False)


@pytest.mark.asyncio
async def test_list_all_pages(booked_service):
    first = await booked_service.list_reservations("admin-1", False, page=1, limit=2)
    last = await booked_service.list_reservations("admin-1", False, page=3, limit=2)

    assert first.total == 5
    assert first.pages == 3
    assert len(first.items) == 2
    assert len(last.items) == 1

    ids = {r.id for r in first.items} | {r.id for r in last.items}
    assert len(ids) == 3


@pytest.mark.asyncio
async def test_list_all_filters_by_status(booked_service):
    page = await booked_service.list_reservations("support", True, status="cancelled")

    assert page.total == 2
    assert all(r.status == ReservationStatus.CANCELLED for r in page.items)


@pytest.mark.asyncio
async def test_list_all_rejects_bad_arguments(booked_service):
    with pytest.raises(InvalidStatus):
        await booked_service.list_reservations("admin-1", False, status="archived")
    with pytest.raises(ValidationError):
        await booked_service.list_reservations("admin-1", False, page=0)
    with pytest.raises(ValidationError):
        await booked_service.list_reservations("admin-1", False, limit=101)


@pytest.mark.asyncio
async def test_requester_history(booked_service):
    history = await booked_service.list_requester_reservations("user-0")

    assert len(history) == 3
    assert all(r.requester_id == "user-0" for r in history)
    assert await booked_service.list_requester_reservations("nobody") == []
