"""Unit tests for PostgreSQL repositories with a mocked session."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from src.models.reservation import AddOn, ReservationStatus
from src.services.errors import DependencyError, ResourceNotFound
from src.storage.db_models import ReservationTable, ResourceTable
from src.storage.postgres_reservation_repo import PostgresReservationRepository
from src.storage.postgres_resource_repo import PostgresResourceRepository
from tests.factories import day, make_reservation


@pytest.fixture
def mock_session():
    """Mock AsyncSession."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


def _result(row):
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    return result


def _resource_row(total=2, available=2):
    return ResourceTable(
        id=uuid4(),
        name="Toyota Corolla",
        total_units=total,
        available_units=available,
        is_available=available > 0,
        price_per_period=Decimal("50.00"),
        currency="USD",
        created_at=day(1),
        updated_at=day(1),
    )


@pytest.mark.asyncio
async def test_decrement_updates_row(mock_session):
    row = _resource_row(total=2, available=1)
    mock_session.execute.return_value = _result(row)
    repo = PostgresResourceRepository(mock_session)

    resource = await repo.decrement_available(row.id)

    assert resource.available_units == 0
    assert resource.is_available is False
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_decrement_empty_row_returns_none(mock_session):
    row = _resource_row(total=1, available=0)
    mock_session.execute.return_value = _result(row)
    repo = PostgresResourceRepository(mock_session)

    assert await repo.decrement_available(row.id) is None
    mock_session.rollback.assert_awaited()
    mock_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_increment_is_capped(mock_session):
    row = _resource_row(total=1, available=1)
    mock_session.execute.return_value = _result(row)
    repo = PostgresResourceRepository(mock_session)

    resource = await repo.increment_available(row.id)

    assert resource.available_units == 1


@pytest.mark.asyncio
async def test_counter_update_on_missing_row(mock_session):
    mock_session.execute.return_value = _result(None)
    repo = PostgresResourceRepository(mock_session)

    with pytest.raises(ResourceNotFound):
        await repo.decrement_available(uuid4())


@pytest.mark.asyncio
async def test_database_errors_become_dependency_errors(mock_session):
    mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection reset"))

    with pytest.raises(DependencyError):
        await PostgresResourceRepository(mock_session).get_by_id(uuid4())
    with pytest.raises(DependencyError):
        await PostgresReservationRepository(mock_session).get_by_id(uuid4())


@pytest.mark.asyncio
async def test_reservation_save_inserts_new_row(mock_session):
    mock_session.get.return_value = None
    reservation = make_reservation(
        uuid4(),
        addons=frozenset({AddOn.INSURANCE}),
        addon_surcharge_per_period=Decimal("15"),
        total_price=Decimal("130.00"),
    )
    repo = PostgresReservationRepository(mock_session)

    saved = await repo.save(reservation)

    row = mock_session.add.call_args.args[0]
    assert isinstance(row, ReservationTable)
    assert row.addons == ["insurance"]
    assert row.status == ReservationStatus.CONFIRMED
    assert saved.id == reservation.id
    assert saved.addons == frozenset({AddOn.INSURANCE})
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_reservation_save_failure_rolls_back(mock_session):
    mock_session.get.return_value = None
    mock_session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
    repo = PostgresReservationRepository(mock_session)

    with pytest.raises(DependencyError):
        await repo.save(make_reservation(uuid4()))

    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_reference_exists_queries_by_reference(mock_session):
    mock_session.execute.return_value = _result(uuid4())
    repo = PostgresReservationRepository(mock_session)

    assert await repo.reference_exists("RES-1234ABCD") is True

    mock_session.execute.return_value = _result(None)
    assert await repo.reference_exists("RES-00000000") is False
