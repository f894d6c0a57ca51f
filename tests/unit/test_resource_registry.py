"""Unit tests for the resource registry.

Uses a mocked catalog to verify unit accounting and error mapping.
"""

from unittest.mock import AsyncMock, patch

import pytest

from src.services.errors import FullyBooked, ResourceNotFound
from src.services.resource_registry import ResourceRegistry
from tests.factories import make_resource


@pytest.fixture
def mock_catalog():
    """Mock resource catalog."""
    return AsyncMock()


@pytest.mark.asyncio
async def test_get_resource_unknown_id(mock_catalog):
    """Unknown ids raise ResourceNotFound."""
    mock_catalog.get_by_id.return_value = None
    registry = ResourceRegistry(mock_catalog)

    resource = make_resource()
    with pytest.raises(ResourceNotFound) as exc_info:
        await registry.get_resource(resource.id)

    assert exc_info.value.resource_id == resource.id


@pytest.mark.asyncio
async def test_try_reserve_unit_success(mock_catalog):
    """A successful decrement returns the updated resource and is audited."""
    resource = make_resource(total_units=2)
    mock_catalog.decrement_available.return_value = resource.with_available_units(1)
    registry = ResourceRegistry(mock_catalog)

    with patch("src.services.resource_registry.AuditLogger") as mock_audit:
        updated = await registry.try_reserve_unit(resource.id)

    assert updated.available_units == 1
    assert updated.is_available is True
    mock_catalog.decrement_available.assert_awaited_once_with(resource.id)
    mock_audit.log_unit_movement.assert_called_once_with(resource.id, True, 1, 2)


@pytest.mark.asyncio
async def test_try_reserve_unit_fully_booked(mock_catalog):
    """A refused decrement raises FullyBooked."""
    resource = make_resource()
    mock_catalog.decrement_available.return_value = None
    registry = ResourceRegistry(mock_catalog)

    with pytest.raises(FullyBooked):
        await registry.try_reserve_unit(resource.id)


@pytest.mark.asyncio
async def test_release_unit_increments(mock_catalog):
    """Releasing returns a unit to the counter."""
    resource = make_resource(total_units=1).with_available_units(0)
    mock_catalog.get_by_id.return_value = resource
    mock_catalog.increment_available.return_value = resource.with_available_units(1)
    registry = ResourceRegistry(mock_catalog)

    with patch("src.services.resource_registry.AuditLogger") as mock_audit:
        updated = await registry.release_unit(resource.id)

    assert updated.available_units == 1
    assert updated.is_available is True
    mock_audit.log_unit_movement.assert_called_once_with(resource.id, False, 1, 1)


@pytest.mark.asyncio
async def test_release_unit_at_capacity_is_not_audited(mock_catalog):
    """Releasing a full resource is a capped no-op."""
    resource = make_resource(total_units=1)
    mock_catalog.get_by_id.return_value = resource
    mock_catalog.increment_available.return_value = resource
    registry = ResourceRegistry(mock_catalog)

    with patch("src.services.resource_registry.AuditLogger") as mock_audit:
        updated = await registry.release_unit(resource.id)

    assert updated.available_units == 1
    mock_audit.log_unit_movement.assert_not_called()


@pytest.mark.asyncio
async def test_release_unit_unknown_resource(mock_catalog):
    """Releasing on an unknown resource raises ResourceNotFound."""
    mock_catalog.get_by_id.return_value = None
    registry = ResourceRegistry(mock_catalog)

    with pytest.raises(ResourceNotFound):
        await registry.release_unit(make_resource().id)

    mock_catalog.increment_available.assert_not_called()


@pytest.mark.asyncio
async def test_list_available_delegates(mock_catalog):
    """Availability listing comes straight from the catalog."""
    resource = make_resource()
    mock_catalog.list_available.return_value = [resource]
    registry = ResourceRegistry(mock_catalog)

    assert await registry.list_available() == [resource]
