"""Resource registry service.

Owns the unit counters of every resource. Counter changes are delegated to
the catalog's atomic decrement/increment so two concurrent callers can never
both take the last unit.
"""

from uuid import UUID

from src.logging import get_logger
from src.logging.audit import AuditLogger
from src.models.resource import Resource
from src.services.errors import FullyBooked, ResourceNotFound
from src.storage.repository_base import ResourceCatalog

logger = get_logger(__name__)


class ResourceRegistry:
    """Atomic unit accounting on top of a resource catalog."""

    def __init__(self, catalog: ResourceCatalog):
        """
        Initialize resource registry.

        Args:
            catalog: Resource catalog performing the atomic counter updates
        """
        self.catalog = catalog

    async def get_resource(self, resource_id: UUID) -> Resource:
        """
        Look up a resource.

        Raises:
            ResourceNotFound: If the id is unknown
        """
        resource = await self.catalog.get_by_id(resource_id)
        if resource is None:
            raise ResourceNotFound(resource_id)
        return resource

    async def try_reserve_unit(self, resource_id: UUID) -> Resource:
        """
        Take one unit of the resource.

        Args:
            resource_id: Resource to take a unit from

        Returns:
            Resource with the decremented counter

        Raises:
            ResourceNotFound: If the id is unknown
            FullyBooked: If no unit is left
        """
        resource = await self.catalog.decrement_available(resource_id)
        if resource is None:
            logger.info("resource_fully_booked", resource_id=str(resource_id))
            raise FullyBooked(resource_id)

        logger.info(
            "unit_reserved",
            resource_id=str(resource_id),
            available_units=resource.available_units,
            is_available=resource.is_available,
        )
        AuditLogger.log_unit_movement(
            resource_id, True, resource.available_units, resource.total_units
        )
        return resource

    async def release_unit(self, resource_id: UUID) -> Resource:
        """
        Return one unit of the resource, capped at its total.

        Args:
            resource_id: Resource to return a unit to

        Returns:
            Resource with the incremented counter

        Raises:
            ResourceNotFound: If the id is unknown
        """
        before = await self.get_resource(resource_id)
        resource = await self.catalog.increment_available(resource_id)

        if before.available_units >= before.total_units:
            logger.warning(
                "unit_release_at_capacity",
                resource_id=str(resource_id),
                total_units=resource.total_units,
            )
            return resource

        logger.info(
            "unit_released",
            resource_id=str(resource_id),
            available_units=resource.available_units,
            is_available=resource.is_available,
        )
        AuditLogger.log_unit_movement(
            resource_id, False, resource.available_units, resource.total_units
        )
        return resource

    async def list_available(self) -> list[Resource]:
        """Resources whose unit counter shows at least one free unit."""
        return await self.catalog.list_available()
