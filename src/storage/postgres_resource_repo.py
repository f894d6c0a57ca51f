"""PostgreSQL repository for Resource entities."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging import get_logger
from src.models.resource import Resource
from src.services.errors import DependencyError, ResourceNotFound
from src.storage.db_models import ResourceTable
from src.storage.repository_base import ResourceCatalog

logger = get_logger(__name__)


class PostgresResourceRepository(ResourceCatalog):
    """Resource catalog using PostgreSQL."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, id: UUID) -> Optional[Resource]:
        """Retrieve resource by ID."""
        try:
            stmt = select(ResourceTable).where(ResourceTable.id == id)
            result = await self.session.execute(stmt)
            db_resource = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DependencyError(f"Resource lookup failed: {e}") from e

        if not db_resource:
            return None

        return self._to_domain_model(db_resource)

    async def save(self, entity: Resource) -> Resource:
        """Insert or update a resource."""
        try:
            db_resource = await self.session.get(ResourceTable, entity.id)
            if db_resource is None:
                db_resource = ResourceTable(
                    id=entity.id, created_at=entity.created_at, updated_at=entity.updated_at
                )
                self.session.add(db_resource)

            db_resource.name = entity.name
            db_resource.total_units = entity.total_units
            db_resource.available_units = entity.available_units
            db_resource.is_available = entity.available_units > 0
            db_resource.price_per_period = entity.price_per_period
            db_resource.currency = entity.currency

            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyError(f"Resource save failed: {e}") from e

        logger.info("resource_saved", resource_id=str(entity.id))

        return self._to_domain_model(db_resource)

    async def decrement_available(self, id: UUID) -> Optional[Resource]:
        """Atomically take one unit under a row lock."""
        try:
            db_resource = await self._lock_row(id)
            available = db_resource.available_units

            if available <= 0:
                await self.session.rollback()
                logger.warning(
                    "insufficient_units",
                    resource_id=str(id),
                    available=available,
                )
                return None

            db_resource.available_units -= 1
            db_resource.is_available = db_resource.available_units > 0

            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyError(f"Unit decrement failed: {e}") from e

        return self._to_domain_model(db_resource)

    async def increment_available(self, id: UUID) -> Resource:
        """Atomically return one unit, capped at total_units."""
        try:
            db_resource = await self._lock_row(id)

            db_resource.available_units = min(
                db_resource.available_units + 1, db_resource.total_units
            )
            db_resource.is_available = db_resource.available_units > 0

            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyError(f"Unit increment failed: {e}") from e

        return self._to_domain_model(db_resource)

    async def list_available(self) -> list[Resource]:
        """Resources with at least one free unit."""
        try:
            stmt = (
                select(ResourceTable)
                .where(ResourceTable.is_available.is_(True))
                .order_by(ResourceTable.name.asc())
            )
            result = await self.session.execute(stmt)
            db_resources = result.scalars().all()
        except SQLAlchemyError as e:
            raise DependencyError(f"Resource listing failed: {e}") from e

        return [self._to_domain_model(db_res) for db_res in db_resources]

    async def _lock_row(self, id: UUID) -> ResourceTable:
        stmt = (
            select(ResourceTable)
            .where(ResourceTable.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        db_resource = result.scalar_one_or_none()

        if not db_resource:
            await self.session.rollback()
            raise ResourceNotFound(id)

        return db_resource

    def _to_domain_model(self, db_resource: ResourceTable) -> Resource:
        """Convert database model to domain model."""
        return Resource(
            id=db_resource.id,
            name=db_resource.name,
            total_units=db_resource.total_units,
            available_units=db_resource.available_units,
            is_available=db_resource.is_available,
            price_per_period=db_resource.price_per_period,
            currency=db_resource.currency,
            created_at=db_resource.created_at,
            updated_at=db_resource.updated_at,
        )
