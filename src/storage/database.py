"""PostgreSQL engine lifecycle and per-request reservation service scopes."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.bootstrap import build_postgres_service
from src.config.settings import Settings, load_settings
from src.logging import get_logger, redact_credentials
from src.models.resource import Resource, ResourceInput
from src.services.notifications import NotificationGateway
from src.services.reservation_flow import ReservationFlowService
from src.storage.db_models import Base
from src.storage.locks import LockHelperProtocol
from src.storage.postgres_resource_repo import PostgresResourceRepository

logger = get_logger(__name__)


class Database:
    """Owns the async engine backing the resource catalog and reservation store."""

    def __init__(self, settings: Settings):
        """
        Initialize database manager.

        Args:
            settings: Application settings with database URL and pool sizing
        """
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_connected(self) -> bool:
        """Whether an engine is open."""
        return self._engine is not None

    async def connect(self) -> None:
        """Open the engine; repeated calls reuse it."""
        if self.is_connected:
            return

        self._engine = create_async_engine(
            self.settings.database_url,
            echo=self.settings.log_level.upper() == "DEBUG",
            pool_size=self.settings.db_pool_size,
            max_overflow=self.settings.db_max_overflow,
            pool_pre_ping=True,
        )
        # Repositories map rows to models after commit
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

        logger.info(
            "database_connected",
            url=redact_credentials(self.settings.database_url),
            pool_size=self.settings.db_pool_size,
        )

    async def disconnect(self) -> None:
        """Dispose of pooled connections."""
        if not self.is_connected:
            return

        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

        logger.info("database_disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Session scope that rolls back on error and always closes.

        Raises:
            RuntimeError: If connect() has not been called
        """
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def reservation_service(
        self,
        locks: LockHelperProtocol,
        notifier: NotificationGateway | None = None,
    ) -> AsyncIterator[ReservationFlowService]:
        """
        Reservation service bound to one session.

        Example:
            async with db.reservation_service(redis_locks) as service:
                reservation = await service.create_reservation(request)
        """
        async with self.session() as session:
            yield build_postgres_service(self.settings, session, locks, notifier)

    async def register_resources(self, inputs: Iterable[ResourceInput]) -> list[Resource]:
        """Add fleet entries to the catalog with every unit available."""
        async with self.session() as session:
            catalog = PostgresResourceRepository(session)
            registered = [
                await catalog.save(item.to_resource(default_currency=self.settings.currency))
                for item in inputs
            ]

        logger.info("resources_registered", count=len(registered))
        return registered

    async def create_tables(self) -> None:
        """Create the schema directly; deployments run the Alembic migration instead."""
        if not self.is_connected:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("database_tables_created", tables=sorted(Base.metadata.tables))


_db_instance: Database | None = None


def get_database() -> Database:
    """Process-wide Database built from environment settings."""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database(load_settings())
    return _db_instance
