"""Service wiring for the reservation engine."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import Settings
from src.models.reservation import ReservationStatus
from src.security.permissions import PermissionChecker
from src.services.conflict_checker import IntervalConflictChecker
from src.services.notifications import LoggingNotificationGateway, NotificationGateway
from src.services.pricing import PricingCalculator
from src.services.reservation_flow import ReservationFlowService
from src.services.resource_registry import ResourceRegistry
from src.storage.locks import LocalLockHelper, LockHelperProtocol
from src.storage.memory_repos import InMemoryReservationStore, InMemoryResourceCatalog
from src.storage.postgres_reservation_repo import PostgresReservationRepository
from src.storage.postgres_resource_repo import PostgresResourceRepository
from src.storage.repository_base import ResourceCatalog, ReservationStore


def build_reservation_service(
    settings: Settings,
    catalog: ResourceCatalog,
    reservation_store: ReservationStore,
    locks: LockHelperProtocol,
    notifier: NotificationGateway | None = None,
) -> ReservationFlowService:
    """Assemble the reservation service from its collaborators."""
    return ReservationFlowService(
        registry=ResourceRegistry(catalog),
        conflict_checker=IntervalConflictChecker(reservation_store, settings.overlap_policy),
        pricing=PricingCalculator.from_settings(settings),
        reservation_store=reservation_store,
        locks=locks,
        notifier=notifier or LoggingNotificationGateway(),
        permissions=PermissionChecker(admin_user_ids=settings.admin_user_ids),
        initial_status=ReservationStatus(settings.initial_status),
        release_unit_on_completion=settings.release_unit_on_completion,
        admin_cancellation_reason=settings.admin_cancellation_reason,
        notification_timeout_seconds=settings.notification_timeout_seconds,
    )


def build_in_memory_service(
    settings: Settings,
    catalog: InMemoryResourceCatalog | None = None,
    notifier: NotificationGateway | None = None,
) -> ReservationFlowService:
    """Single-process service with in-memory storage and asyncio locks."""
    return build_reservation_service(
        settings,
        catalog=catalog or InMemoryResourceCatalog(),
        reservation_store=InMemoryReservationStore(),
        locks=LocalLockHelper(wait_seconds=settings.lock_wait_seconds),
        notifier=notifier,
    )


def build_postgres_service(
    settings: Settings,
    session: AsyncSession,
    locks: LockHelperProtocol,
    notifier: NotificationGateway | None = None,
) -> ReservationFlowService:
    """
    Service backed by PostgreSQL.

    Pass a connected RedisLockHelper as ``locks`` when more than one process
    serves requests; LocalLockHelper only serializes within one event loop.
    """
    return build_reservation_service(
        settings,
        catalog=PostgresResourceRepository(session),
        reservation_store=PostgresReservationRepository(session),
        locks=locks,
        notifier=notifier,
    )
