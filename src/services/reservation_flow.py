"""Reservation flow service.

Owns the reservation lifecycle. Creation holds the resource lock across the
conflict check, the unit decrement and the insert, so two requests can never
both pass the check before either is stored. Status changes hold the
reservation lock first and the resource lock second.
"""

import secrets
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncContextManager, AsyncIterator, Optional
from uuid import UUID

from src.logging import get_logger
from src.logging.audit import AuditLogger
from src.models.reservation import (
    Reservation,
    ReservationPage,
    ReservationRequest,
    ReservationStatus,
)
from src.models.resource import Resource, utcnow
from src.security.permissions import Permission, PermissionChecker
from src.services.conflict_checker import IntervalConflictChecker
from src.services.errors import (
    AlreadyCancelled,
    DependencyError,
    Forbidden,
    InvalidWindow,
    ReasonRequired,
    ReservationError,
    ReservationNotFound,
    ResourceBusy,
    ResourceUnavailable,
    SlotConflict,
    TerminalCompleted,
    ValidationError,
)
from src.services.notifications import NotificationEvent, NotificationGateway, notify_safely
from src.services.pricing import PricingCalculator
from src.services.resource_registry import ResourceRegistry
from src.services.status_transitions import parse_status, plan_transition
from src.storage.locks import LockHelperProtocol
from src.storage.repository_base import ReservationStore

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100
REFERENCE_ATTEMPTS = 5


class ReservationFlowService:
    """Service for reservation creation, cancellation and status changes."""

    def __init__(
        self,
        registry: ResourceRegistry,
        conflict_checker: IntervalConflictChecker,
        pricing: PricingCalculator,
        reservation_store: ReservationStore,
        locks: LockHelperProtocol,
        notifier: NotificationGateway,
        permissions: PermissionChecker | None = None,
        initial_status: ReservationStatus = ReservationStatus.CONFIRMED,
        release_unit_on_completion: bool = False,
        admin_cancellation_reason: str = "Cancelled by admin",
        notification_timeout_seconds: float = 5.0,
    ):
        """
        Initialize reservation flow service.

        Args:
            registry: Unit accounting for resources
            conflict_checker: Window overlap arbitration
            pricing: Period and price computation
            reservation_store: Reservation persistence
            locks: Per-resource and per-reservation locks
            notifier: Best-effort lifecycle notification gateway
            permissions: Ownership and privilege checks
            initial_status: Status given to new reservations (must be active)
            release_unit_on_completion: Return the unit when completing an
                active reservation
            admin_cancellation_reason: Reason stored when an admin cancels
                without giving one
            notification_timeout_seconds: Upper bound on a gateway call
        """
        if not initial_status.holds_unit:
            raise ValueError(f"initial_status must be pending or confirmed, got {initial_status.value}")

        self.registry = registry
        self.conflict_checker = conflict_checker
        self.pricing = pricing
        self.reservation_store = reservation_store
        self.locks = locks
        self.notifier = notifier
        self.permissions = permissions or PermissionChecker()
        self.initial_status = initial_status
        self.release_unit_on_completion = release_unit_on_completion
        self.admin_cancellation_reason = admin_cancellation_reason
        self.notification_timeout_seconds = notification_timeout_seconds

    async def create_reservation(self, request: ReservationRequest) -> Reservation:
        """
        Book one unit of a resource for a window.

        Args:
            request: Validated booking request

        Returns:
            The stored reservation

        Raises:
            InvalidWindow: If window_end <= window_start
            ResourceNotFound: If the resource is unknown
            SlotConflict: If an active reservation blocks the window
            ResourceUnavailable: If the resource is flagged unavailable
            InvalidDuration: If the window is shorter than one period
            FullyBooked: If no unit is left
            ResourceBusy: If the resource lock could not be obtained
            DependencyError: If persisting failed (the unit is released again)
                or no unused reference could be drawn
        """
        if request.window_end <= request.window_start:
            raise InvalidWindow("Drop-off must be after pick-up")

        async with self._hold(
            self.locks.acquire_resource_lock(request.resource_id), "resource", request.resource_id
        ):
            resource = await self.registry.get_resource(request.resource_id)

            # An overlapping booking is reported ahead of the coarse availability flag
            blocking = await self.conflict_checker.find_blocking(
                resource, request.window_start, request.window_end
            )
            if blocking:
                logger.info(
                    "reservation_slot_conflict",
                    resource_id=str(resource.id),
                    conflicting=[str(r.id) for r in blocking],
                )
                raise SlotConflict(resource.id, [r.id for r in blocking])

            if not resource.is_available:
                raise ResourceUnavailable(resource.id)

            period_count = self.pricing.count_periods(request.window_start, request.window_end)
            total_price = self.pricing.compute_price(
                resource.price_per_period, period_count, request.addons
            )

            reservation = Reservation(
                reference=await self._new_reference(),
                requester_id=request.requester_id,
                resource_id=resource.id,
                window_start=request.window_start,
                window_end=request.window_end,
                unit_price_per_period=resource.price_per_period,
                addon_surcharge_per_period=self.pricing.surcharge_per_period(request.addons),
                period_count=period_count,
                total_price=total_price,
                currency=resource.currency,
                addons=request.addons,
                status=self.initial_status,
                pickup_location=request.pickup_location,
                special_requests=request.special_requests,
            )

            # Inventory is the last check; a failed insert hands the unit back
            resource = await self.registry.try_reserve_unit(resource.id)
            try:
                reservation = await self.reservation_store.save(reservation)
            except Exception as e:
                logger.error(
                    "reservation_creation_failed",
                    resource_id=str(resource.id),
                    error=str(e),
                    exc_info=True,
                )
                await self.registry.release_unit(resource.id)
                if isinstance(e, ReservationError):
                    raise
                raise DependencyError(f"Failed to store reservation: {e}") from e

        logger.info(
            "reservation_created",
            reservation_id=str(reservation.id),
            reference=reservation.reference,
            requester_id=reservation.requester_id,
            resource_id=str(reservation.resource_id),
            period_count=reservation.period_count,
            total_price=str(reservation.total_price),
        )
        AuditLogger.log_reservation_created(
            reservation.requester_id,
            reservation.id,
            reservation.resource_id,
            reservation.total_price,
            reservation.period_count,
        )

        await self._notify(NotificationEvent.RESERVATION_CREATED, reservation, resource)
        return reservation

    async def cancel_reservation(
        self,
        reservation_id: UUID,
        actor_id: str,
        is_privileged: bool,
        reason: Optional[str],
    ) -> Reservation:
        """
        Cancel a reservation on behalf of its requester or an admin.

        Raises:
            ReservationNotFound: If the reservation is unknown
            Forbidden: If actor is neither the requester nor privileged
            ReasonRequired: If reason is empty
            AlreadyCancelled: If already cancelled
            TerminalCompleted: If already completed
            ResourceBusy: If a lock could not be obtained
            DependencyError: If the unit could not be returned (the
                reservation keeps its previous status)
        """
        async with self._hold(
            self.locks.acquire_reservation_lock(reservation_id), "reservation", reservation_id
        ):
            reservation = await self._get_existing(reservation_id)

            if not self.permissions.can_cancel(actor_id, is_privileged, reservation):
                AuditLogger.log_permission_denied(
                    actor_id, "reservation", reservation_id, Permission.CANCEL_RESERVATION.value
                )
                raise Forbidden("You are not authorized to cancel this reservation")

            if not reason or not reason.strip():
                raise ReasonRequired("Please provide a cancellation reason")

            if reservation.status == ReservationStatus.CANCELLED:
                raise AlreadyCancelled("Reservation is already cancelled")

            if reservation.status == ReservationStatus.COMPLETED:
                raise TerminalCompleted("Cannot cancel a completed reservation")

            async with self._hold(
                self.locks.acquire_resource_lock(reservation.resource_id),
                "resource",
                reservation.resource_id,
            ):
                resource = await self.registry.get_resource(reservation.resource_id)
                cancelled = await self.reservation_store.save(
                    reservation.model_copy(
                        update={
                            "status": ReservationStatus.CANCELLED,
                            "cancellation_reason": reason.strip(),
                            "cancelled_at": utcnow(),
                        }
                    )
                )
                resource = await self._release_or_restore(reservation, resource.id)

        logger.info(
            "reservation_cancelled",
            reservation_id=str(reservation_id),
            reference=cancelled.reference,
            actor_id=actor_id,
            resource_id=str(cancelled.resource_id),
        )
        AuditLogger.log_reservation_cancelled(actor_id, reservation_id, cancelled.cancellation_reason)

        await self._notify(NotificationEvent.RESERVATION_CANCELLED, cancelled, resource)
        return cancelled

    async def change_status(
        self,
        reservation_id: UUID,
        actor_id: str,
        is_privileged: bool,
        new_status: ReservationStatus | str,
        reason: Optional[str] = None,
    ) -> Reservation:
        """
        Set a reservation's status (admin operation).

        Args:
            reservation_id: Reservation to update
            actor_id: Identity performing the change
            is_privileged: Whether the caller holds elevated privilege
            new_status: Target status
            reason: Cancellation reason, defaulted for admin cancellations

        Raises:
            Forbidden: If actor is not privileged
            InvalidStatus: If new_status is not a lifecycle status
            ReservationNotFound: If the reservation is unknown
            TerminalCompleted: If the reservation is completed
            SlotConflict: If reviving a cancellation clashes with a newer booking
            FullyBooked: If reviving a cancellation finds no unit left
            ResourceBusy: If a lock could not be obtained
            DependencyError: If storing the change or returning the unit failed
        """
        if not self.permissions.can_change_status(actor_id, is_privileged):
            AuditLogger.log_permission_denied(
                actor_id, "reservation", reservation_id, Permission.CHANGE_STATUS.value
            )
            raise Forbidden("Only administrators can change reservation status")

        target = parse_status(new_status)

        async with self._hold(
            self.locks.acquire_reservation_lock(reservation_id), "reservation", reservation_id
        ):
            reservation = await self._get_existing(reservation_id)
            plan = plan_transition(
                reservation.status, target, self.release_unit_on_completion
            )

            if plan.is_noop:
                logger.debug(
                    "reservation_status_unchanged",
                    reservation_id=str(reservation_id),
                    status=target.value,
                )
                return reservation

            async with self._hold(
                self.locks.acquire_resource_lock(reservation.resource_id),
                "resource",
                reservation.resource_id,
            ):
                resource = await self.registry.get_resource(reservation.resource_id)

                if plan.recheck_conflicts:
                    blocking = await self.conflict_checker.find_blocking(
                        resource,
                        reservation.window_start,
                        reservation.window_end,
                        exclude_reservation_id=reservation.id,
                    )
                    if blocking:
                        raise SlotConflict(resource.id, [r.id for r in blocking])

                if plan.reserve_unit:
                    resource = await self.registry.try_reserve_unit(resource.id)

                try:
                    updated = await self.reservation_store.save(
                        reservation.model_copy(update=self._status_updates(reservation, target, reason))
                    )
                except Exception as e:
                    logger.error(
                        "reservation_status_update_failed",
                        reservation_id=str(reservation_id),
                        error=str(e),
                        exc_info=True,
                    )
                    if plan.reserve_unit:
                        await self.registry.release_unit(resource.id)
                    if isinstance(e, ReservationError):
                        raise
                    raise DependencyError(f"Failed to update reservation: {e}") from e

                if plan.release_unit:
                    resource = await self._release_or_restore(reservation, resource.id)

        logger.info(
            "reservation_status_changed",
            reservation_id=str(reservation_id),
            actor_id=actor_id,
            old_status=plan.old_status.value,
            new_status=plan.new_status.value,
        )
        AuditLogger.log_status_changed(
            actor_id, reservation_id, plan.old_status.value, plan.new_status.value
        )

        if plan.notification:
            await self._notify(plan.notification, updated, resource)
        return updated

    async def get_reservation(
        self, reservation_id: UUID, actor_id: str, is_privileged: bool
    ) -> Reservation:
        """Fetch one reservation visible to its owner or an admin."""
        reservation = await self._get_existing(reservation_id)
        if not self.permissions.can_view(actor_id, is_privileged, reservation):
            AuditLogger.log_permission_denied(
                actor_id, "reservation", reservation_id, Permission.VIEW_RESERVATION.value
            )
            raise Forbidden("You are not authorized to view this reservation")
        return reservation

    async def list_requester_reservations(self, requester_id: str) -> list[Reservation]:
        """Reservations made by one requester, newest first."""
        return await self.reservation_store.get_by_requester(requester_id)

    async def list_reservations(
        self,
        actor_id: str,
        is_privileged: bool,
        status: ReservationStatus | str | None = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ReservationPage:
        """
        Page through all reservations (admin operation).

        Raises:
            Forbidden: If actor is not privileged
            InvalidStatus: If status filter is not a lifecycle status
            ValidationError: If page or limit is out of range
        """
        if not self.permissions.can_list_all(actor_id, is_privileged):
            AuditLogger.log_permission_denied(
                actor_id, "reservation", "*", Permission.LIST_ALL_RESERVATIONS.value
            )
            raise Forbidden("Only administrators can list all reservations")

        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        status_filter = parse_status(status) if status is not None else None
        items, total = await self.reservation_store.search(
            status=status_filter,
            created_from=created_from,
            created_to=created_to,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return ReservationPage(items=items, page=page, limit=limit, total=total)

    async def list_active_windows(self, resource_id: UUID) -> list[tuple[datetime, datetime]]:
        """
        Windows held by active reservations, for availability search.

        Raises:
            ResourceNotFound: If the resource is unknown
        """
        await self.registry.get_resource(resource_id)
        return await self.conflict_checker.list_active_windows(resource_id)

    async def list_available_resources(self) -> list[Resource]:
        """Resources with at least one free unit."""
        return await self.registry.list_available()

    async def _get_existing(self, reservation_id: UUID) -> Reservation:
        reservation = await self.reservation_store.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    def _status_updates(
        self,
        reservation: Reservation,
        target: ReservationStatus,
        reason: Optional[str],
    ) -> dict:
        now = utcnow()
        updates: dict = {"status": target}

        if target == ReservationStatus.CANCELLED:
            updates["cancellation_reason"] = (
                reason.strip() if reason and reason.strip() else self.admin_cancellation_reason
            )
            updates["cancelled_at"] = now
        elif target.holds_unit and reservation.status == ReservationStatus.CANCELLED:
            updates["cancellation_reason"] = None
            updates["cancelled_at"] = None
        elif target == ReservationStatus.COMPLETED:
            updates["completed_at"] = now

        return updates

    async def _notify(
        self, event: NotificationEvent, reservation: Reservation, resource: Resource
    ) -> None:
        await notify_safely(
            self.notifier,
            event,
            reservation,
            resource,
            timeout_seconds=self.notification_timeout_seconds,
        )

    @asynccontextmanager
    async def _hold(
        self, lock: AsyncContextManager[bool], entity: str, entity_id: UUID
    ) -> AsyncIterator[None]:
        async with lock as acquired:
            if not acquired:
                logger.warning(
                    "lock_acquisition_failed", entity=entity, entity_id=str(entity_id)
                )
                raise ResourceBusy(f"The {entity} is currently busy. Please try again.")
            yield

    async def _release_or_restore(self, previous: Reservation, resource_id: UUID) -> Resource:
        """Return a released unit, or restore the reservation if that fails."""
        try:
            return await self.registry.release_unit(resource_id)
        except Exception as e:
            logger.error(
                "reservation_unit_release_failed",
                reservation_id=str(previous.id),
                resource_id=str(resource_id),
                error=str(e),
                exc_info=True,
            )
            await self.reservation_store.save(previous)
            raise DependencyError(f"Failed to return unit: {e}") from e

    async def _new_reference(self) -> str:
        for _ in range(REFERENCE_ATTEMPTS):
            reference = self._generate_reference()
            if not await self.reservation_store.reference_exists(reference):
                return reference
            logger.warning("reservation_reference_collision", reference=reference)
        raise DependencyError("Could not allocate an unused reservation reference")

    def _generate_reference(self) -> str:
        """Generate reference in format RES-XXXXXXXX."""
        return f"RES-{secrets.token_hex(4).upper()}"
