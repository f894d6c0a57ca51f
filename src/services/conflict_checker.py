"""Interval conflict checker.

Windows are half-open, so [a, b) and [c, d) conflict iff a < d and c < b.
A reservation ending exactly when another starts never conflicts.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from src.config.settings import OverlapPolicy
from src.logging import get_logger
from src.models.reservation import ACTIVE_STATUSES, Reservation
from src.models.resource import Resource
from src.storage.repository_base import ReservationStore

logger = get_logger(__name__)


def peak_concurrency(
    reservations: list[Reservation], window_start: datetime, window_end: datetime
) -> int:
    """Largest number of reservations simultaneously active inside the window."""
    events: list[tuple[datetime, int]] = []
    for reservation in reservations:
        start = max(reservation.window_start, window_start)
        end = min(reservation.window_end, window_end)
        if start < end:
            events.append((start, 1))
            events.append((end, -1))

    # Ends sort before starts at the same instant, matching half-open windows
    events.sort(key=lambda event: (event[0], event[1]))

    current = peak = 0
    for _, delta in events:
        current += delta
        peak = max(peak, current)
    return peak


class IntervalConflictChecker:
    """Decides whether active reservations block a requested window."""

    def __init__(
        self,
        reservation_store: ReservationStore,
        policy: OverlapPolicy = OverlapPolicy.SINGLE_SLOT,
    ):
        """
        Initialize conflict checker.

        Args:
            reservation_store: Store queried for overlapping reservations
            policy: SINGLE_SLOT blocks on any overlap; CAPACITY blocks only
                when overlapping reservations reach the resource's total units
        """
        self.reservation_store = reservation_store
        self.policy = policy

    async def find_conflicts(
        self,
        resource_id: UUID,
        window_start: datetime,
        window_end: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        """Active reservations on the resource overlapping the window."""
        return await self.reservation_store.find_overlapping(
            resource_id,
            window_start,
            window_end,
            ACTIVE_STATUSES,
            exclude_id=exclude_reservation_id,
        )

    async def find_blocking(
        self,
        resource: Resource,
        window_start: datetime,
        window_end: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        """
        Overlapping reservations that block the window under the configured policy.

        Args:
            resource: Resource being booked
            window_start: Inclusive window start
            window_end: Exclusive window end
            exclude_reservation_id: Reservation to ignore (when reviving it)

        Returns:
            The overlapping reservations if the window cannot be granted,
            otherwise an empty list
        """
        overlapping = await self.find_conflicts(
            resource.id, window_start, window_end, exclude_reservation_id
        )
        if not overlapping:
            return []

        if self.policy == OverlapPolicy.SINGLE_SLOT:
            blocked = True
        else:
            blocked = (
                peak_concurrency(overlapping, window_start, window_end)
                >= resource.total_units
            )

        logger.debug(
            "conflict_check",
            resource_id=str(resource.id),
            policy=self.policy.value,
            overlapping=len(overlapping),
            blocked=blocked,
        )
        return overlapping if blocked else []

    async def has_conflict(
        self,
        resource: Resource,
        window_start: datetime,
        window_end: datetime,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> bool:
        """Check whether the window is blocked under the configured policy."""
        blocking = await self.find_blocking(
            resource, window_start, window_end, exclude_reservation_id
        )
        return bool(blocking)

    async def list_active_windows(self, resource_id: UUID) -> list[tuple[datetime, datetime]]:
        """Sorted (start, end) pairs of active reservations on the resource."""
        reservations = await self.reservation_store.find_by_resource(
            resource_id, ACTIVE_STATUSES
        )
        return [(r.window_start, r.window_end) for r in reservations]
