"""Reservation status transition table.

Pure decisions only: which inventory action and notification a status
change needs. The reservation service applies the plan.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from src.models.reservation import ReservationStatus
from src.services.errors import InvalidStatus, TerminalCompleted
from src.services.notifications import NotificationEvent

STATUS_NOTIFICATIONS = {
    ReservationStatus.CONFIRMED: NotificationEvent.RESERVATION_CONFIRMED,
    ReservationStatus.CANCELLED: NotificationEvent.RESERVATION_CANCELLED,
    ReservationStatus.COMPLETED: NotificationEvent.RESERVATION_COMPLETED,
}


class TransitionPlan(BaseModel):
    """Side effects required by one status change."""

    model_config = ConfigDict(frozen=True)

    old_status: ReservationStatus
    new_status: ReservationStatus
    reserve_unit: bool = False
    release_unit: bool = False
    recheck_conflicts: bool = False
    notification: Optional[NotificationEvent] = None

    @property
    def is_noop(self) -> bool:
        """Status is unchanged."""
        return self.old_status == self.new_status


def parse_status(value: ReservationStatus | str) -> ReservationStatus:
    """
    Coerce a status value.

    Raises:
        InvalidStatus: If value is not a lifecycle status
    """
    try:
        return ReservationStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in ReservationStatus)
        raise InvalidStatus(f"Invalid reservation status '{value}'. Expected one of: {valid}")


def plan_transition(
    old_status: ReservationStatus,
    new_status: ReservationStatus,
    release_unit_on_completion: bool = False,
) -> TransitionPlan:
    """
    Decide the side effects of moving a reservation between statuses.

    Args:
        old_status: Current status
        new_status: Requested status
        release_unit_on_completion: Return the unit when an active
            reservation is completed

    Returns:
        TransitionPlan describing inventory action and notification

    Raises:
        TerminalCompleted: If the reservation is completed and the
            requested status differs
    """
    if old_status == new_status:
        return TransitionPlan(old_status=old_status, new_status=new_status)

    if old_status == ReservationStatus.COMPLETED:
        raise TerminalCompleted("Completed reservations cannot change status")

    # Only a cancelled reservation can re-enter an active status here
    revive = not old_status.holds_unit and new_status.holds_unit

    release = old_status.holds_unit and (
        new_status == ReservationStatus.CANCELLED
        or (new_status == ReservationStatus.COMPLETED and release_unit_on_completion)
    )

    return TransitionPlan(
        old_status=old_status,
        new_status=new_status,
        reserve_unit=revive,
        release_unit=release,
        recheck_conflicts=revive,
        notification=STATUS_NOTIFICATIONS.get(new_status),
    )
