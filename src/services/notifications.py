"""Notification gateway for reservation lifecycle events.

Delivery (email, chat, push) lives outside the core. The reservation
service only calls ``notify`` through an injected gateway, and a failing
gateway never undoes a reservation change.
"""

import asyncio
from enum import Enum
from typing import Protocol

from src.logging import get_logger
from src.models.reservation import Reservation
from src.models.resource import Resource

logger = get_logger(__name__)


class NotificationEvent(str, Enum):
    """Lifecycle events announced to the requester."""

    RESERVATION_CREATED = "reservation_created"
    RESERVATION_CONFIRMED = "reservation_confirmed"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_COMPLETED = "reservation_completed"


NOTIFICATION_SUBJECTS = {
    NotificationEvent.RESERVATION_CREATED: "Booking Confirmed",
    NotificationEvent.RESERVATION_CONFIRMED: "Booking Confirmed",
    NotificationEvent.RESERVATION_CANCELLED: "Booking Cancelled",
    NotificationEvent.RESERVATION_COMPLETED: "Thank you for renting with us",
}


class NotificationGateway(Protocol):
    """Protocol for notification delivery backends."""

    async def notify(
        self,
        event: NotificationEvent,
        reservation: Reservation,
        resource: Resource,
        requester_id: str,
    ) -> None:
        """Deliver a lifecycle notification."""
        ...


class LoggingNotificationGateway:
    """Gateway that records notifications in the structured log."""

    async def notify(
        self,
        event: NotificationEvent,
        reservation: Reservation,
        resource: Resource,
        requester_id: str,
    ) -> None:
        """Log the notification that would be delivered."""
        logger.info(
            "notification_sent",
            notification=event.value,
            subject=NOTIFICATION_SUBJECTS[event],
            requester_id=requester_id,
            reservation_id=str(reservation.id),
            reference=reservation.reference,
            resource_name=resource.name,
            window_start=reservation.window_start.isoformat(),
            window_end=reservation.window_end.isoformat(),
            total_price=str(reservation.total_price),
        )


async def notify_safely(
    gateway: NotificationGateway,
    event: NotificationEvent,
    reservation: Reservation,
    resource: Resource,
    timeout_seconds: float = 5.0,
) -> bool:
    """
    Call the gateway, isolating every failure.

    Args:
        gateway: Notification backend
        event: Lifecycle event
        reservation: Reservation the event is about
        resource: Reserved resource
        timeout_seconds: Upper bound on the gateway call

    Returns:
        True if the gateway accepted the notification
    """
    try:
        await asyncio.wait_for(
            gateway.notify(event, reservation, resource, reservation.requester_id),
            timeout=timeout_seconds,
        )
        return True
    except Exception as e:
        logger.error(
            "notification_failed",
            notification=event.value,
            reservation_id=str(reservation.id),
            error=str(e) or type(e).__name__,
            exc_info=True,
        )
        return False
