"""Structured audit logging for reservation lifecycle actions.

Every state change on a reservation and every refused access attempt is
written as an ``audit_event`` so history survives even though the core never
deletes reservations.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from src.logging import get_logger

logger = get_logger(__name__)


class AuditEventType(str, Enum):
    """Types of auditable events."""

    # Reservation lifecycle
    RESERVATION_CREATED = "reservation_created"
    RESERVATION_CANCELLED = "reservation_cancelled"
    RESERVATION_STATUS_CHANGED = "reservation_status_changed"

    # Inventory
    UNIT_RESERVED = "unit_reserved"
    UNIT_RELEASED = "unit_released"

    # Security
    PERMISSION_DENIED = "permission_denied"


class AuditLogger:
    """Centralized audit logging service."""

    @staticmethod
    def log_event(
        event_type: AuditEventType,
        actor_id: str,
        resource_type: str,
        resource_id: UUID | str,
        action: str,
        success: bool = True,
        metadata: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Log an auditable event with structured context.

        Args:
            event_type: Type of audit event
            actor_id: Identity performing the action ("system" for internal steps)
            resource_type: Type of entity affected (reservation, resource)
            resource_id: ID of the affected entity
            action: Human-readable action description
            success: Whether the action succeeded
            metadata: Additional context (prices, statuses, etc.)
            error: Error code if action failed
        """
        audit_entry = {
            "event_type": event_type.value,
            "actor_id": actor_id,
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            "action": action,
            "success": success,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metadata": metadata or {},
        }

        if error:
            audit_entry["error"] = error

        logger.info(
            "audit_event",
            **audit_entry,
        )

    @staticmethod
    def log_reservation_created(
        actor_id: str,
        reservation_id: UUID,
        resource_id: UUID,
        total_price: Decimal,
        period_count: int,
    ) -> None:
        """Log reservation creation."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_CREATED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Reservation created",
            metadata={
                "resource_id": str(resource_id),
                "total_price": str(total_price),
                "period_count": period_count,
            },
        )

    @staticmethod
    def log_reservation_cancelled(
        actor_id: str,
        reservation_id: UUID,
        reason: str,
    ) -> None:
        """Log reservation cancellation by its owner or an admin."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_CANCELLED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action="Reservation cancelled",
            metadata={"reason": reason},
        )

    @staticmethod
    def log_status_changed(
        actor_id: str,
        reservation_id: UUID,
        old_status: str,
        new_status: str,
    ) -> None:
        """Log an administrative status change."""
        AuditLogger.log_event(
            event_type=AuditEventType.RESERVATION_STATUS_CHANGED,
            actor_id=actor_id,
            resource_type="reservation",
            resource_id=reservation_id,
            action=f"Status changed: {old_status} -> {new_status}",
            metadata={"old_status": old_status, "new_status": new_status},
        )

    @staticmethod
    def log_unit_movement(
        resource_id: UUID,
        reserved: bool,
        available_units: int,
        total_units: int,
    ) -> None:
        """Log a unit counter change on a resource."""
        AuditLogger.log_event(
            event_type=(
                AuditEventType.UNIT_RESERVED if reserved else AuditEventType.UNIT_RELEASED
            ),
            actor_id="system",
            resource_type="resource",
            resource_id=resource_id,
            action="Unit reserved" if reserved else "Unit released",
            metadata={
                "available_units": available_units,
                "total_units": total_units,
            },
        )

    @staticmethod
    def log_permission_denied(
        actor_id: str,
        resource_type: str,
        resource_id: UUID | str,
        attempted_action: str,
    ) -> None:
        """Log unauthorized access attempts."""
        AuditLogger.log_event(
            event_type=AuditEventType.PERMISSION_DENIED,
            actor_id=actor_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action=f"Permission denied: {attempted_action}",
            success=False,
            metadata={"attempted_action": attempted_action},
        )
