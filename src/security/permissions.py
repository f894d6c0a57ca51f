"""Permission checks for reservation operations."""

from enum import Enum

from src.models.reservation import Reservation


class Permission(str, Enum):
    """Permission types."""

    VIEW_RESERVATION = "view_reservation"
    CANCEL_RESERVATION = "cancel_reservation"
    CHANGE_STATUS = "change_status"
    LIST_ALL_RESERVATIONS = "list_all_reservations"


class PermissionChecker:
    """Check actor permissions for actions."""

    def __init__(self, admin_user_ids: list[str] | None = None):
        """Initialize permission checker."""
        self.admin_user_ids = set(admin_user_ids or [])

    def is_privileged(self, actor_id: str, is_privileged: bool = False) -> bool:
        """Check elevated privilege, either asserted by the caller or configured."""
        return is_privileged or actor_id in self.admin_user_ids

    def is_owner(self, actor_id: str, reservation: Reservation) -> bool:
        """Check if actor made the reservation."""
        return reservation.requester_id == actor_id

    def can_view(self, actor_id: str, is_privileged: bool, reservation: Reservation) -> bool:
        """Owners and admins may view a reservation."""
        return self.is_owner(actor_id, reservation) or self.is_privileged(actor_id, is_privileged)

    def can_cancel(self, actor_id: str, is_privileged: bool, reservation: Reservation) -> bool:
        """Owners and admins may cancel a reservation."""
        return self.is_owner(actor_id, reservation) or self.is_privileged(actor_id, is_privileged)

    def can_change_status(self, actor_id: str, is_privileged: bool) -> bool:
        """Only admins may set arbitrary statuses."""
        return self.is_privileged(actor_id, is_privileged)

    def can_list_all(self, actor_id: str, is_privileged: bool) -> bool:
        """Only admins may list every reservation."""
        return self.is_privileged(actor_id, is_privileged)
