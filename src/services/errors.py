"""Reservation error taxonomy.

Every failure the core surfaces is a ``ReservationError`` subclass with a
stable ``code`` so the request layer can map it to a response without
parsing messages.
"""

from uuid import UUID


class ReservationError(Exception):
    """Base class for all reservation engine failures."""

    code = "reservation_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Caller mistakes: surfaced immediately, never retried


class ValidationError(ReservationError):
    """Request is malformed."""

    code = "validation_error"


class InvalidWindow(ValidationError):
    """Window end is not after window start."""

    code = "invalid_window"


class InvalidDuration(ValidationError):
    """Rental period count is below the minimum of one."""

    code = "invalid_duration"


class ReasonRequired(ValidationError):
    """Cancellation attempted without a reason."""

    code = "reason_required"


class InvalidStatus(ValidationError):
    """Requested status is not part of the lifecycle."""

    code = "invalid_status"


# Missing entities


class NotFoundError(ReservationError):
    """Referenced entity does not exist."""

    code = "not_found"


class ResourceNotFound(NotFoundError):
    """Resource id is unknown to the catalog."""

    code = "resource_not_found"

    def __init__(self, resource_id: UUID):
        self.resource_id = resource_id
        super().__init__(f"Resource not found: {resource_id}")


class ReservationNotFound(NotFoundError):
    """Reservation id is unknown to the store."""

    code = "reservation_not_found"

    def __init__(self, reservation_id: UUID):
        self.reservation_id = reservation_id
        super().__init__(f"Reservation not found: {reservation_id}")


# State conflicts: caller may retry with different input


class ConflictError(ReservationError):
    """Request clashes with current reservation or inventory state."""

    code = "conflict"


class SlotConflict(ConflictError):
    """An active reservation already occupies an overlapping window."""

    code = "slot_conflict"

    def __init__(self, resource_id: UUID, conflicting_ids: list[UUID]):
        self.resource_id = resource_id
        self.conflicting_ids = conflicting_ids
        super().__init__(f"Resource {resource_id} is already booked for the selected window")


class FullyBooked(ConflictError):
    """No unit of the resource is left."""

    code = "fully_booked"

    def __init__(self, resource_id: UUID):
        self.resource_id = resource_id
        super().__init__(f"Resource {resource_id} has no units available")


class ResourceUnavailable(ConflictError):
    """Resource is flagged unavailable for booking."""

    code = "resource_unavailable"

    def __init__(self, resource_id: UUID):
        self.resource_id = resource_id
        super().__init__(f"Resource {resource_id} is not available for booking")


class AlreadyCancelled(ConflictError):
    """Reservation is already cancelled."""

    code = "already_cancelled"


class TerminalCompleted(ConflictError):
    """Reservation is completed and accepts no further transitions."""

    code = "terminal_completed"


class ResourceBusy(ConflictError):
    """Lock for the entity could not be obtained in time."""

    code = "resource_busy"


# Authorization


class AuthorizationError(ReservationError):
    """Actor is not allowed to perform the operation."""

    code = "authorization_error"


class Forbidden(AuthorizationError):
    """Actor is neither the owner nor privileged."""

    code = "forbidden"


# Collaborators


class DependencyError(ReservationError):
    """Catalog, store or lock backend failed."""

    code = "dependency_error"
