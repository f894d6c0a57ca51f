"""Models package - Pydantic domain models."""

from .reservation import (
    ACTIVE_STATUSES,
    AddOn,
    Reservation,
    ReservationPage,
    ReservationRequest,
    ReservationStatus,
)
from .resource import Resource, ResourceInput

__all__ = [
    "ACTIVE_STATUSES",
    "AddOn",
    "Reservation",
    "ReservationPage",
    "ReservationRequest",
    "ReservationStatus",
    "Resource",
    "ResourceInput",
]
