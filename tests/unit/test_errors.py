"""Unit tests for the reservation error taxonomy."""

from uuid import uuid4

import pytest

from src.services.errors import (
    AlreadyCancelled,
    AuthorizationError,
    ConflictError,
    DependencyError,
    Forbidden,
    FullyBooked,
    InvalidDuration,
    InvalidStatus,
    InvalidWindow,
    NotFoundError,
    ReasonRequired,
    ReservationError,
    ReservationNotFound,
    ResourceBusy,
    ResourceNotFound,
    ResourceUnavailable,
    SlotConflict,
    TerminalCompleted,
    ValidationError,
)


@pytest.mark.parametrize(
    "error_cls,family",
    [
        (InvalidWindow, ValidationError),
        (InvalidDuration, ValidationError),
        (ReasonRequired, ValidationError),
        (InvalidStatus, ValidationError),
        (AlreadyCancelled, ConflictError),
        (TerminalCompleted, ConflictError),
        (ResourceBusy, ConflictError),
        (Forbidden, AuthorizationError),
    ],
)
def test_message_errors_belong_to_family(error_cls, family):
    error = error_cls("details")

    assert isinstance(error, family)
    assert isinstance(error, ReservationError)
    assert error.message == "details"


def test_codes_are_unique():
    classes = [
        ValidationError, InvalidWindow, InvalidDuration, ReasonRequired, InvalidStatus,
        NotFoundError, ResourceNotFound, ReservationNotFound,
        ConflictError, SlotConflict, FullyBooked, ResourceUnavailable, AlreadyCancelled,
        TerminalCompleted, ResourceBusy, AuthorizationError, Forbidden, DependencyError,
    ]

    codes = [cls.code for cls in classes]
    assert len(codes) == len(set(codes))


def test_slot_conflict_carries_conflicting_ids():
    resource_id, other_id = uuid4(), uuid4()

    error = SlotConflict(resource_id, [other_id])

    assert error.resource_id == resource_id
    assert error.conflicting_ids == [other_id]
    assert error.code == "slot_conflict"


def test_not_found_errors_carry_ids():
    resource_id = uuid4()

    assert ResourceNotFound(resource_id).resource_id == resource_id
    assert str(resource_id) in str(ReservationNotFound(resource_id))
    assert isinstance(FullyBooked(resource_id), ConflictError)
