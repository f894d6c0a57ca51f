"""Unit tests for reservation permission checks."""

from uuid import uuid4

import pytest

from src.security.permissions import PermissionChecker
from tests.factories import make_reservation


@pytest.fixture
def checker():
    """Checker with one configured admin."""
    return PermissionChecker(admin_user_ids=["admin-1"])


@pytest.fixture
def reservation():
    """Reservation owned by user-1."""
    return make_reservation(uuid4(), requester_id="user-1")


def test_owner_can_view_and_cancel(checker, reservation):
    assert checker.can_view("user-1", False, reservation)
    assert checker.can_cancel("user-1", False, reservation)


def test_stranger_cannot_view_or_cancel(checker, reservation):
    assert not checker.can_view("user-2", False, reservation)
    assert not checker.can_cancel("user-2", False, reservation)


def test_asserted_privilege_grants_admin_operations(checker, reservation):
    assert checker.can_cancel("support-9", True, reservation)
    assert checker.can_change_status("support-9", True)
    assert checker.can_list_all("support-9", True)


def test_configured_admin_is_privileged(checker, reservation):
    assert checker.is_privileged("admin-1")
    assert checker.can_cancel("admin-1", False, reservation)
    assert checker.can_change_status("admin-1", False)


def test_owner_cannot_change_status(checker):
    assert not checker.can_change_status("user-1", False)
    assert not checker.can_list_all("user-1", False)


def test_default_checker_has_no_admins():
    assert not PermissionChecker().is_privileged("admin-1")
