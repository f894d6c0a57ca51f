"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from src.bootstrap import build_in_memory_service
from src.config.settings import Settings
from src.storage.memory_repos import InMemoryResourceCatalog
from tests.factories import RecordingNotifier, make_resource


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        admin_user_ids_csv="admin-1",
        notification_timeout_seconds=0.2,
        lock_wait_seconds=1.0,
    )


@pytest.fixture
def car():
    """Single-unit resource at 50 per day."""
    return make_resource()


@pytest.fixture
def catalog(car):
    """In-memory catalog seeded with the single-unit car."""
    return InMemoryResourceCatalog([car])


@pytest.fixture
def notifier():
    """Recording notification gateway."""
    return RecordingNotifier()


@pytest.fixture
def service(settings, catalog, notifier):
    """Reservation service on in-memory adapters."""
    return build_in_memory_service(settings, catalog=catalog, notifier=notifier)
