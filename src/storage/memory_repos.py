"""In-process repositories for tests and single-process embedding.

Each method completes without awaiting, so under asyncio the
read-modify-write of a unit counter cannot interleave with another task.
"""

from datetime import datetime
from typing import Collection, Optional
from uuid import UUID

from src.logging import get_logger
from src.models.reservation import Reservation, ReservationStatus
from src.models.resource import Resource, utcnow
from src.services.errors import ResourceNotFound
from src.storage.repository_base import ResourceCatalog, ReservationStore

logger = get_logger(__name__)


class InMemoryResourceCatalog(ResourceCatalog):
    """Resource catalog backed by a dict."""

    def __init__(self, resources: Optional[list[Resource]] = None):
        """Initialize catalog with optional seed resources."""
        self._resources: dict[UUID, Resource] = {}
        for resource in resources or []:
            self._resources[resource.id] = resource.model_copy()

    async def get_by_id(self, id: UUID) -> Optional[Resource]:
        """Retrieve resource by ID."""
        resource = self._resources.get(id)
        return resource.model_copy() if resource else None

    async def save(self, entity: Resource) -> Resource:
        """Insert or replace a resource."""
        stored = entity.model_copy(update={"updated_at": utcnow()})
        self._resources[entity.id] = stored
        return stored.model_copy()

    async def decrement_available(self, id: UUID) -> Optional[Resource]:
        """Take one unit if any is left."""
        resource = self._resources.get(id)
        if resource is None:
            raise ResourceNotFound(id)

        if resource.available_units <= 0:
            logger.warning(
                "insufficient_units",
                resource_id=str(id),
                available=resource.available_units,
            )
            return None

        updated = resource.with_available_units(resource.available_units - 1)
        self._resources[id] = updated
        return updated.model_copy()

    async def increment_available(self, id: UUID) -> Resource:
        """Return one unit, capped at total_units."""
        resource = self._resources.get(id)
        if resource is None:
            raise ResourceNotFound(id)

        updated = resource.with_available_units(
            min(resource.available_units + 1, resource.total_units)
        )
        self._resources[id] = updated
        return updated.model_copy()

    async def list_available(self) -> list[Resource]:
        """Resources with at least one free unit."""
        return [r.model_copy() for r in self._resources.values() if r.is_available]


class InMemoryReservationStore(ReservationStore):
    """Reservation store backed by a dict."""

    def __init__(self):
        """Initialize empty store."""
        self._reservations: dict[UUID, Reservation] = {}

    async def get_by_id(self, id: UUID) -> Optional[Reservation]:
        """Retrieve reservation by ID."""
        reservation = self._reservations.get(id)
        return reservation.model_copy() if reservation else None

    async def save(self, entity: Reservation) -> Reservation:
        """Insert or replace a reservation."""
        stored = entity.model_copy(update={"updated_at": utcnow()})
        self._reservations[entity.id] = stored
        return stored.model_copy()

    async def find_overlapping(
        self,
        resource_id: UUID,
        window_start: datetime,
        window_end: datetime,
        statuses: Collection[ReservationStatus],
        exclude_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        """Reservations on the resource in ``statuses`` overlapping [start, end)."""
        return [
            r.model_copy()
            for r in self._ordered(resource_id, statuses)
            if r.id != exclude_id and r.overlaps(window_start, window_end)
        ]

    async def find_by_resource(
        self,
        resource_id: UUID,
        statuses: Collection[ReservationStatus],
    ) -> list[Reservation]:
        """Reservations on the resource in ``statuses``, ordered by window start."""
        return [r.model_copy() for r in self._ordered(resource_id, statuses)]

    async def reference_exists(self, reference: str) -> bool:
        """Whether a reservation already carries this customer reference."""
        return any(r.reference == reference for r in self._reservations.values())

    async def get_by_requester(self, requester_id: str) -> list[Reservation]:
        """Reservations made by a requester, newest first."""
        matches = [r for r in self._reservations.values() if r.requester_id == requester_id]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy() for r in matches]

    async def search(
        self,
        status: Optional[ReservationStatus] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Reservation], int]:
        """Filtered page of reservations, newest first."""
        matches = [
            r
            for r in self._reservations.values()
            if (status is None or r.status == status)
            and (created_from is None or r.created_at >= created_from)
            and (created_to is None or r.created_at <= created_to)
        ]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        page = matches[offset : offset + limit]
        return [r.model_copy() for r in page], len(matches)

    def _ordered(
        self, resource_id: UUID, statuses: Collection[ReservationStatus]
    ) -> list[Reservation]:
        matches = [
            r
            for r in self._reservations.values()
            if r.resource_id == resource_id and r.status in statuses
        ]
        matches.sort(key=lambda r: (r.window_start, r.window_end))
        return matches
