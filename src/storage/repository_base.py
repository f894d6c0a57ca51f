"""Repository base interfaces consumed by the reservation core."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Collection, Generic, Optional, TypeVar
from uuid import UUID

from src.models.reservation import Reservation, ReservationStatus
from src.models.resource import Resource

T = TypeVar("T")


class RepositoryBase(ABC, Generic[T]):
    """Base repository interface for lookup and persistence."""

    @abstractmethod
    async def get_by_id(self, id: UUID) -> Optional[T]:
        """Retrieve entity by ID."""
        pass

    @abstractmethod
    async def save(self, entity: T) -> T:
        """Insert or update entity."""
        pass


class ResourceCatalog(RepositoryBase[Resource]):
    """Catalog of reservable resources and their unit counters."""

    @abstractmethod
    async def decrement_available(self, id: UUID) -> Optional[Resource]:
        """
        Atomically take one unit.

        Returns the updated resource, or None when no unit is left.
        Raises ResourceNotFound for an unknown id.
        """
        pass

    @abstractmethod
    async def increment_available(self, id: UUID) -> Resource:
        """
        Atomically return one unit, capped at total_units.

        Raises ResourceNotFound for an unknown id.
        """
        pass

    @abstractmethod
    async def list_available(self) -> list[Resource]:
        """Resources with at least one free unit."""
        pass


class ReservationStore(RepositoryBase[Reservation]):
    """Persistent record of every reservation ever made."""

    @abstractmethod
    async def find_overlapping(
        self,
        resource_id: UUID,
        window_start: datetime,
        window_end: datetime,
        statuses: Collection[ReservationStatus],
        exclude_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        """Reservations on the resource in ``statuses`` whose window overlaps [start, end)."""
        pass

    @abstractmethod
    async def find_by_resource(
        self,
        resource_id: UUID,
        statuses: Collection[ReservationStatus],
    ) -> list[Reservation]:
        """Reservations on the resource in ``statuses``, ordered by window start."""
        pass

    @abstractmethod
    async def reference_exists(self, reference: str) -> bool:
        """Whether a reservation already carries this customer reference."""
        pass

    @abstractmethod
    async def get_by_requester(self, requester_id: str) -> list[Reservation]:
        """Reservations made by a requester, newest first."""
        pass

    @abstractmethod
    async def search(
        self,
        status: Optional[ReservationStatus] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Reservation], int]:
        """Filtered page of reservations, newest first, with the total match count."""
        pass
