"""PostgreSQL repository for Reservation entities."""

from datetime import datetime
from typing import Collection, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging import get_logger
from src.models.reservation import AddOn, Reservation, ReservationStatus
from src.services.errors import DependencyError
from src.storage.db_models import ReservationTable
from src.storage.repository_base import ReservationStore

logger = get_logger(__name__)


class PostgresReservationRepository(ReservationStore):
    """Reservation store using PostgreSQL."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, id: UUID) -> Optional[Reservation]:
        """Retrieve reservation by ID."""
        stmt = select(ReservationTable).where(ReservationTable.id == id)
        db_reservation = (await self._execute(stmt)).scalar_one_or_none()

        if not db_reservation:
            return None

        return self._to_domain_model(db_reservation)

    async def save(self, entity: Reservation) -> Reservation:
        """Insert a new reservation or update status fields of an existing one."""
        try:
            db_reservation = await self.session.get(ReservationTable, entity.id)
            created = db_reservation is None

            if created:
                db_reservation = ReservationTable(
                    id=entity.id,
                    reference=entity.reference,
                    requester_id=entity.requester_id,
                    resource_id=entity.resource_id,
                    window_start=entity.window_start,
                    window_end=entity.window_end,
                    unit_price_per_period=entity.unit_price_per_period,
                    addon_surcharge_per_period=entity.addon_surcharge_per_period,
                    period_count=entity.period_count,
                    total_price=entity.total_price,
                    currency=entity.currency,
                    addons=sorted(addon.value for addon in entity.addons),
                    pickup_location=entity.pickup_location,
                    special_requests=entity.special_requests,
                    created_at=entity.created_at,
                    updated_at=entity.updated_at,
                )
                self.session.add(db_reservation)

            # Identity, window and pricing are frozen after creation
            db_reservation.status = entity.status
            db_reservation.cancellation_reason = entity.cancellation_reason
            db_reservation.cancelled_at = entity.cancelled_at
            db_reservation.completed_at = entity.completed_at

            await self.session.flush()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyError(f"Reservation save failed: {e}") from e

        logger.info(
            "reservation_saved",
            reservation_id=str(entity.id),
            created=created,
            status=entity.status.value,
        )

        return self._to_domain_model(db_reservation)

    async def find_overlapping(
        self,
        resource_id: UUID,
        window_start: datetime,
        window_end: datetime,
        statuses: Collection[ReservationStatus],
        exclude_id: Optional[UUID] = None,
    ) -> list[Reservation]:
        """Reservations on the resource in ``statuses`` overlapping [start, end)."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.resource_id == resource_id)
            .where(ReservationTable.status.in_(list(statuses)))
            .where(ReservationTable.window_start < window_end)
            .where(ReservationTable.window_end > window_start)
            .order_by(ReservationTable.window_start.asc())
        )
        if exclude_id is not None:
            stmt = stmt.where(ReservationTable.id != exclude_id)

        db_reservations = (await self._execute(stmt)).scalars().all()
        return [self._to_domain_model(db_res) for db_res in db_reservations]

    async def find_by_resource(
        self,
        resource_id: UUID,
        statuses: Collection[ReservationStatus],
    ) -> list[Reservation]:
        """Reservations on the resource in ``statuses``, ordered by window start."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.resource_id == resource_id)
            .where(ReservationTable.status.in_(list(statuses)))
            .order_by(ReservationTable.window_start.asc(), ReservationTable.window_end.asc())
        )
        db_reservations = (await self._execute(stmt)).scalars().all()
        return [self._to_domain_model(db_res) for db_res in db_reservations]

    async def reference_exists(self, reference: str) -> bool:
        """Whether a reservation already carries this customer reference."""
        stmt = select(ReservationTable.id).where(ReservationTable.reference == reference).limit(1)
        return (await self._execute(stmt)).scalar_one_or_none() is not None

    async def get_by_requester(self, requester_id: str) -> list[Reservation]:
        """Reservations made by a requester, newest first."""
        stmt = (
            select(ReservationTable)
            .where(ReservationTable.requester_id == requester_id)
            .order_by(ReservationTable.created_at.desc())
        )
        db_reservations = (await self._execute(stmt)).scalars().all()
        return [self._to_domain_model(db_res) for db_res in db_reservations]

    async def search(
        self,
        status: Optional[ReservationStatus] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Reservation], int]:
        """Filtered page of reservations, newest first."""
        conditions = []
        if status is not None:
            conditions.append(ReservationTable.status == status)
        if created_from is not None:
            conditions.append(ReservationTable.created_at >= created_from)
        if created_to is not None:
            conditions.append(ReservationTable.created_at <= created_to)

        page_stmt = (
            select(ReservationTable)
            .where(*conditions)
            .order_by(ReservationTable.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count()).select_from(ReservationTable).where(*conditions)

        db_reservations = (await self._execute(page_stmt)).scalars().all()
        total = (await self._execute(count_stmt)).scalar_one()

        return [self._to_domain_model(db_res) for db_res in db_reservations], total

    async def _execute(self, stmt):
        try:
            return await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise DependencyError(f"Reservation query failed: {e}") from e

    def _to_domain_model(self, db_reservation: ReservationTable) -> Reservation:
        """Convert database model to domain model."""
        return Reservation(
            id=db_reservation.id,
            reference=db_reservation.reference,
            requester_id=db_reservation.requester_id,
            resource_id=db_reservation.resource_id,
            window_start=db_reservation.window_start,
            window_end=db_reservation.window_end,
            unit_price_per_period=db_reservation.unit_price_per_period,
            addon_surcharge_per_period=db_reservation.addon_surcharge_per_period,
            period_count=db_reservation.period_count,
            total_price=db_reservation.total_price,
            currency=db_reservation.currency,
            addons=frozenset(AddOn(value) for value in db_reservation.addons or []),
            status=db_reservation.status,
            pickup_location=db_reservation.pickup_location,
            special_requests=db_reservation.special_requests,
            cancellation_reason=db_reservation.cancellation_reason,
            cancelled_at=db_reservation.cancelled_at,
            completed_at=db_reservation.completed_at,
            created_at=db_reservation.created_at,
            updated_at=db_reservation.updated_at,
        )
