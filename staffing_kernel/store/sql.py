"""
SqlLedgerStore -- SQLAlchemy implementation of the ledger store.

Responsibility:
    Persists ledger records through the ORM models and converts rows back to
    frozen domain records with ``to_dto()``.

Architecture position:
    Kernel > Store.  Each public method opens its own ``session_scope`` so a
    call commits as a unit or rolls back entirely.

Invariants enforced:
    - One active time entry per worker: pre-checked inside the transaction
      and backed by the ``uq_time_entry_one_active`` partial unique index.
      A concurrent insert that loses the race surfaces as
      ``AlreadyClockedInError``, never as a raw IntegrityError.
    - Pay stub key uniqueness: backed by ``uq_pay_stub_user_period``; a lost
      race surfaces as ``DuplicatePayStubError``.

Failure modes:
    - TimeEntryNotFoundError / PayStubNotFoundError on update of an unknown id.
    - Any other database error propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from staffing_kernel.db.engine import session_scope
from staffing_kernel.domain.records import (
    Organization,
    PayStub,
    Shift,
    StaffingRatio,
    TimeEntry,
    TimeEntryStatus,
    WorkerProfile,
)
from staffing_kernel.exceptions import (
    AlreadyClockedInError,
    DuplicatePayStubError,
    PayStubNotFoundError,
    TimeEntryNotFoundError,
)
from staffing_kernel.logging_config import get_logger
from staffing_kernel.models import (
    OrganizationModel,
    PayStubModel,
    ShiftModel,
    StaffingRatioModel,
    TimeEntryModel,
    WorkerProfileModel,
)

logger = get_logger("store.sql")


class SqlLedgerStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._factory = session_factory

    # Seeding

    def add_organization(self, organization: Organization) -> Organization:
        with session_scope(self._factory) as session:
            session.add(OrganizationModel.from_dto(organization))
        return organization

    def add_ratio(self, ratio: StaffingRatio) -> StaffingRatio:
        with session_scope(self._factory) as session:
            session.add(StaffingRatioModel.from_dto(ratio))
        return ratio

    def add_worker(self, worker: WorkerProfile) -> WorkerProfile:
        with session_scope(self._factory) as session:
            session.add(WorkerProfileModel.from_dto(worker))
        return worker

    # Reference data

    def get_organization(self, organization_id: UUID) -> Organization | None:
        with session_scope(self._factory) as session:
            row = session.get(OrganizationModel, organization_id)
            return row.to_dto() if row is not None else None

    def list_staffing_ratios(self, organization_id: UUID) -> list[StaffingRatio]:
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(StaffingRatioModel)
                .where(StaffingRatioModel.organization_id == organization_id)
                .order_by(StaffingRatioModel.zone_name)
            ).all()
            return [r.to_dto() for r in rows]

    def list_workers(self, organization_id: UUID) -> list[WorkerProfile]:
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(WorkerProfileModel)
                .where(WorkerProfileModel.organization_id == organization_id)
                .order_by(WorkerProfileModel.full_name, WorkerProfileModel.id)
            ).all()
            return [r.to_dto() for r in rows]

    def get_worker(self, worker_id: UUID) -> WorkerProfile | None:
        with session_scope(self._factory) as session:
            row = session.get(WorkerProfileModel, worker_id)
            return row.to_dto() if row is not None else None

    # Shifts

    def save_shifts(self, shifts: Sequence[Shift]) -> list[Shift]:
        with session_scope(self._factory) as session:
            for shift in shifts:
                session.merge(ShiftModel.from_dto(shift))
        logger.debug("shifts_saved", extra={"count": len(shifts)})
        return list(shifts)

    def list_shifts(self, organization_id: UUID, start: datetime, end: datetime) -> list[Shift]:
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(ShiftModel)
                .where(
                    ShiftModel.organization_id == organization_id,
                    ShiftModel.start_time >= start,
                    ShiftModel.start_time <= end,
                )
                .order_by(ShiftModel.start_time, ShiftModel.role_type, ShiftModel.id)
            ).all()
            return [r.to_dto() for r in rows]

    # Time entries

    def insert_time_entry(self, entry: TimeEntry) -> TimeEntry:
        try:
            with session_scope(self._factory) as session:
                if entry.status == TimeEntryStatus.ACTIVE:
                    existing = self._active_row(session, entry.organization_id, entry.user_id)
                    if existing is not None:
                        raise AlreadyClockedInError(str(entry.user_id), str(existing.id))
                session.add(TimeEntryModel.from_dto(entry))
                session.flush()
        except IntegrityError:
            if entry.status != TimeEntryStatus.ACTIVE:
                raise
            # Lost a concurrent clock-in race to the partial unique index
            winner = self.find_active_entry(entry.organization_id, entry.user_id)
            logger.warning(
                "time_entry_insert_conflict",
                extra={"user_id": str(entry.user_id), "entry_id": str(entry.id)},
            )
            raise AlreadyClockedInError(
                str(entry.user_id), str(winner.id) if winner else None
            ) from None
        return entry

    def update_time_entry(self, entry: TimeEntry) -> TimeEntry:
        try:
            with session_scope(self._factory) as session:
                row = session.get(TimeEntryModel, entry.id)
                if row is None:
                    raise TimeEntryNotFoundError(str(entry.id))
                row.apply(entry)
                session.flush()
        except IntegrityError:
            if entry.status != TimeEntryStatus.ACTIVE:
                raise
            winner = self.find_active_entry(entry.organization_id, entry.user_id)
            raise AlreadyClockedInError(
                str(entry.user_id), str(winner.id) if winner else None
            ) from None
        return entry

    def get_time_entry(self, entry_id: UUID) -> TimeEntry | None:
        with session_scope(self._factory) as session:
            row = session.get(TimeEntryModel, entry_id)
            return row.to_dto() if row is not None else None

    def find_active_entry(self, organization_id: UUID, user_id: UUID) -> TimeEntry | None:
        with session_scope(self._factory) as session:
            row = self._active_row(session, organization_id, user_id)
            return row.to_dto() if row is not None else None

    def list_time_entries(
        self,
        organization_id: UUID,
        start: datetime,
        end: datetime,
        user_id: UUID | None = None,
    ) -> list[TimeEntry]:
        stmt = select(TimeEntryModel).where(
            TimeEntryModel.organization_id == organization_id,
            TimeEntryModel.clock_in <= end,
            or_(TimeEntryModel.clock_out.is_(None), TimeEntryModel.clock_out >= start),
        )
        if user_id is not None:
            stmt = stmt.where(TimeEntryModel.user_id == user_id)
        stmt = stmt.order_by(TimeEntryModel.clock_in, TimeEntryModel.id)
        with session_scope(self._factory) as session:
            return [r.to_dto() for r in session.scalars(stmt).all()]

    @staticmethod
    def _active_row(session: Session, organization_id: UUID, user_id: UUID) -> TimeEntryModel | None:
        return session.scalars(
            select(TimeEntryModel).where(
                TimeEntryModel.organization_id == organization_id,
                TimeEntryModel.user_id == user_id,
                TimeEntryModel.status == TimeEntryStatus.ACTIVE.value,
            )
        ).first()

    # Pay stubs

    def insert_pay_stub(self, stub: PayStub) -> PayStub:
        try:
            with session_scope(self._factory) as session:
                session.add(PayStubModel.from_dto(stub))
                session.flush()
        except IntegrityError:
            raise DuplicatePayStubError(str(stub.user_id), stub.period_start.isoformat()) from None
        return stub

    def update_pay_stub(self, stub: PayStub) -> PayStub:
        with session_scope(self._factory) as session:
            row = session.get(PayStubModel, stub.id)
            if row is None:
                raise PayStubNotFoundError(str(stub.id))
            row.apply(stub)
        return stub

    def get_pay_stub(self, stub_id: UUID) -> PayStub | None:
        with session_scope(self._factory) as session:
            row = session.get(PayStubModel, stub_id)
            return row.to_dto() if row is not None else None

    def find_pay_stub(self, organization_id: UUID, user_id: UUID, period_start: date) -> PayStub | None:
        with session_scope(self._factory) as session:
            row = session.scalars(
                select(PayStubModel).where(
                    PayStubModel.organization_id == organization_id,
                    PayStubModel.user_id == user_id,
                    PayStubModel.period_start == period_start,
                )
            ).first()
            return row.to_dto() if row is not None else None

    def list_pay_stubs(self, organization_id: UUID, period_start: date) -> list[PayStub]:
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(PayStubModel)
                .where(
                    PayStubModel.organization_id == organization_id,
                    PayStubModel.period_start == period_start,
                )
                .order_by(PayStubModel.user_id)
            ).all()
            return [r.to_dto() for r in rows]
