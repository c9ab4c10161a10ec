"""
Time entry ORM model.

The break log is stored as a JSON array of ``{"start", "end",
"duration_minutes"}`` objects with ISO-8601 timestamps.

Invariant: at most one ``active`` entry per (organization, user).  Enforced
by a partial unique index so concurrent clock-ins cannot both commit.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from staffing_kernel.db.base import TrackedBase

ACTIVE_ENTRY_INDEX = "uq_time_entry_one_active"


def _breaks_to_json(breaks) -> list[dict[str, Any]]:
    return [
        {
            "start": b.start.isoformat(),
            "end": b.end.isoformat() if b.end is not None else None,
            "duration_minutes": b.duration_minutes,
        }
        for b in breaks
    ]


def _breaks_from_json(raw: list[dict[str, Any]] | None):
    from staffing_kernel.domain.records import BreakRecord
    return tuple(
        BreakRecord(
            start=datetime.fromisoformat(item["start"]),
            end=datetime.fromisoformat(item["end"]) if item.get("end") else None,
            duration_minutes=item.get("duration_minutes"),
        )
        for item in raw or ()
    )


class TimeEntryModel(TrackedBase):
    __tablename__ = "time_entries"

    organization_id: Mapped[UUID] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    shift_id: Mapped[UUID | None] = mapped_column(nullable=True)
    clock_in: Mapped[datetime] = mapped_column(nullable=False)
    clock_out: Mapped[datetime | None] = mapped_column(nullable=True)
    breaks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")
    location_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    manager_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    closed_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    __table_args__ = (
        Index(
            ACTIVE_ENTRY_INDEX,
            "organization_id",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index("idx_time_entry_org_clock_in", "organization_id", "clock_in"),
    )

    def to_dto(self):
        from staffing_kernel.domain.records import TimeEntry, TimeEntryStatus
        return TimeEntry(
            id=self.id,
            organization_id=self.organization_id,
            user_id=self.user_id,
            clock_in=self.clock_in,
            status=TimeEntryStatus(self.status),
            clock_out=self.clock_out,
            breaks=_breaks_from_json(self.breaks),
            total_break_minutes=self.total_break_minutes,
            shift_id=self.shift_id,
            location_data=self.location_data,
            manager_notes=self.manager_notes,
            closed_by_id=self.closed_by_id,
            approved_by_id=self.approved_by_id,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "TimeEntryModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply(dto)
        return model

    def apply(self, dto) -> None:
        """Copy every mutable field of ``dto`` onto this row."""
        self.organization_id = dto.organization_id
        self.user_id = dto.user_id
        self.shift_id = dto.shift_id
        self.clock_in = dto.clock_in
        self.clock_out = dto.clock_out
        self.breaks = _breaks_to_json(dto.breaks)
        self.total_break_minutes = dto.total_break_minutes
        self.status = dto.status.value
        self.location_data = dict(dto.location_data) if dto.location_data is not None else None
        self.manager_notes = dto.manager_notes
        self.closed_by_id = dto.closed_by_id
        self.approved_by_id = dto.approved_by_id
