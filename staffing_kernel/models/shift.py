"""Shift ORM model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from staffing_kernel.db.base import TrackedBase


class ShiftModel(TrackedBase):
    """
    A scheduled shift.

    Contract:
        end_time > start_time (checked by the Shift record on load and save).
        user_id NULL means the shift is open/unassigned.
    """

    __tablename__ = "shifts"

    organization_id: Mapped[UUID] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    user_id: Mapped[UUID | None] = mapped_column(nullable=True)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    role_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_shift_org_start", "organization_id", "start_time"),
    )

    def to_dto(self):
        from staffing_kernel.domain.records import Shift, ShiftStatus
        return Shift(
            id=self.id,
            organization_id=self.organization_id,
            start_time=self.start_time,
            end_time=self.end_time,
            role_type=self.role_type,
            status=ShiftStatus(self.status),
            is_open=self.is_open,
            user_id=self.user_id,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "ShiftModel":
        return cls(
            id=dto.id,
            organization_id=dto.organization_id,
            user_id=dto.user_id,
            start_time=dto.start_time,
            end_time=dto.end_time,
            role_type=dto.role_type,
            status=dto.status.value,
            is_open=dto.is_open,
            notes=dto.notes,
            created_by_id=created_by_id,
        )
