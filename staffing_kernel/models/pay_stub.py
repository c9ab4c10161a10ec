"""Pay stub ORM model.  One row per (organization, user, period_start)."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from staffing_kernel.db.base import TrackedBase

PAY_STUB_KEY_CONSTRAINT = "uq_pay_stub_user_period"


class PayStubModel(TrackedBase):
    __tablename__ = "pay_stubs"

    organization_id: Mapped[UUID] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    total_hours: Mapped[Decimal] = mapped_column(nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    released_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "organization_id", "user_id", "period_start", name=PAY_STUB_KEY_CONSTRAINT
        ),
    )

    def to_dto(self):
        from staffing_kernel.domain.records import PayStub, PayStubStatus
        return PayStub(
            id=self.id,
            organization_id=self.organization_id,
            user_id=self.user_id,
            period_start=self.period_start,
            period_end=self.period_end,
            status=PayStubStatus(self.status),
            total_hours=self.total_hours,
            gross_pay=self.gross_pay,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            released_at=self.released_at,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "PayStubModel":
        model = cls(id=dto.id, created_by_id=created_by_id)
        model.apply(dto)
        return model

    def apply(self, dto) -> None:
        self.organization_id = dto.organization_id
        self.user_id = dto.user_id
        self.period_start = dto.period_start
        self.period_end = dto.period_end
        self.status = dto.status.value
        self.total_hours = dto.total_hours
        self.gross_pay = dto.gross_pay
        self.approved_by_id = dto.approved_by_id
        self.approved_at = dto.approved_at
        self.released_at = dto.released_at
