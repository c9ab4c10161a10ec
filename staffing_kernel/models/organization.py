"""
Organization, staffing ratio and worker profile ORM models.

Each ORM class mirrors a frozen record from ``staffing_kernel.domain.records``
and provides ``to_dto()`` / ``from_dto()`` conversion.  Enum fields are
stored as String(50) containing the enum ``.value``.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from staffing_kernel.db.base import TrackedBase


class OrganizationModel(TrackedBase):
    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    pay_period: Mapped[str] = mapped_column(String(50), nullable=False, default="weekly")
    pay_period_start_day: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def to_dto(self):
        from staffing_kernel.domain.records import Organization, PayPeriodType
        return Organization(
            id=self.id,
            name=self.name,
            pay_period=PayPeriodType(self.pay_period),
            pay_period_start_day=self.pay_period_start_day,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "OrganizationModel":
        return cls(
            id=dto.id,
            name=dto.name,
            pay_period=dto.pay_period.value,
            pay_period_start_day=dto.pay_period_start_day,
            created_by_id=created_by_id,
        )


class StaffingRatioModel(TrackedBase):
    """
    Contract:
        One ratio row per (organization, zone).
    """

    __tablename__ = "staffing_ratios"

    organization_id: Mapped[UUID] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    zone_name: Mapped[str] = mapped_column(String(100), nullable=False)
    staff_count: Mapped[int] = mapped_column(Integer, nullable=False)
    dog_count: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("organization_id", "zone_name", name="uq_staffing_ratio_zone"),
    )

    def to_dto(self):
        from staffing_kernel.domain.records import StaffingRatio
        return StaffingRatio(
            organization_id=self.organization_id,
            zone_name=self.zone_name,
            staff_count=self.staff_count,
            dog_count=self.dog_count,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "StaffingRatioModel":
        return cls(
            organization_id=dto.organization_id,
            zone_name=dto.zone_name,
            staff_count=dto.staff_count,
            dog_count=dto.dog_count,
            created_by_id=created_by_id,
        )


class WorkerProfileModel(TrackedBase):
    __tablename__ = "worker_profiles"

    organization_id: Mapped[UUID] = mapped_column(ForeignKey("organizations.id"), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="staff")
    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")

    __table_args__ = (
        Index("idx_worker_profile_org", "organization_id"),
    )

    def to_dto(self):
        from staffing_kernel.domain.records import WorkerProfile, WorkerStatus
        return WorkerProfile(
            id=self.id,
            organization_id=self.organization_id,
            full_name=self.full_name,
            role=self.role,
            hourly_rate=self.hourly_rate,
            status=WorkerStatus(self.status),
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID | None = None) -> "WorkerProfileModel":
        return cls(
            id=dto.id,
            organization_id=dto.organization_id,
            full_name=dto.full_name,
            role=dto.role,
            hourly_rate=dto.hourly_rate,
            status=dto.status.value,
            created_by_id=created_by_id,
        )
