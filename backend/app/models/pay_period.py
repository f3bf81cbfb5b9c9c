import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Date, ForeignKey, Numeric, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

PAY_PERIOD_STATUSES = ("draft", "processing", "processed", "synced", "paid")

# Allowed status changes; "paid" is final.
PAY_PERIOD_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "draft":      ("processing", "processed"),
    "processing": ("processed", "draft"),
    "processed":  ("synced", "draft"),
    "synced":     ("paid",),
    "paid":       (),
}

LOCKED_STATUSES = ("synced", "paid")


class PayPeriod(Base):
    __tablename__ = "pay_periods"
    __table_args__ = (
        Index("ix_pay_periods_tenant_start", "tenant_id", "start_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    process_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="draft")

    employee_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_gross_pay: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_net_pay: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    tenant: Mapped["Tenant"] = relationship(back_populates="pay_periods")
    time_entries: Mapped[list["TimeEntry"]] = relationship(
        back_populates="pay_period", cascade="all, delete-orphan"
    )
    pay_stubs: Mapped[list["PayStub"]] = relationship(
        back_populates="pay_period", cascade="all, delete-orphan"
    )

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
