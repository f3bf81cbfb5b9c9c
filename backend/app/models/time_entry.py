import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Date, Boolean, ForeignKey, Numeric, Text, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class TimeEntry(Base):
    """
    Hours worked by one employee on one day, already split into regular and
    overtime. Entries are never edited in place: a re-import or reclassification
    deletes the pay period's entries and creates them again.
    """
    __tablename__ = "time_entries"
    __table_args__ = (
        Index("ix_time_entries_tenant_employee_date", "tenant_id", "employee_id", "date"),
        Index("ix_time_entries_pay_period", "pay_period_id"),
        # QuickBooks ids are unique per company only
        UniqueConstraint("tenant_id", "qb_time_activity_id", name="uq_time_entries_tenant_qb_activity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("employees.id"), nullable=False)
    pay_period_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("pay_periods.id", ondelete="CASCADE"), nullable=True
    )

    qb_employee_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    qb_time_activity_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    regular_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)

    source: Mapped[str] = mapped_column(String(50), default="quickbooks")  # quickbooks | manual
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    billable: Mapped[bool] = mapped_column(Boolean, default=False)
    customer_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    employee: Mapped["Employee"] = relationship(back_populates="time_entries")
    pay_period: Mapped["PayPeriod | None"] = relationship(back_populates="time_entries")

    @property
    def type(self) -> str:
        if not self.overtime_hours:
            return "regular"
        if not self.regular_hours:
            return "overtime"
        return "split"
