import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class PayStub(Base):
    __tablename__ = "pay_stubs"
    __table_args__ = (
        UniqueConstraint("pay_period_id", "employee_id", name="uq_pay_stubs_period_employee"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    pay_period_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pay_periods.id", ondelete="CASCADE"), nullable=False
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("employees.id"), nullable=False)

    # Hours
    regular_hours: Mapped[Decimal] = mapped_column(Numeric(7, 2), default=0)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(7, 2), default=0)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)

    # Earnings
    regular_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)

    # Deductions
    federal_tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    state_tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    social_security: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    medicare: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    employee: Mapped["Employee"] = relationship(back_populates="pay_stubs")
    pay_period: Mapped["PayPeriod"] = relationship(back_populates="pay_stubs")
