import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, Date, Boolean, ForeignKey, Numeric, Integer, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Employee(Base):
    __tablename__ = "employees"
    __table_args__ = (
        UniqueConstraint("tenant_id", "qb_employee_id", name="uq_employees_tenant_qb_employee"),
        Index("ix_employees_tenant_active", "tenant_id", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    qb_employee_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False, default=0)
    filing_status: Mapped[str] = mapped_column(String(50), default="single")  # single | married | head_of_household
    allowances: Mapped[int] = mapped_column(Integer, default=0)
    additional_withholding: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=0)

    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(50), default="check")  # direct_deposit | check

    hired_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    released_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="employees")
    time_entries: Mapped[list["TimeEntry"]] = relationship(back_populates="employee")
    pay_stubs: Mapped[list["PayStub"]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
