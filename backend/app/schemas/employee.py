from datetime import date, datetime
from decimal import Decimal
from typing import Literal
import uuid

from pydantic import BaseModel, EmailStr, Field

FilingStatus = Literal["single", "married", "head_of_household"]
PaymentMethod = Literal["direct_deposit", "check"]


class EmployeeOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    qb_employee_id: str | None
    first_name: str
    last_name: str
    display_name: str
    email: str | None
    phone: str | None
    hourly_rate: Decimal
    filing_status: str
    allowances: int
    additional_withholding: Decimal
    department: str | None
    job_title: str | None
    payment_method: str
    hired_date: date | None
    released_date: date | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class EmployeeCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    display_name: str | None = None  # defaults to "first last"
    email: EmailStr | None = None
    phone: str | None = None
    hourly_rate: Decimal = Field(ge=0)
    filing_status: FilingStatus = "single"
    allowances: int = Field(default=0, ge=0)
    additional_withholding: Decimal = Field(default=Decimal("0"), ge=0)
    department: str | None = None
    job_title: str | None = None
    payment_method: PaymentMethod = "check"
    hired_date: date | None = None


class EmployeeUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    hourly_rate: Decimal | None = Field(default=None, ge=0)
    filing_status: FilingStatus | None = None
    allowances: int | None = Field(default=None, ge=0)
    additional_withholding: Decimal | None = Field(default=None, ge=0)
    department: str | None = None
    job_title: str | None = None
    payment_method: PaymentMethod | None = None
    hired_date: date | None = None
    released_date: date | None = None
    is_active: bool | None = None
