from datetime import date, datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.schemas.employee import EmployeeOut, FilingStatus, PaymentMethod
from app.schemas.pay_period import PayPeriodOut
from app.services.overtime_service import OvertimePolicy


class ConnectionUpsert(BaseModel):
    realm_id: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_at: datetime
    refresh_expires_at: datetime
    company_name: str | None = None


class ConnectionStatus(BaseModel):
    connected: bool
    realm_id: str | None = None
    company_name: str | None = None
    expires_at: datetime | None = None
    last_sync_at: datetime | None = None


class EmployeeSyncResult(BaseModel):
    total_synced: int
    new_employees: int
    updated_employees: int


class QuickBooksEmployeeCreate(BaseModel):
    given_name: str = Field(min_length=1)
    family_name: str = Field(min_length=1)
    display_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    address_line1: str
    city: str
    state: str
    postal_code: str
    country: str | None = "USA"
    hired_date: date | None = None
    bill_rate: Decimal | None = Field(default=None, ge=0)
    # kept locally only
    filing_status: FilingStatus = "single"
    allowances: int = Field(default=0, ge=0)
    additional_withholding: Decimal = Field(default=Decimal("0"), ge=0)
    department: str | None = None
    job_title: str | None = None
    payment_method: PaymentMethod = "check"


class QuickBooksEmployeeCreated(BaseModel):
    qb_employee_id: str
    display_name: str
    already_existed: bool
    employee: EmployeeOut


class TimeActivityCreate(BaseModel):
    employee_id: uuid.UUID
    date: date
    hours: int = Field(ge=0, le=24)
    minutes: int = Field(default=0, ge=0, le=59)
    customer_id: str | None = None
    description: str | None = None


class TimeActivityCreated(BaseModel):
    qb_time_activity_id: str
    date: date
    hours: int
    minutes: int


class ImportRequest(BaseModel):
    pay_period_id: uuid.UUID
    policy: OvertimePolicy | None = None


class EmployeeHours(BaseModel):
    name: str
    regular: Decimal
    overtime: Decimal
    total: Decimal


class ImportResult(BaseModel):
    imported: int
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    by_employee: dict[str, EmployeeHours]


class FullSyncRequest(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    policy: OvertimePolicy | None = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class FullSyncResult(BaseModel):
    employees: EmployeeSyncResult
    active_employees: list[EmployeeOut]
    pay_period: PayPeriodOut
    time_entries: ImportResult
