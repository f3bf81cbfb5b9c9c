from datetime import date, datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel, Field

from app.services.overtime_service import OvertimePolicy


class TimeEntryOut(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    pay_period_id: uuid.UUID | None
    qb_employee_id: str | None
    qb_time_activity_id: str | None
    date: date
    hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    type: str
    source: str
    description: str | None
    hourly_rate: Decimal | None
    billable: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ManualTimeEntryCreate(BaseModel):
    employee_id: uuid.UUID
    pay_period_id: uuid.UUID
    date: date
    hours: Decimal = Field(ge=0, le=24, decimal_places=2)
    description: str | None = None
    policy: OvertimePolicy | None = None


class HoursTotals(BaseModel):
    total_hours: Decimal = Decimal("0")
    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")


class TimeEntryList(BaseModel):
    count: int
    totals: HoursTotals
    entries: list[TimeEntryOut]


class ReclassifyRequest(BaseModel):
    policy: OvertimePolicy | None = None
