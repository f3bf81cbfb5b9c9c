from datetime import date, datetime
from decimal import Decimal
from typing import Literal
import uuid

from pydantic import BaseModel, model_validator

PayPeriodStatus = Literal["draft", "processing", "processed", "synced", "paid"]


class PayPeriodCreate(BaseModel):
    start_date: date
    end_date: date
    process_date: date | None = None  # defaults to the day after end_date

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class PayPeriodUpdate(BaseModel):
    status: PayPeriodStatus | None = None
    process_date: date | None = None


class PayPeriodOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: date
    process_date: date
    status: str
    employee_count: int | None
    total_gross_pay: Decimal | None
    total_net_pay: Decimal | None
    created_at: datetime

    model_config = {"from_attributes": True}
