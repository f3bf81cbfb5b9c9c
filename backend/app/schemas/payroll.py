from datetime import datetime
from decimal import Decimal
import uuid

from pydantic import BaseModel


class PayStubOut(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    pay_period_id: uuid.UUID
    employee_id: uuid.UUID
    regular_hours: Decimal
    overtime_hours: Decimal
    hourly_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    federal_tax: Decimal
    state_tax: Decimal
    social_security: Decimal
    medicare: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class EmployeePayPreview(BaseModel):
    employee_id: uuid.UUID
    display_name: str
    hourly_rate: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    total_hours: Decimal
    gross_pay: Decimal


class PayrollSummary(BaseModel):
    pay_period_id: uuid.UUID
    employees: list[EmployeePayPreview]
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_gross_pay: Decimal
    employer_social_security: Decimal
    employer_medicare: Decimal
    total_employer_taxes: Decimal
