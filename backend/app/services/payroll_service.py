"""
PayrollService: pay stubs for a pay period.

Regular hours are paid at the employee's hourly rate, overtime hours at
rate × OVERTIME_MULTIPLIER. Withholding uses flat rates from settings.
"""
import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.employee import Employee
from app.models.pay_period import PayPeriod
from app.models.pay_stub import PayStub
from app.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


class PayPeriodLockedError(Exception):
    def __init__(self, pay_period: PayPeriod):
        super().__init__(f"Pay period is already locked (status: {pay_period.status})")
        self.status = pay_period.status


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def _rate(value: float) -> Decimal:
    return Decimal(str(value))


def calculate_earnings(regular_hours: Decimal, overtime_hours: Decimal, hourly_rate: Decimal) -> dict:
    """Earnings, deductions and net pay for one employee."""
    regular_pay = money(regular_hours * hourly_rate)
    overtime_pay = money(overtime_hours * hourly_rate * _rate(settings.OVERTIME_MULTIPLIER))
    gross = regular_pay + overtime_pay

    federal = money(gross * _rate(settings.FEDERAL_TAX_RATE))
    state = money(gross * _rate(settings.STATE_TAX_RATE))
    social_security = money(gross * _rate(settings.SOCIAL_SECURITY_RATE))
    medicare = money(gross * _rate(settings.MEDICARE_RATE))
    deductions = federal + state + social_security + medicare

    return {
        "regular_hours": regular_hours,
        "overtime_hours": overtime_hours,
        "hourly_rate": hourly_rate,
        "regular_pay": regular_pay,
        "overtime_pay": overtime_pay,
        "gross_pay": gross,
        "federal_tax": federal,
        "state_tax": state,
        "social_security": social_security,
        "medicare": medicare,
        "total_deductions": deductions,
        "net_pay": gross - deductions,
    }


class PayrollService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _hours_by_employee(
        self, pay_period: PayPeriod
    ) -> list[tuple[Employee, Decimal, Decimal]]:
        result = await self.db.execute(
            select(TimeEntry).where(
                TimeEntry.tenant_id == pay_period.tenant_id,
                TimeEntry.pay_period_id == pay_period.id,
            )
        )
        regular: dict = defaultdict(Decimal)
        overtime: dict = defaultdict(Decimal)
        for entry in result.scalars().all():
            regular[entry.employee_id] += Decimal(entry.regular_hours)
            overtime[entry.employee_id] += Decimal(entry.overtime_hours)

        if not regular:
            return []
        emp_result = await self.db.execute(
            select(Employee)
            .where(Employee.id.in_(regular.keys()))
            .order_by(Employee.display_name)
        )
        return [(emp, regular[emp.id], overtime[emp.id]) for emp in emp_result.scalars().all()]

    async def summarize(self, pay_period: PayPeriod) -> dict:
        """Preview of the pay run; nothing is written."""
        rows = []
        total_regular = total_overtime = total_gross = _ZERO
        for employee, regular_hours, overtime_hours in await self._hours_by_employee(pay_period):
            earnings = calculate_earnings(regular_hours, overtime_hours, Decimal(employee.hourly_rate))
            rows.append({
                "employee_id": employee.id,
                "display_name": employee.display_name,
                "hourly_rate": Decimal(employee.hourly_rate),
                "regular_hours": regular_hours,
                "overtime_hours": overtime_hours,
                "total_hours": regular_hours + overtime_hours,
                "gross_pay": earnings["gross_pay"],
            })
            total_regular += regular_hours
            total_overtime += overtime_hours
            total_gross += earnings["gross_pay"]

        employer_ss = money(total_gross * _rate(settings.SOCIAL_SECURITY_RATE))
        employer_medicare = money(total_gross * _rate(settings.MEDICARE_RATE))
        return {
            "pay_period_id": pay_period.id,
            "employees": rows,
            "total_regular_hours": total_regular,
            "total_overtime_hours": total_overtime,
            "total_gross_pay": total_gross,
            "employer_social_security": employer_ss,
            "employer_medicare": employer_medicare,
            "total_employer_taxes": employer_ss + employer_medicare,
        }

    async def calculate_pay_period(self, pay_period: PayPeriod) -> list[PayStub]:
        """
        Replaces the pay stubs of the period and marks it processed.
        Raises PayPeriodLockedError for synced/paid periods. Does NOT commit.
        """
        if pay_period.is_locked:
            raise PayPeriodLockedError(pay_period)

        await self.db.execute(delete(PayStub).where(PayStub.pay_period_id == pay_period.id))

        stubs = []
        for employee, regular_hours, overtime_hours in await self._hours_by_employee(pay_period):
            stub = PayStub(
                tenant_id=pay_period.tenant_id,
                pay_period_id=pay_period.id,
                employee_id=employee.id,
                **calculate_earnings(regular_hours, overtime_hours, Decimal(employee.hourly_rate)),
            )
            self.db.add(stub)
            stubs.append(stub)

        pay_period.employee_count = len(stubs)
        pay_period.total_gross_pay = sum((s.gross_pay for s in stubs), _ZERO)
        pay_period.total_net_pay = sum((s.net_pay for s in stubs), _ZERO)
        pay_period.status = "processed"
        await self.db.flush()

        logger.info(
            "Calculated %d pay stubs for pay period %s: gross %s, net %s",
            len(stubs), pay_period.id, pay_period.total_gross_pay, pay_period.total_net_pay,
        )
        return stubs
