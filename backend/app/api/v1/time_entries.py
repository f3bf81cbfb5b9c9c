import uuid

from fastapi import APIRouter, status
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin
from app.api.v1.employees import get_tenant_employee
from app.api.v1.pay_periods import get_pay_period
from app.models.time_entry import TimeEntry
from app.schemas.quickbooks import ImportResult
from app.schemas.time_entry import HoursTotals, ManualTimeEntryCreate, TimeEntryList, TimeEntryOut
from app.services.payroll_service import PayPeriodLockedError
from app.services.time_import_service import EntryDraft, TimeImportService

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.get("", response_model=TimeEntryList)
async def list_time_entries(
    pay_period_id: uuid.UUID,
    current_user: ManagerOrAdmin,
    db: DB,
    employee_id: uuid.UUID | None = None,
):
    """Entries of a pay period with their summed hours."""
    await get_pay_period(db, current_user.tenant_id, pay_period_id)

    query = select(TimeEntry).where(
        TimeEntry.tenant_id == current_user.tenant_id,
        TimeEntry.pay_period_id == pay_period_id,
    )
    if employee_id:
        query = query.where(TimeEntry.employee_id == employee_id)
    result = await db.execute(query.order_by(TimeEntry.date, TimeEntry.created_at))
    entries = result.scalars().all()

    totals = HoursTotals()
    for entry in entries:
        totals.total_hours += entry.hours
        totals.regular_hours += entry.regular_hours
        totals.overtime_hours += entry.overtime_hours

    return TimeEntryList(
        count=len(entries),
        totals=totals,
        entries=[TimeEntryOut.model_validate(e) for e in entries],
    )


@router.post("", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def create_manual_time_entry(payload: ManualTimeEntryCreate, current_user: ManagerOrAdmin, db: DB):
    """
    Add hours by hand. The pay period is reclassified so the new hours count
    towards the overtime thresholds of its week or day.
    """
    employee = await get_tenant_employee(db, current_user.tenant_id, payload.employee_id)
    pay_period = await get_pay_period(db, current_user.tenant_id, payload.pay_period_id)
    if pay_period.is_locked:
        raise PayPeriodLockedError(pay_period)

    draft = EntryDraft(
        employee_id=employee.id,
        date=payload.date,
        hours=payload.hours,
        source="manual",
        qb_employee_id=employee.qb_employee_id,
        description=payload.description,
    )
    summary = await TimeImportService(db).reclassify_pay_period(
        current_user.tenant_id, pay_period, payload.policy, extra=[draft]
    )
    await db.commit()
    return summary.to_dict()
