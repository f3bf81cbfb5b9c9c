"""
QuickBooks API – connection, employee sync, time import
"""
import logging
from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.deps import DB, AdminUser, ManagerOrAdmin, QuickBooks
from app.api.v1.employees import get_tenant_employee
from app.api.v1.pay_periods import get_pay_period
from app.core.config import settings
from app.models.employee import Employee
from app.models.pay_period import PayPeriod
from app.models.quickbooks_connection import QuickBooksConnection
from app.schemas.employee import EmployeeOut
from app.schemas.pay_period import PayPeriodOut
from app.schemas.quickbooks import (
    ConnectionStatus,
    ConnectionUpsert,
    EmployeeSyncResult,
    FullSyncRequest,
    FullSyncResult,
    ImportRequest,
    ImportResult,
    QuickBooksEmployeeCreate,
    QuickBooksEmployeeCreated,
    TimeActivityCreate,
    TimeActivityCreated,
)
from app.services.connection_service import get_connection, require_connection
from app.services.employee_sync_service import EmployeeSyncService
from app.services.payroll_service import PayPeriodLockedError
from app.services.time_import_service import TimeImportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quickbooks", tags=["quickbooks"])


def _status(connection: QuickBooksConnection | None) -> ConnectionStatus:
    if connection is None:
        return ConnectionStatus(connected=False)
    return ConnectionStatus(
        connected=not connection.is_expired(),
        realm_id=connection.realm_id,
        company_name=connection.company_name,
        expires_at=connection.expires_at,
        last_sync_at=connection.last_sync_at,
    )


# ── Connection ────────────────────────────────────────────────────────────────

@router.get("/connection", response_model=ConnectionStatus)
async def get_connection_status(current_user: AdminUser, db: DB):
    return _status(await get_connection(db, current_user.tenant_id))


@router.put("/connection", response_model=ConnectionStatus)
async def upsert_connection(payload: ConnectionUpsert, current_user: AdminUser, db: DB):
    """Store tokens obtained from the QuickBooks authorization flow."""
    connection = await get_connection(db, current_user.tenant_id)
    if connection is None:
        connection = QuickBooksConnection(tenant_id=current_user.tenant_id, **payload.model_dump())
        db.add(connection)
    else:
        for field, value in payload.model_dump().items():
            setattr(connection, field, value)
    await db.commit()
    await db.refresh(connection)
    logger.info("QuickBooks realm %s connected for tenant %s", connection.realm_id, current_user.tenant_id)
    return _status(connection)


@router.delete("/connection", status_code=status.HTTP_204_NO_CONTENT)
async def delete_connection(current_user: AdminUser, db: DB):
    connection = await get_connection(db, current_user.tenant_id)
    if connection is None:
        raise HTTPException(status_code=404, detail="QuickBooks not connected")
    await db.delete(connection)
    await db.commit()


# ── Employees ─────────────────────────────────────────────────────────────────

@router.post("/employees/sync", response_model=EmployeeSyncResult)
async def sync_employees(current_user: ManagerOrAdmin, db: DB, client: QuickBooks):
    connection = await require_connection(db, current_user.tenant_id)
    result = await EmployeeSyncService(db, client).sync_employees(current_user.tenant_id, connection)
    await db.commit()
    return result


@router.post("/employees", response_model=QuickBooksEmployeeCreated)
async def create_quickbooks_employee(
    payload: QuickBooksEmployeeCreate,
    current_user: AdminUser,
    db: DB,
    client: QuickBooks,
):
    """Create the employee in QuickBooks (if the display name is new) and store it locally."""
    connection = await require_connection(db, current_user.tenant_id)
    employee, already_existed = await EmployeeSyncService(db, client).create_employee(
        current_user.tenant_id, connection, payload.model_dump()
    )
    await db.commit()
    await db.refresh(employee)
    return QuickBooksEmployeeCreated(
        qb_employee_id=employee.qb_employee_id,
        display_name=employee.display_name,
        already_existed=already_existed,
        employee=EmployeeOut.model_validate(employee),
    )


# ── Time ──────────────────────────────────────────────────────────────────────

@router.post("/time/import", response_model=ImportResult)
async def import_time(payload: ImportRequest, current_user: ManagerOrAdmin, db: DB, client: QuickBooks):
    """Pull time activities for a pay period and split them into regular and overtime."""
    pay_period = await get_pay_period(db, current_user.tenant_id, payload.pay_period_id)
    if pay_period.is_locked:
        raise PayPeriodLockedError(pay_period)
    connection = await require_connection(db, current_user.tenant_id)

    summary = await TimeImportService(db, client).import_pay_period(
        current_user.tenant_id, pay_period, connection, payload.policy
    )
    await db.commit()
    return summary.to_dict()


@router.post("/time", response_model=TimeActivityCreated, status_code=status.HTTP_201_CREATED)
async def create_time_activity(
    payload: TimeActivityCreate,
    current_user: ManagerOrAdmin,
    db: DB,
    client: QuickBooks,
):
    employee = await get_tenant_employee(db, current_user.tenant_id, payload.employee_id)
    if not employee.qb_employee_id:
        raise HTTPException(status_code=400, detail="Employee is not linked to QuickBooks")
    connection = await require_connection(db, current_user.tenant_id)

    activity = await client.create_time_activity(
        connection.realm_id,
        connection.access_token,
        employee.qb_employee_id,
        employee.display_name,
        payload.date,
        payload.hours,
        payload.minutes,
        hourly_rate=float(employee.hourly_rate),
        customer_id=payload.customer_id,
        description=payload.description,
    )
    return TimeActivityCreated(
        qb_time_activity_id=str(activity["Id"]),
        date=payload.date,
        hours=payload.hours,
        minutes=payload.minutes,
    )


# ── Full sync ─────────────────────────────────────────────────────────────────

@router.post("/sync", response_model=FullSyncResult)
async def full_sync(current_user: ManagerOrAdmin, db: DB, client: QuickBooks, payload: FullSyncRequest | None = None):
    """
    Employees, then the pay period (created as draft when missing), then its time.
    Without dates the period is the last DEFAULT_PAY_PERIOD_DAYS days ending yesterday.
    """
    payload = payload or FullSyncRequest()
    end_date = payload.end_date or date.today() - timedelta(days=1)
    start_date = payload.start_date or end_date - timedelta(days=settings.DEFAULT_PAY_PERIOD_DAYS - 1)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")

    connection = await require_connection(db, current_user.tenant_id)
    employee_result = await EmployeeSyncService(db, client).sync_employees(current_user.tenant_id, connection)

    result = await db.execute(
        select(PayPeriod).where(
            PayPeriod.tenant_id == current_user.tenant_id,
            PayPeriod.start_date == start_date,
            PayPeriod.end_date == end_date,
        )
    )
    pay_period = result.scalar_one_or_none()
    if pay_period is None:
        pay_period = PayPeriod(
            tenant_id=current_user.tenant_id,
            start_date=start_date,
            end_date=end_date,
            process_date=end_date + timedelta(days=1),
            status="draft",
        )
        db.add(pay_period)
        await db.flush()
    elif pay_period.is_locked:
        raise PayPeriodLockedError(pay_period)

    summary = await TimeImportService(db, client).import_pay_period(
        current_user.tenant_id, pay_period, connection, payload.policy
    )
    await db.commit()
    await db.refresh(pay_period)

    active = await db.execute(
        select(Employee)
        .where(Employee.tenant_id == current_user.tenant_id, Employee.is_active == True)
        .order_by(Employee.display_name)
    )
    return FullSyncResult(
        employees=EmployeeSyncResult(**employee_result),
        active_employees=[EmployeeOut.model_validate(e) for e in active.scalars().all()],
        pay_period=PayPeriodOut.model_validate(pay_period),
        time_entries=ImportResult(**summary.to_dict()),
    )
