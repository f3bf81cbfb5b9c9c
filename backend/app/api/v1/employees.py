import uuid

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from app.api.deps import DB, AdminUser, CurrentUser
from app.models.employee import Employee
from app.models.time_entry import TimeEntry
from app.schemas.employee import EmployeeCreate, EmployeeUpdate, EmployeeOut
from app.schemas.time_entry import TimeEntryOut

router = APIRouter(prefix="/employees", tags=["employees"])


async def get_tenant_employee(db, tenant_id: uuid.UUID, employee_id: uuid.UUID) -> Employee:
    result = await db.execute(
        select(Employee).where(
            Employee.id == employee_id,
            Employee.tenant_id == tenant_id,
        )
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


# ── List / detail ─────────────────────────────────────────────────────────────

@router.get("", response_model=list[EmployeeOut])
async def list_employees(current_user: CurrentUser, db: DB, active_only: bool = True):
    query = select(Employee).where(Employee.tenant_id == current_user.tenant_id)
    if active_only:
        query = query.where(Employee.is_active == True)
    result = await db.execute(query.order_by(Employee.display_name))
    return result.scalars().all()


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: uuid.UUID, current_user: CurrentUser, db: DB):
    return await get_tenant_employee(db, current_user.tenant_id, employee_id)


@router.get("/{employee_id}/time-entries", response_model=list[TimeEntryOut])
async def list_employee_time_entries(
    employee_id: uuid.UUID,
    current_user: CurrentUser,
    db: DB,
    limit: int = Query(default=20, ge=1, le=500),
):
    """Most recent time entries of one employee."""
    await get_tenant_employee(db, current_user.tenant_id, employee_id)
    result = await db.execute(
        select(TimeEntry)
        .where(
            TimeEntry.employee_id == employee_id,
            TimeEntry.tenant_id == current_user.tenant_id,
        )
        .order_by(TimeEntry.date.desc(), TimeEntry.created_at.desc())
        .limit(limit)
    )
    return result.scalars().all()


# ── Admin: create / update / deactivate ──────────────────────────────────────

@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: EmployeeCreate, current_user: AdminUser, db: DB):
    data = payload.model_dump()
    if not data.get("display_name"):
        data["display_name"] = f"{payload.first_name} {payload.last_name}"
    employee = Employee(tenant_id=current_user.tenant_id, **data)
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    return employee


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(employee_id: uuid.UUID, payload: EmployeeUpdate, current_user: AdminUser, db: DB):
    employee = await get_tenant_employee(db, current_user.tenant_id, employee_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(employee, field, value)

    await db.commit()
    await db.refresh(employee)
    return employee


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_employee(employee_id: uuid.UUID, current_user: AdminUser, db: DB):
    employee = await get_tenant_employee(db, current_user.tenant_id, employee_id)
    employee.is_active = False
    await db.commit()
