"""
Payroll API – pay stubs per pay period
"""
import uuid

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin
from app.api.v1.pay_periods import get_pay_period
from app.models.employee import Employee
from app.models.pay_period import PayPeriod
from app.models.pay_stub import PayStub
from app.models.tenant import Tenant
from app.schemas.payroll import PayStubOut, PayrollSummary
from app.services.payroll_service import PayrollService
from app.services.pdf_service import generate_pay_stub_pdf

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get("/pay-periods/{pay_period_id}/summary", response_model=PayrollSummary)
async def payroll_summary(pay_period_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    """Preview of hours, gross pay and employer taxes. Nothing is stored."""
    pay_period = await get_pay_period(db, current_user.tenant_id, pay_period_id)
    return await PayrollService(db).summarize(pay_period)


@router.post("/pay-periods/{pay_period_id}/calculate", response_model=list[PayStubOut])
async def calculate_payroll(pay_period_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    """
    Calculate (or recalculate) the pay stubs of a pay period.
    Synced/paid periods cannot be recalculated.
    """
    pay_period = await get_pay_period(db, current_user.tenant_id, pay_period_id)
    stubs = await PayrollService(db).calculate_pay_period(pay_period)
    await db.commit()
    for stub in stubs:
        await db.refresh(stub)
    return stubs


@router.get("/pay-stubs", response_model=list[PayStubOut])
async def list_pay_stubs(
    current_user: ManagerOrAdmin,
    db: DB,
    pay_period_id: uuid.UUID | None = None,
    employee_id: uuid.UUID | None = None,
):
    query = select(PayStub).where(PayStub.tenant_id == current_user.tenant_id)
    if pay_period_id:
        query = query.where(PayStub.pay_period_id == pay_period_id)
    if employee_id:
        query = query.where(PayStub.employee_id == employee_id)
    result = await db.execute(query.order_by(PayStub.created_at.desc()))
    return result.scalars().all()


async def _get_stub(db, tenant_id: uuid.UUID, stub_id: uuid.UUID) -> PayStub:
    result = await db.execute(
        select(PayStub).where(
            PayStub.id == stub_id,
            PayStub.tenant_id == tenant_id,
        )
    )
    stub = result.scalar_one_or_none()
    if not stub:
        raise HTTPException(status_code=404, detail="Pay stub not found")
    return stub


@router.get("/pay-stubs/{stub_id}", response_model=PayStubOut)
async def get_pay_stub(stub_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    return await _get_stub(db, current_user.tenant_id, stub_id)


@router.get("/pay-stubs/{stub_id}/pdf")
async def download_pay_stub_pdf(stub_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    """Renders the pay stub as a PDF download."""
    stub = await _get_stub(db, current_user.tenant_id, stub_id)

    employee = (await db.execute(select(Employee).where(Employee.id == stub.employee_id))).scalar_one()
    pay_period = (await db.execute(select(PayPeriod).where(PayPeriod.id == stub.pay_period_id))).scalar_one()
    tenant = (await db.execute(select(Tenant).where(Tenant.id == current_user.tenant_id))).scalar_one_or_none()
    company_name = tenant.name if tenant else "Payroll"

    pdf_bytes = generate_pay_stub_pdf(stub, employee, pay_period, company_name)

    filename = f"pay-stub-{employee.last_name.lower()}-{pay_period.end_date:%Y-%m-%d}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )
