import logging
import uuid
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from app.api.deps import DB, ManagerOrAdmin
from app.models.pay_period import PayPeriod, PAY_PERIOD_TRANSITIONS
from app.schemas.pay_period import PayPeriodCreate, PayPeriodUpdate, PayPeriodOut
from app.schemas.quickbooks import ImportResult
from app.schemas.time_entry import ReclassifyRequest
from app.services.payroll_service import PayPeriodLockedError
from app.services.time_import_service import TimeImportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pay-periods", tags=["pay-periods"])


async def get_pay_period(db, tenant_id: uuid.UUID, pay_period_id: uuid.UUID) -> PayPeriod:
    result = await db.execute(
        select(PayPeriod).where(
            PayPeriod.id == pay_period_id,
            PayPeriod.tenant_id == tenant_id,
        )
    )
    pay_period = result.scalar_one_or_none()
    if not pay_period:
        raise HTTPException(status_code=404, detail="Pay period not found")
    return pay_period


@router.get("", response_model=list[PayPeriodOut])
async def list_pay_periods(
    current_user: ManagerOrAdmin,
    db: DB,
    limit: int = Query(default=10, ge=1, le=100),
):
    """Most recent pay periods first."""
    result = await db.execute(
        select(PayPeriod)
        .where(PayPeriod.tenant_id == current_user.tenant_id)
        .order_by(PayPeriod.start_date.desc())
        .limit(limit)
    )
    return result.scalars().all()


@router.post("", response_model=PayPeriodOut, status_code=status.HTTP_201_CREATED)
async def create_pay_period(payload: PayPeriodCreate, current_user: ManagerOrAdmin, db: DB):
    pay_period = PayPeriod(
        tenant_id=current_user.tenant_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        process_date=payload.process_date or payload.end_date + timedelta(days=1),
        status="draft",
    )
    db.add(pay_period)
    await db.commit()
    await db.refresh(pay_period)
    return pay_period


@router.get("/{pay_period_id}", response_model=PayPeriodOut)
async def get_pay_period_detail(pay_period_id: uuid.UUID, current_user: ManagerOrAdmin, db: DB):
    return await get_pay_period(db, current_user.tenant_id, pay_period_id)


@router.put("/{pay_period_id}", response_model=PayPeriodOut)
async def update_pay_period(
    pay_period_id: uuid.UUID,
    payload: PayPeriodUpdate,
    current_user: ManagerOrAdmin,
    db: DB,
):
    """Status change (see PAY_PERIOD_TRANSITIONS) or a new process date."""
    pay_period = await get_pay_period(db, current_user.tenant_id, pay_period_id)

    if payload.status and payload.status != pay_period.status:
        if payload.status not in PAY_PERIOD_TRANSITIONS.get(pay_period.status, ()):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status change: {pay_period.status} → {payload.status}",
            )
        logger.info("Pay period %s: %s → %s", pay_period.id, pay_period.status, payload.status)
        pay_period.status = payload.status
    if payload.process_date is not None:
        pay_period.process_date = payload.process_date

    await db.commit()
    await db.refresh(pay_period)
    return pay_period


@router.post("/{pay_period_id}/reclassify", response_model=ImportResult)
async def reclassify_pay_period(
    pay_period_id: uuid.UUID,
    current_user: ManagerOrAdmin,
    db: DB,
    payload: ReclassifyRequest | None = None,
):
    """Recreate every time entry of the pay period with a fresh regular/overtime split."""
    pay_period = await get_pay_period(db, current_user.tenant_id, pay_period_id)
    if pay_period.is_locked:
        raise PayPeriodLockedError(pay_period)

    summary = await TimeImportService(db).reclassify_pay_period(
        current_user.tenant_id, pay_period, payload.policy if payload else None
    )
    await db.commit()
    return summary.to_dict()
