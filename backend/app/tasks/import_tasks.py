"""
Celery tasks for the scheduled QuickBooks time import.
"""
import asyncio
import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.import_tasks.import_open_pay_periods")
def import_open_pay_periods():
    """Re-imports every draft pay period that contains yesterday, for each connected tenant."""
    return asyncio.run(_import_open_pay_periods(date.today() - timedelta(days=1)))


async def _import_open_pay_periods(day: date) -> dict:
    from app.core.database import AsyncSessionLocal
    from app.models.pay_period import PayPeriod
    from app.models.quickbooks_connection import QuickBooksConnection
    from app.services.employee_sync_service import EmployeeSyncService
    from app.services.overtime_service import InvalidTimeRecordError
    from app.services.quickbooks_client import QuickBooksClient, QuickBooksError
    from app.services.time_import_service import TimeImportService

    imported = failed = 0
    async with QuickBooksClient() as client, AsyncSessionLocal() as db:
        connection_ids = (await db.execute(select(QuickBooksConnection.id))).scalars().all()
        for connection_id in connection_ids:
            # re-read after a rollback expired the session
            connection = await db.get(QuickBooksConnection, connection_id)
            tenant_id = connection.tenant_id
            if connection.is_expired():
                logger.warning("Skipping tenant %s: QuickBooks token expired", tenant_id)
                continue

            periods = (await db.execute(
                select(PayPeriod).where(
                    PayPeriod.tenant_id == tenant_id,
                    PayPeriod.status == "draft",
                    PayPeriod.start_date <= day,
                    PayPeriod.end_date >= day,
                )
            )).scalars().all()
            if not periods:
                continue

            try:
                await EmployeeSyncService(db, client).sync_employees(tenant_id, connection)
                for pay_period in periods:
                    summary = await TimeImportService(db, client).import_pay_period(
                        tenant_id, pay_period, connection
                    )
                    logger.info(
                        "Nightly import for pay period %s: %d entries", pay_period.id, summary.imported
                    )
                await db.commit()
                imported += len(periods)
            except (QuickBooksError, InvalidTimeRecordError, SQLAlchemyError) as e:
                await db.rollback()
                failed += len(periods)
                logger.error("Nightly import failed for tenant %s: %s", tenant_id, e)

    return {"imported": imported, "failed": failed}
