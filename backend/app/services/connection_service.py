import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.quickbooks_connection import QuickBooksConnection
from app.services.quickbooks_client import QuickBooksNotConnectedError


async def get_connection(db: AsyncSession, tenant_id: uuid.UUID) -> QuickBooksConnection | None:
    result = await db.execute(
        select(QuickBooksConnection).where(QuickBooksConnection.tenant_id == tenant_id)
    )
    return result.scalar_one_or_none()


async def require_connection(db: AsyncSession, tenant_id: uuid.UUID) -> QuickBooksConnection:
    """The tenant's connection with a usable access token; raises QuickBooksNotConnectedError otherwise."""
    connection = await get_connection(db, tenant_id)
    if connection is None:
        raise QuickBooksNotConnectedError("QuickBooks not connected. Please authorize QuickBooks first.")
    if connection.is_expired(datetime.now(timezone.utc)):
        raise QuickBooksNotConnectedError("QuickBooks access token has expired. Please reconnect QuickBooks.")
    return connection
