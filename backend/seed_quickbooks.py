"""
Creates QuickBooks sandbox time activities from a JSON seed file.

Usage:
  python seed_quickbooks.py <tenant-slug> <seed.json> [customer-id]

The tenant needs a stored QuickBooks connection and employees synced from
QuickBooks; employees are matched on their QuickBooks id.
"""
import asyncio
import json
import sys

from sqlalchemy import select

from app.core.database import AsyncSessionLocal
from app.core.logging import configure_logging
from app.models.employee import Employee
from app.models.tenant import Tenant
from app.services.connection_service import require_connection
from app.services.quickbooks_client import QuickBooksClient, QuickBooksNotConnectedError
from app.services.seed_service import SeedEmployee, seed_time_activities
import app.models  # noqa – registers all models


async def main(slug: str, seed_path: str, customer_id: str | None) -> None:
    with open(seed_path, encoding="utf-8") as f:
        seed = json.load(f)

    async with AsyncSessionLocal() as db:
        tenant = (await db.execute(select(Tenant).where(Tenant.slug == slug))).scalar_one_or_none()
        if tenant is None:
            print(f"Error: no tenant with slug '{slug}'.")
            sys.exit(1)
        try:
            connection = await require_connection(db, tenant.id)
        except QuickBooksNotConnectedError as e:
            print(f"Error: {e}")
            sys.exit(1)

        result = await db.execute(
            select(Employee).where(Employee.tenant_id == tenant.id, Employee.qb_employee_id.is_not(None))
        )
        employees = {
            e.qb_employee_id: SeedEmployee(e.display_name, e.hourly_rate)
            for e in result.scalars().all()
        }

    async with QuickBooksClient() as client:
        summary = await seed_time_activities(
            client, connection.realm_id, connection.access_token, employees, seed, customer_id
        )

    for detail in summary.details:
        print(f"  {detail['status']:8} {detail['date']}  {detail['employee']}")
    print(f"✓ {summary.created} created, {summary.skipped} skipped, {summary.errors} errors")


if __name__ == "__main__":
    if len(sys.argv) not in (3, 4):
        print("Usage: python seed_quickbooks.py <tenant-slug> <seed.json> [customer-id]")
        sys.exit(1)

    configure_logging()
    asyncio.run(main(sys.argv[1], sys.argv[2], sys.argv[3] if len(sys.argv) == 4 else None))
