"""
Employee sync: upserts QuickBooks employees into the local employee table.
"""
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import Employee
from app.models.quickbooks_connection import QuickBooksConnection
from app.services.quickbooks_client import QuickBooksClient

logger = logging.getLogger(__name__)

LOCAL_ONLY_FIELDS = (
    "filing_status",
    "allowances",
    "additional_withholding",
    "department",
    "job_title",
    "payment_method",
)


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value[:10]) if value else None


def employee_fields_from_qb(qb_employee: dict[str, Any]) -> dict[str, Any]:
    """Map a QuickBooks Employee object to Employee column values owned by QuickBooks."""
    given = qb_employee.get("GivenName") or ""
    family = qb_employee.get("FamilyName") or ""
    return {
        "qb_employee_id": str(qb_employee["Id"]),
        "first_name": given,
        "last_name": family,
        "display_name": qb_employee.get("DisplayName") or f"{given} {family}".strip(),
        "email": ((qb_employee.get("PrimaryEmailAddr") or {}).get("Address") or None),
        "phone": ((qb_employee.get("PrimaryPhone") or {}).get("FreeFormNumber") or None),
        "hourly_rate": Decimal(str(qb_employee.get("BillRate") or 0)),
        "is_active": qb_employee.get("Active", True) is not False,
        "hired_date": _parse_date(qb_employee.get("HiredDate")),
        "released_date": _parse_date(qb_employee.get("ReleasedDate")),
    }


def qb_employee_payload(data: dict[str, Any], display_name: str) -> dict[str, Any]:
    """QuickBooks Employee body for a new employee."""
    payload: dict[str, Any] = {
        "GivenName": data["given_name"],
        "FamilyName": data["family_name"],
        "DisplayName": display_name,
        "PrimaryAddr": {
            "Line1": data["address_line1"],
            "City": data["city"],
            "CountrySubDivisionCode": data["state"],
            "PostalCode": data["postal_code"],
            "Country": data.get("country") or "USA",
        },
    }
    if data.get("email"):
        payload["PrimaryEmailAddr"] = {"Address": data["email"]}
    if data.get("phone"):
        payload["PrimaryPhone"] = {"FreeFormNumber": data["phone"]}
    if data.get("hired_date"):
        payload["HiredDate"] = data["hired_date"].isoformat()
    if data.get("bill_rate") is not None:
        payload["BillRate"] = float(data["bill_rate"])
    return payload


class EmployeeSyncService:

    def __init__(self, db: AsyncSession, client: QuickBooksClient):
        self.db = db
        self.client = client

    async def sync_employees(self, tenant_id: uuid.UUID, connection: QuickBooksConnection) -> dict:
        """
        Creates or updates one Employee per active QuickBooks employee.
        Payroll-only fields (filing status, allowances, department, ...) are kept.
        Does NOT commit.
        """
        qb_employees = await self.client.fetch_employees(connection.realm_id, connection.access_token)

        existing_result = await self.db.execute(
            select(Employee).where(
                Employee.tenant_id == tenant_id,
                Employee.qb_employee_id.is_not(None),
            )
        )
        existing = {e.qb_employee_id: e for e in existing_result.scalars().all()}

        new_count = 0
        updated_count = 0
        for qb_employee in qb_employees:
            try:
                fields = employee_fields_from_qb(qb_employee)
            except (KeyError, ValueError, ArithmeticError) as e:
                logger.warning(
                    "Skipping QuickBooks employee %s: %s",
                    qb_employee.get("DisplayName") or qb_employee.get("Id"), e,
                )
                continue

            employee = existing.get(fields["qb_employee_id"])
            if employee is None:
                employee = Employee(tenant_id=tenant_id, **fields)
                self.db.add(employee)
                existing[fields["qb_employee_id"]] = employee
                new_count += 1
                logger.info("Created employee %s", fields["display_name"])
            else:
                for field, value in fields.items():
                    setattr(employee, field, value)
                updated_count += 1
                logger.debug("Updated employee %s", fields["display_name"])

        await self.db.flush()
        result = {
            "total_synced": new_count + updated_count,
            "new_employees": new_count,
            "updated_employees": updated_count,
        }
        logger.info("Employee sync for tenant %s finished: %s", tenant_id, result)
        return result

    async def _upsert(self, tenant_id: uuid.UUID, qb_employee: dict[str, Any], local_fields: dict[str, Any]) -> Employee:
        fields = employee_fields_from_qb(qb_employee)
        result = await self.db.execute(
            select(Employee).where(
                Employee.tenant_id == tenant_id,
                Employee.qb_employee_id == fields["qb_employee_id"],
            )
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            employee = Employee(tenant_id=tenant_id, **fields, **local_fields)
            self.db.add(employee)
        else:
            for field, value in fields.items():
                setattr(employee, field, value)
        await self.db.flush()
        return employee

    async def create_employee(
        self,
        tenant_id: uuid.UUID,
        connection: QuickBooksConnection,
        data: dict[str, Any],
    ) -> tuple[Employee, bool]:
        """
        Creates the employee in QuickBooks unless one with the same display name
        exists, then stores it locally. Returns (employee, already_existed).
        Does NOT commit.
        """
        display_name = data.get("display_name") or f"{data['given_name']} {data['family_name']}"
        existing = await self.client.find_employee_by_display_name(
            connection.realm_id, connection.access_token, display_name
        )
        if existing is not None:
            logger.info("QuickBooks employee %s already exists (%s)", display_name, existing.get("Id"))
            qb_employee = existing
        else:
            qb_employee = await self.client.create_employee(
                connection.realm_id, connection.access_token, qb_employee_payload(data, display_name)
            )

        local_fields = {key: data[key] for key in LOCAL_ONLY_FIELDS if key in data}
        employee = await self._upsert(tenant_id, qb_employee, local_fields)
        return employee, existing is not None
