"""
QuickBooks Online REST client.

One instance is created by the application lifespan and handed to routes via
dependency injection; it owns a single httpx.AsyncClient.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class QuickBooksError(Exception):
    """Base class for QuickBooks failures."""


class QuickBooksNotConnectedError(QuickBooksError):
    """No stored connection for the tenant, or its access token has expired."""


class QuickBooksAPIError(QuickBooksError):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"QuickBooks API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def quote(value: str) -> str:
    """Quote a literal for the QuickBooks query language."""
    return "'" + str(value).replace("\\", "\\\\").replace("'", "\\'") + "'"


class QuickBooksClient:

    def __init__(
        self,
        base_url: str | None = None,
        minor_version: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.minor_version = minor_version or settings.QUICKBOOKS_MINOR_VERSION
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.quickbooks_base_url,
            timeout=timeout or settings.QUICKBOOKS_TIMEOUT_SECONDS,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "QuickBooksClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ── Transport ──────────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        realm_id: str,
        path: str,
        access_token: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"/v3/company/{realm_id}/{path}"
        query = {"minorversion": self.minor_version, **(params or {})}
        try:
            response = await self._http.request(
                method,
                url,
                params=query,
                json=json,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error("QuickBooks request %s %s failed: %s", method, url, e)
            raise QuickBooksAPIError(502, str(e)) from e

        if response.is_error:
            logger.error("QuickBooks %s %s returned %s: %s", method, url, response.status_code, response.text)
            raise QuickBooksAPIError(response.status_code, response.text)
        return response.json()

    async def query(self, realm_id: str, access_token: str, statement: str) -> dict[str, Any]:
        data = await self._request("GET", realm_id, "query", access_token, params={"query": statement})
        return data.get("QueryResponse", {})

    # ── Employees ──────────────────────────────────────────────────────────────

    async def fetch_employees(
        self, realm_id: str, access_token: str, active_only: bool = True
    ) -> list[dict[str, Any]]:
        statement = "SELECT * FROM Employee"
        if active_only:
            statement += " WHERE Active = true"
        employees = (await self.query(realm_id, access_token, statement)).get("Employee", [])
        logger.info("Fetched %d employees from QuickBooks realm %s", len(employees), realm_id)
        return employees

    async def find_employee_by_display_name(
        self, realm_id: str, access_token: str, display_name: str
    ) -> dict[str, Any] | None:
        statement = f"SELECT * FROM Employee WHERE DisplayName = {quote(display_name)}"
        found = (await self.query(realm_id, access_token, statement)).get("Employee", [])
        return found[0] if found else None

    async def create_employee(
        self, realm_id: str, access_token: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        data = await self._request("POST", realm_id, "employee", access_token, json=payload)
        employee = data["Employee"]
        logger.info("Created QuickBooks employee %s (%s)", employee.get("Id"), employee.get("DisplayName"))
        return employee

    # ── Time activities ────────────────────────────────────────────────────────

    async def fetch_time_activities(
        self, realm_id: str, access_token: str, start: date, end: date
    ) -> list[dict[str, Any]]:
        statement = (
            "SELECT * FROM TimeActivity "
            f"WHERE TxnDate >= {quote(start.isoformat())} AND TxnDate <= {quote(end.isoformat())}"
        )
        activities = (await self.query(realm_id, access_token, statement)).get("TimeActivity", [])
        logger.info("Fetched %d time activities for %s..%s", len(activities), start, end)
        return activities

    async def find_time_activity(
        self, realm_id: str, access_token: str, qb_employee_id: str, day: date
    ) -> dict[str, Any] | None:
        statement = (
            "SELECT * FROM TimeActivity "
            f"WHERE EmployeeRef = {quote(qb_employee_id)} AND TxnDate = {quote(day.isoformat())}"
        )
        found = (await self.query(realm_id, access_token, statement)).get("TimeActivity", [])
        return found[0] if found else None

    async def create_time_activity(
        self,
        realm_id: str,
        access_token: str,
        qb_employee_id: str,
        employee_name: str,
        day: date,
        hours: int,
        minutes: int = 0,
        hourly_rate: float | None = None,
        customer_id: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "TxnDate": day.isoformat(),
            "NameOf": "Employee",
            "EmployeeRef": {"value": qb_employee_id, "name": employee_name},
            "BillableStatus": "NotBillable",
            "Taxable": False,
            "Hours": hours,
            "Minutes": minutes,
        }
        if hourly_rate is not None:
            payload["HourlyRate"] = hourly_rate
        if customer_id:
            payload["CustomerRef"] = {"value": customer_id}
        if description:
            payload["Description"] = description

        data = await self._request("POST", realm_id, "timeactivity", access_token, json=payload)
        activity = data["TimeActivity"]
        logger.info("Created time activity %s: %s %s %sh", activity.get("Id"), employee_name, day, hours)
        return activity
