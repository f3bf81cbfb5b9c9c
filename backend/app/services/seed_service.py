"""
Creates sandbox time activities in QuickBooks from a seed document:

    {"timeEntries": [
        {"qbEmployeeId": "55", "employeeDisplayName": "Emily Davis",
         "weeklySchedule": [{"date": "2025-10-06", "hours": 8}, ...]},
    ]}
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from app.services.quickbooks_client import QuickBooksClient, QuickBooksError

logger = logging.getLogger(__name__)


@dataclass
class SeedEmployee:
    name: str
    rate: Decimal | None = None


@dataclass
class SeedResult:
    created: int = 0
    skipped: int = 0
    errors: int = 0
    details: list[dict[str, str]] = field(default_factory=list)

    def record(self, employee: str, day: str, status: str) -> None:
        self.details.append({"employee": employee, "date": day, "status": status})


def split_hours(hours) -> tuple[int, int]:
    """7.5 -> (7, 30)"""
    total_minutes = int((Decimal(str(hours)) * 60).to_integral_value())
    return total_minutes // 60, total_minutes % 60


async def seed_time_activities(
    client: QuickBooksClient,
    realm_id: str,
    access_token: str,
    employees: Mapping[str, SeedEmployee],
    seed: dict[str, Any],
    customer_id: str | None = None,
    delay: float = 0.2,
) -> SeedResult:
    """
    One activity per scheduled day. Days that already have an activity for the
    employee are skipped; a failing day is counted and the rest continue.
    """
    result = SeedResult()
    for entry in seed.get("timeEntries", []):
        qb_employee_id = str(entry.get("qbEmployeeId"))
        label = entry.get("employeeDisplayName") or qb_employee_id
        employee = employees.get(qb_employee_id)
        if employee is None:
            logger.warning("Employee not found with QuickBooks id %s (%s)", qb_employee_id, label)
            result.errors += 1
            continue

        for day in entry.get("weeklySchedule", []):
            day_str = str(day.get("date"))
            try:
                work_date = date.fromisoformat(day_str)
                existing = await client.find_time_activity(realm_id, access_token, qb_employee_id, work_date)
                if existing is not None:
                    result.skipped += 1
                    result.record(label, day_str, "skipped")
                    continue

                hours, minutes = split_hours(day["hours"])
                await client.create_time_activity(
                    realm_id,
                    access_token,
                    qb_employee_id,
                    employee.name,
                    work_date,
                    hours,
                    minutes,
                    hourly_rate=float(employee.rate) if employee.rate is not None else None,
                    customer_id=customer_id,
                )
                result.created += 1
                result.record(label, day_str, "created")
            except (QuickBooksError, KeyError, ValueError, ArithmeticError) as e:
                logger.error("Could not create time activity for %s on %s: %s", label, day_str, e)
                result.errors += 1
                result.record(label, day_str, "error")
                continue

            if delay:
                await asyncio.sleep(delay)

    logger.info(
        "Seeded time activities: %d created, %d skipped, %d errors",
        result.created, result.skipped, result.errors,
    )
    return result
