"""
TimeImportService: pulls QuickBooks time activities for a pay period, splits
them into regular and overtime hours and stores them as TimeEntry rows.

Entries are immutable. Every import or reclassification deletes the pay
period's entries and creates them again with a fresh classification.
"""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.employee import Employee
from app.models.pay_period import PayPeriod
from app.models.quickbooks_connection import QuickBooksConnection
from app.models.time_entry import TimeEntry
from app.services.overtime_service import (
    InvalidTimeRecordError,
    OvertimePolicy,
    classify_hours,
    week_start,
)
from app.services.quickbooks_client import QuickBooksClient

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def resolve_policy(policy: OvertimePolicy | str | None) -> OvertimePolicy:
    return OvertimePolicy(policy or settings.OVERTIME_POLICY)


def activity_hours(activity: dict[str, Any]) -> Decimal:
    """
    Worked hours of a QuickBooks TimeActivity, rounded to the cent.
    Uses Hours/Minutes, or StartTime/EndTime minus the break when no Hours are given.
    """
    try:
        if activity.get("Hours") is not None or activity.get("Minutes") is not None:
            hours = Decimal(str(activity.get("Hours") or 0)) + Decimal(str(activity.get("Minutes") or 0)) / 60
        elif activity.get("StartTime") and activity.get("EndTime"):
            start = datetime.fromisoformat(activity["StartTime"])
            end = datetime.fromisoformat(activity["EndTime"])
            worked = Decimal(str((end - start).total_seconds())) / 3600
            breaks = (
                Decimal(str(activity.get("BreakHours") or 0))
                + Decimal(str(activity.get("BreakMinutes") or 0)) / 60
            )
            hours = worked - breaks
        else:
            hours = _ZERO
        return hours.quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidTimeRecordError(
            f"Time activity {activity.get('Id')} on {activity.get('TxnDate')} has unreadable hours"
        )


@dataclass
class EntryDraft:
    """Everything a TimeEntry needs except its classification."""
    employee_id: uuid.UUID
    date: date
    hours: Decimal
    source: str = "quickbooks"
    qb_employee_id: str | None = None
    qb_time_activity_id: str | None = None
    description: str | None = None
    hourly_rate: Decimal | None = None
    billable: bool = False
    customer_id: str | None = None
    regular_hours: Decimal = _ZERO
    overtime_hours: Decimal = _ZERO

    @classmethod
    def from_entry(cls, entry: TimeEntry) -> "EntryDraft":
        return cls(
            employee_id=entry.employee_id,
            date=entry.date,
            hours=Decimal(entry.hours),
            source=entry.source,
            qb_employee_id=entry.qb_employee_id,
            qb_time_activity_id=entry.qb_time_activity_id,
            description=entry.description,
            hourly_rate=entry.hourly_rate,
            billable=entry.billable,
            customer_id=entry.customer_id,
        )


@dataclass
class EmployeeTotals:
    name: str
    regular: Decimal = _ZERO
    overtime: Decimal = _ZERO
    total: Decimal = _ZERO


@dataclass
class ImportSummary:
    imported: int = 0
    total_hours: Decimal = _ZERO
    regular_hours: Decimal = _ZERO
    overtime_hours: Decimal = _ZERO
    by_employee: dict[str, EmployeeTotals] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "total_hours": self.total_hours,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "by_employee": {
                key: {"name": t.name, "regular": t.regular, "overtime": t.overtime, "total": t.total}
                for key, t in self.by_employee.items()
            },
        }


def classify_drafts(
    drafts: list[EntryDraft],
    policy: OvertimePolicy,
    prior_hours: dict[uuid.UUID, dict[date, Decimal]] | None = None,
) -> list[EntryDraft]:
    """Classify drafts per employee. Returns new drafts in the same order."""
    by_employee: dict[uuid.UUID, list[int]] = defaultdict(list)
    for index, draft in enumerate(drafts):
        by_employee[draft.employee_id].append(index)

    classified: list[EntryDraft | None] = [None] * len(drafts)
    for employee_id, indexes in by_employee.items():
        results = classify_hours(
            [(drafts[i].date, drafts[i].hours) for i in indexes],
            policy,
            weekly_threshold=settings.OVERTIME_WEEKLY_THRESHOLD,
            daily_threshold=settings.OVERTIME_DAILY_THRESHOLD,
            prior_hours=(prior_hours or {}).get(employee_id),
        )
        for i, result in zip(indexes, results):
            classified[i] = replace(
                drafts[i],
                regular_hours=result.regular_hours,
                overtime_hours=result.overtime_hours,
            )
    return classified  # type: ignore[return-value]


class TimeImportService:

    def __init__(self, db: AsyncSession, client: QuickBooksClient | None = None):
        self.db = db
        self.client = client

    async def _employees_by_qb_id(self, tenant_id: uuid.UUID) -> dict[str, Employee]:
        result = await self.db.execute(
            select(Employee).where(
                Employee.tenant_id == tenant_id,
                Employee.qb_employee_id.is_not(None),
            )
        )
        return {e.qb_employee_id: e for e in result.scalars().all()}

    async def _employee_names(self, tenant_id: uuid.UUID) -> dict[uuid.UUID, str]:
        result = await self.db.execute(
            select(Employee.id, Employee.display_name).where(Employee.tenant_id == tenant_id)
        )
        return {row.id: row.display_name for row in result.all()}

    async def _prior_week_hours(
        self,
        tenant_id: uuid.UUID,
        pay_period: PayPeriod,
        employee_ids: set[uuid.UUID],
        source: str | None = None,
    ) -> dict[uuid.UUID, dict[date, Decimal]]:
        """Stored hours from other pay periods in the week the period starts in."""
        first_week = week_start(pay_period.start_date)
        if first_week == pay_period.start_date or not employee_ids:
            return {}
        query = select(TimeEntry).where(
            TimeEntry.tenant_id == tenant_id,
            TimeEntry.employee_id.in_(employee_ids),
            TimeEntry.date >= first_week,
            TimeEntry.date < pay_period.start_date,
            TimeEntry.pay_period_id != pay_period.id,
        )
        if source is not None:
            query = query.where(TimeEntry.source == source)
        result = await self.db.execute(query)
        prior: dict[uuid.UUID, dict[date, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
        for entry in result.scalars().all():
            prior[entry.employee_id][first_week] += Decimal(entry.hours)
        return prior

    async def _replace_entries(
        self,
        tenant_id: uuid.UUID,
        pay_period: PayPeriod,
        drafts: list[EntryDraft],
        names: dict[uuid.UUID, str],
    ) -> ImportSummary:
        activity_ids = [d.qb_time_activity_id for d in drafts if d.qb_time_activity_id]
        await self.db.execute(
            delete(TimeEntry).where(
                TimeEntry.tenant_id == tenant_id,
                TimeEntry.pay_period_id == pay_period.id,
            )
        )
        if activity_ids:
            # an activity can only live in one pay period
            moved_from = (await self.db.execute(
                select(TimeEntry.pay_period_id).distinct().where(
                    TimeEntry.tenant_id == tenant_id,
                    TimeEntry.qb_time_activity_id.in_(activity_ids),
                    TimeEntry.pay_period_id != pay_period.id,
                )
            )).scalars().all()
            for other_id in moved_from:
                logger.warning(
                    "Time activities of pay period %s move to overlapping pay period %s; reclassify %s",
                    other_id, pay_period.id, other_id,
                )
            await self.db.execute(
                delete(TimeEntry).where(
                    TimeEntry.tenant_id == tenant_id,
                    TimeEntry.qb_time_activity_id.in_(activity_ids),
                )
            )

        summary = ImportSummary()
        for draft in drafts:
            self.db.add(TimeEntry(
                tenant_id=tenant_id,
                pay_period_id=pay_period.id,
                employee_id=draft.employee_id,
                qb_employee_id=draft.qb_employee_id,
                qb_time_activity_id=draft.qb_time_activity_id,
                date=draft.date,
                hours=draft.hours,
                regular_hours=draft.regular_hours,
                overtime_hours=draft.overtime_hours,
                source=draft.source,
                description=draft.description,
                hourly_rate=draft.hourly_rate,
                billable=draft.billable,
                customer_id=draft.customer_id,
            ))
            summary.imported += 1
            summary.total_hours += draft.hours
            summary.regular_hours += draft.regular_hours
            summary.overtime_hours += draft.overtime_hours

            totals = summary.by_employee.setdefault(
                str(draft.employee_id),
                EmployeeTotals(name=names.get(draft.employee_id, "")),
            )
            totals.total += draft.hours
            totals.regular += draft.regular_hours
            totals.overtime += draft.overtime_hours

        await self.db.flush()
        return summary

    async def import_pay_period(
        self,
        tenant_id: uuid.UUID,
        pay_period: PayPeriod,
        connection: QuickBooksConnection,
        policy: OvertimePolicy | str | None = None,
    ) -> ImportSummary:
        """
        Imports QuickBooks time activities for the pay period. Manual entries
        of the period are kept and classified together with the imported ones.
        Raises InvalidTimeRecordError on bad hours or dates. Does NOT commit.
        """
        if self.client is None:
            raise RuntimeError("TimeImportService needs a QuickBooksClient to import")
        policy = resolve_policy(policy)

        # Fetch from the Sunday the first week starts on so the weekly running
        # total already holds the days before the period.
        fetch_from = week_start(pay_period.start_date)
        activities = await self.client.fetch_time_activities(
            connection.realm_id, connection.access_token, fetch_from, pay_period.end_date
        )
        employees = await self._employees_by_qb_id(tenant_id)
        logger.info(
            "Importing %d time activities for pay period %s..%s (%s policy, %d employees)",
            len(activities), pay_period.start_date, pay_period.end_date, policy.value, len(employees),
        )

        drafts: list[EntryDraft] = []
        seen_ids: set[str] = set()
        for activity in activities:
            qb_employee_id = (activity.get("EmployeeRef") or {}).get("value")
            if not qb_employee_id:
                logger.warning("Time activity %s has no employee reference", activity.get("Id"))
                continue
            employee = employees.get(str(qb_employee_id))
            if employee is None:
                logger.warning("Employee not found for QuickBooks id %s", qb_employee_id)
                continue
            activity_id = str(activity["Id"]) if activity.get("Id") is not None else None
            if activity_id is not None:
                if activity_id in seen_ids:
                    continue
                seen_ids.add(activity_id)

            try:
                txn_date = date.fromisoformat(str(activity.get("TxnDate"))[:10])
            except ValueError:
                raise InvalidTimeRecordError(
                    f"Time activity {activity_id} has a malformed date: {activity.get('TxnDate')!r}"
                )
            rate = activity.get("HourlyRate")
            drafts.append(EntryDraft(
                employee_id=employee.id,
                date=txn_date,
                hours=activity_hours(activity),
                qb_employee_id=str(qb_employee_id),
                qb_time_activity_id=activity_id,
                description=activity.get("Description") or None,
                hourly_rate=Decimal(str(rate)) if rate else None,
                billable=activity.get("BillableStatus") == "Billable" or bool(activity.get("Billable")),
                customer_id=(activity.get("CustomerRef") or {}).get("value"),
            ))

        manual_result = await self.db.execute(
            select(TimeEntry).where(
                TimeEntry.tenant_id == tenant_id,
                TimeEntry.pay_period_id == pay_period.id,
                TimeEntry.source == "manual",
            )
        )
        drafts.extend(EntryDraft.from_entry(e) for e in manual_result.scalars().all())

        # QuickBooks time before the period start is in `drafts` already; manual
        # hours stored in other pay periods for those days only live here.
        prior = {}
        if policy is OvertimePolicy.WEEKLY:
            prior = await self._prior_week_hours(
                tenant_id, pay_period, {d.employee_id for d in drafts}, source="manual"
            )
        classified = classify_drafts(drafts, policy, prior)
        in_period = [d for d in classified if pay_period.contains(d.date)]

        summary = await self._replace_entries(
            tenant_id, pay_period, in_period, await self._employee_names(tenant_id)
        )
        connection.last_sync_at = datetime.now(timezone.utc)
        logger.info(
            "Imported %d time entries: %sh (%sh regular, %sh overtime)",
            summary.imported, summary.total_hours, summary.regular_hours, summary.overtime_hours,
        )
        return summary

    async def reclassify_pay_period(
        self,
        tenant_id: uuid.UUID,
        pay_period: PayPeriod,
        policy: OvertimePolicy | str | None = None,
        extra: list[EntryDraft] | None = None,
    ) -> ImportSummary:
        """
        Recreates all entries of the pay period (plus `extra` new drafts) with
        a fresh classification. Hours stored for the same week in an earlier
        pay period count towards the weekly threshold. Does NOT commit.
        """
        policy = resolve_policy(policy)
        result = await self.db.execute(
            select(TimeEntry).where(
                TimeEntry.tenant_id == tenant_id,
                TimeEntry.pay_period_id == pay_period.id,
            ).order_by(TimeEntry.date, TimeEntry.created_at)
        )
        drafts = [EntryDraft.from_entry(e) for e in result.scalars().all()]
        drafts.extend(extra or [])

        for draft in drafts:
            if not pay_period.contains(draft.date):
                raise InvalidTimeRecordError(
                    f"{draft.date.isoformat()} is outside the pay period "
                    f"{pay_period.start_date.isoformat()}..{pay_period.end_date.isoformat()}"
                )

        prior = {}
        if policy is OvertimePolicy.WEEKLY:
            prior = await self._prior_week_hours(tenant_id, pay_period, {d.employee_id for d in drafts})
        classified = classify_drafts(drafts, policy, prior)
        summary = await self._replace_entries(
            tenant_id, pay_period, classified, await self._employee_names(tenant_id)
        )
        logger.info(
            "Reclassified pay period %s with %s policy: %d entries", pay_period.id, policy.value, summary.imported
        )
        return summary
