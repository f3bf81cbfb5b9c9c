"""
Overtime classification: splits worked hours into regular and overtime.

Two policies are supported:

  weekly  Hours beyond WEEKLY threshold (40h) within a Sunday-to-Saturday week
          are overtime. The day that crosses the threshold is split.
  daily   Hours beyond the DAILY threshold (8h) on a single day are overtime.

All arithmetic is done in Decimal so that regular + overtime always equals the
input hours exactly. The functions here do no I/O.
"""
from __future__ import annotations

import enum
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Mapping

MAX_HOURS_PER_DAY = Decimal("24")
DEFAULT_WEEKLY_THRESHOLD = Decimal("40")
DEFAULT_DAILY_THRESHOLD = Decimal("8")

_ZERO = Decimal("0")


class OvertimePolicy(str, enum.Enum):
    WEEKLY = "weekly"
    DAILY = "daily"


class InvalidTimeRecordError(ValueError):
    """Raised for hours or dates that cannot be classified."""


@dataclass(frozen=True)
class TimeRecord:
    date: date
    hours: Decimal


@dataclass(frozen=True)
class ClassifiedHours:
    date: date
    regular_hours: Decimal
    overtime_hours: Decimal

    @property
    def hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours


def week_start(day: date) -> date:
    """Sunday on or before the given day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise InvalidTimeRecordError(f"Malformed date: {value!r}")
    raise InvalidTimeRecordError(f"Malformed date: {value!r}")


def _to_hours(value, day: date) -> Decimal:
    if isinstance(value, bool):
        raise InvalidTimeRecordError(f"Hours for {day.isoformat()} must be a number, got {value!r}")
    try:
        # str() first so 7.1 stays 7.1 and does not become 7.0999...
        hours = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidTimeRecordError(f"Hours for {day.isoformat()} must be a number, got {value!r}")
    if not hours.is_finite():
        raise InvalidTimeRecordError(f"Hours for {day.isoformat()} must be finite, got {value!r}")
    if hours < _ZERO:
        raise InvalidTimeRecordError(f"Negative hours on {day.isoformat()}: {hours}")
    if hours > MAX_HOURS_PER_DAY:
        raise InvalidTimeRecordError(f"More than 24 hours on {day.isoformat()}: {hours}")
    return hours


def normalize_records(records: Iterable) -> list[TimeRecord]:
    """
    Validate (date, hours) pairs or objects with .date/.hours attributes.

    Also rejects a calendar day whose summed hours exceed 24.
    """
    normalized: list[TimeRecord] = []
    for record in records:
        if isinstance(record, TimeRecord):
            raw_date, raw_hours = record.date, record.hours
        elif isinstance(record, (tuple, list)):
            if len(record) != 2:
                raise InvalidTimeRecordError(f"Expected (date, hours), got {record!r}")
            raw_date, raw_hours = record
        else:
            raw_date, raw_hours = record.date, record.hours
        day = _to_date(raw_date)
        normalized.append(TimeRecord(date=day, hours=_to_hours(raw_hours, day)))

    totals: dict[date, Decimal] = defaultdict(Decimal)
    for record in normalized:
        totals[record.date] += record.hours
    for day, total in totals.items():
        if total > MAX_HOURS_PER_DAY:
            raise InvalidTimeRecordError(f"More than 24 hours recorded on {day.isoformat()}: {total}")
    return normalized


def _classify_weekly(
    day_totals: Mapping[date, Decimal],
    threshold: Decimal,
    prior_hours: Mapping[date, Decimal],
) -> dict[date, Decimal]:
    """Returns the regular hours per day; the rest of each day is overtime."""
    regular: dict[date, Decimal] = {}
    running: dict[date, Decimal] = {}
    for day in sorted(day_totals):
        week = week_start(day)
        seen = running.get(week)
        if seen is None:
            seen = Decimal(str(prior_hours.get(week, _ZERO)))
        hours = day_totals[day]
        if seen >= threshold:
            regular[day] = _ZERO
        elif seen + hours > threshold:
            regular[day] = threshold - seen
        else:
            regular[day] = hours
        running[week] = seen + hours
    return regular


def _classify_daily(day_totals: Mapping[date, Decimal], threshold: Decimal) -> dict[date, Decimal]:
    return {day: min(hours, threshold) for day, hours in day_totals.items()}


def classify_hours(
    records: Iterable,
    policy: OvertimePolicy | str = OvertimePolicy.WEEKLY,
    *,
    weekly_threshold=DEFAULT_WEEKLY_THRESHOLD,
    daily_threshold=DEFAULT_DAILY_THRESHOLD,
    prior_hours: Mapping[date, Decimal] | None = None,
) -> list[ClassifiedHours]:
    """
    Classify one worker's hours.

    records      (date, hours) pairs or objects with .date and .hours; dates
                 may be ISO strings. Order is free, the result keeps it.
    policy       OvertimePolicy.WEEKLY or OvertimePolicy.DAILY.
    prior_hours  Hours already worked per week (keyed by the Sunday that starts
                 the week) before the first record passed in. Weekly policy only.

    Records on the same day are summed and classified as one day. The day's
    regular hours go to that day's records in input order, the remainder of
    each record is overtime.
    """
    policy = OvertimePolicy(policy)
    normalized = normalize_records(records)

    day_totals: dict[date, Decimal] = defaultdict(Decimal)
    for record in normalized:
        day_totals[record.date] += record.hours

    if policy is OvertimePolicy.WEEKLY:
        regular_by_day = _classify_weekly(
            day_totals, Decimal(str(weekly_threshold)), prior_hours or {}
        )
    else:
        regular_by_day = _classify_daily(day_totals, Decimal(str(daily_threshold)))

    result: list[ClassifiedHours] = []
    for record in normalized:
        available = regular_by_day[record.date]
        regular = min(record.hours, available)
        regular_by_day[record.date] = available - regular
        result.append(ClassifiedHours(
            date=record.date,
            regular_hours=regular,
            overtime_hours=record.hours - regular,
        ))
    return result

