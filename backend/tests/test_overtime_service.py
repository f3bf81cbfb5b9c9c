"""
Tests for the overtime classifier – weekly and daily policy, same-day records,
prior-week context and input validation.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.services.overtime_service import (
    ClassifiedHours,
    InvalidTimeRecordError,
    OvertimePolicy,
    TimeRecord,
    classify_hours,
    week_start,
)

D = Decimal
MON = date(2025, 10, 6)  # Monday; the week starts Sunday 2025-10-05


def days(start: date, *hours):
    return [(start + timedelta(days=i), h) for i, h in enumerate(hours)]


def totals(results: list[ClassifiedHours]) -> tuple[Decimal, Decimal]:
    return sum((r.regular_hours for r in results), D(0)), sum((r.overtime_hours for r in results), D(0))


# ── week_start ────────────────────────────────────────────────────────────────

def test_week_start_is_sunday():
    assert week_start(date(2025, 10, 5)) == date(2025, 10, 5)   # Sunday
    assert week_start(date(2025, 10, 6)) == date(2025, 10, 5)   # Monday
    assert week_start(date(2025, 10, 11)) == date(2025, 10, 5)  # Saturday
    assert week_start(date(2025, 10, 12)) == date(2025, 10, 12)


# ── Weekly policy ─────────────────────────────────────────────────────────────

def test_weekly_example_friday_is_split():
    """Mon–Thu 8h, Fri 10h → 40 regular, 2 overtime on Friday."""
    results = classify_hours(days(MON, 8, 8, 8, 8, 10), OvertimePolicy.WEEKLY)

    assert [r.regular_hours for r in results] == [8, 8, 8, 8, 8]
    assert [r.overtime_hours for r in results] == [0, 0, 0, 0, 2]
    assert totals(results) == (D(40), D(2))


def test_weekly_under_threshold_all_regular():
    results = classify_hours(days(MON, 8, 8, 8, 8, 7.5))
    assert all(r.overtime_hours == 0 for r in results)
    assert totals(results) == (D("39.5"), D(0))


def test_weekly_exactly_forty_is_regular():
    results = classify_hours(days(MON, 10, 10, 10, 10))
    assert totals(results) == (D(40), D(0))


def test_weekly_days_after_threshold_are_fully_overtime():
    results = classify_hours(days(MON, 12, 12, 12, 12, 6))
    assert [r.overtime_hours for r in results] == [0, 0, 0, 8, 6]
    assert [r.regular_hours for r in results] == [12, 12, 12, 4, 0]


def test_weekly_overtime_equals_total_minus_threshold():
    hours = [9.25, 11, 7.75, 10.5, 8, 6.3]
    results = classify_hours(days(MON, *hours))
    week_total = sum(D(str(h)) for h in hours)
    _, overtime = totals(results)
    assert overtime == max(D(0), week_total - 40)


def test_weekly_running_total_resets_each_week():
    # Sunday 2025-10-05 .. Saturday 2025-10-18: two weeks of 6 × 8h
    records = days(date(2025, 10, 5), *([8] * 6 + [0] + [8] * 6 + [0]))
    results = classify_hours(records)

    first_week, second_week = results[:7], results[7:]
    assert totals(first_week) == (D(40), D(8))
    assert totals(second_week) == (D(40), D(8))


def test_weekly_unordered_input_keeps_order():
    ordered = days(MON, 8, 8, 8, 8, 10)
    shuffled = [ordered[4], ordered[0], ordered[2], ordered[1], ordered[3]]

    results = classify_hours(shuffled)

    assert [r.date for r in results] == [d for d, _ in shuffled]
    assert results[0].overtime_hours == 2  # Friday is still the day that crosses 40


def test_weekly_custom_threshold():
    results = classify_hours(days(MON, 8, 8, 8, 8, 8), weekly_threshold=37.5)
    assert totals(results) == (D("37.5"), D("2.5"))


def test_weekly_prior_hours_count_towards_threshold():
    """36h already worked earlier in the week → only 4 more hours are regular."""
    results = classify_hours(
        [(date(2025, 10, 10), 8)],
        prior_hours={date(2025, 10, 5): D(36)},
    )
    assert results[0].regular_hours == 4
    assert results[0].overtime_hours == 4


def test_weekly_prior_hours_over_threshold_all_overtime():
    results = classify_hours(
        [(date(2025, 10, 10), 5)],
        prior_hours={date(2025, 10, 5): D(41)},
    )
    assert results[0] == ClassifiedHours(date(2025, 10, 10), D(0), D(5))


def test_weekly_prior_hours_for_other_week_are_ignored():
    results = classify_hours(
        [(date(2025, 10, 13), 8)],
        prior_hours={date(2025, 10, 5): D(50)},
    )
    assert results[0].overtime_hours == 0


# ── Daily policy ──────────────────────────────────────────────────────────────

def test_daily_example():
    results = classify_hours([(MON, 10)], OvertimePolicy.DAILY)
    assert results[0].regular_hours == 8
    assert results[0].overtime_hours == 2


@pytest.mark.parametrize("hours", ["0", "4", "8", "8.01", "12.5", "24"])
def test_daily_overtime_is_hours_over_eight(hours):
    h = D(hours)
    result = classify_hours([(MON, h)], "daily")[0]
    assert result.overtime_hours == max(D(0), h - 8)
    assert result.regular_hours == min(h, D(8))


def test_daily_ignores_weekly_total():
    results = classify_hours(days(MON, 9, 9, 9, 9, 9), OvertimePolicy.DAILY)
    assert totals(results) == (D(40), D(5))
    assert all(r.overtime_hours == 1 for r in results)


def test_daily_ignores_prior_hours():
    results = classify_hours(
        [(MON, 6)], OvertimePolicy.DAILY, prior_hours={week_start(MON): D(60)}
    )
    assert results[0].overtime_hours == 0


# ── Same-day records ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("policy", list(OvertimePolicy))
def test_same_day_records_classify_like_one_record(policy):
    split = classify_hours(days(MON, 8, 8, 8, 8) + [(MON + timedelta(days=4), 6), (MON + timedelta(days=4), 4)], policy)
    combined = classify_hours(days(MON, 8, 8, 8, 8, 10), policy)

    assert totals(split[4:]) == totals(combined[4:])
    assert totals(split) == totals(combined)


def test_same_day_regular_goes_to_first_record():
    results = classify_hours([(MON, 6), (MON, 4)], OvertimePolicy.DAILY)
    assert results[0] == ClassifiedHours(MON, D(6), D(0))
    assert results[1] == ClassifiedHours(MON, D(2), D(2))


def test_same_day_records_summed_for_daily_threshold():
    """Two 5h records on one day are 10h worked, not two days of 5h."""
    results = classify_hours([(MON, 5), (MON, 5)], OvertimePolicy.DAILY)
    assert totals(results) == (D(8), D(2))


# ── Invariants ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("policy", list(OvertimePolicy))
def test_regular_plus_overtime_equals_hours(policy):
    hours = ["7.33", "9.67", "12.01", "0", "10.1", "3.3", "11.11", "8", "6.5", "13"]
    records = days(date(2025, 10, 2), *hours)
    for (_, h), result in zip(records, classify_hours(records, policy)):
        assert result.regular_hours + result.overtime_hours == D(h)
        assert result.hours == D(h)


def test_float_hours_are_exact():
    result = classify_hours([(MON, 0.1), (MON, 0.2)], OvertimePolicy.DAILY)
    assert sum(r.hours for r in result) == D("0.3")


def test_zero_hours_are_regular():
    result = classify_hours([(MON, 0)])[0]
    assert result.regular_hours == 0
    assert result.overtime_hours == 0


@pytest.mark.parametrize("policy", list(OvertimePolicy))
def test_classification_is_idempotent(policy):
    records = days(MON, 9, 11, 8.5, 10, 7)
    assert classify_hours(records, policy) == classify_hours(records, policy)


def test_empty_input():
    assert classify_hours([]) == []


def test_accepts_time_records_and_iso_strings():
    results = classify_hours([TimeRecord(MON, D(9)), ("2025-10-07", "8.5")], OvertimePolicy.DAILY)
    assert results[0].overtime_hours == 1
    assert results[1].date == date(2025, 10, 7)
    assert results[1].regular_hours == 8


# ── Validation ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("hours", [-1, "-0.01", 24.5, "abc", None, float("nan"), float("inf"), True])
def test_invalid_hours_rejected(hours):
    with pytest.raises(InvalidTimeRecordError):
        classify_hours([(MON, hours)])


@pytest.mark.parametrize("day", ["2025-13-01", "not a date", 20251006, None])
def test_malformed_date_rejected(day):
    with pytest.raises(InvalidTimeRecordError):
        classify_hours([(day, 8)])


def test_day_total_over_24_rejected():
    with pytest.raises(InvalidTimeRecordError, match="More than 24 hours"):
        classify_hours([(MON, 16), (MON, 9)])


def test_invalid_record_shape_rejected():
    with pytest.raises(InvalidTimeRecordError):
        classify_hours([(MON, 8, "extra")])


def test_invalid_time_record_error_is_value_error():
    assert issubclass(InvalidTimeRecordError, ValueError)


def test_unknown_policy_rejected():
    with pytest.raises(ValueError):
        classify_hours([(MON, 8)], "monthly")
