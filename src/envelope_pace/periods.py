# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Budgeting periods derived from a paycheck schedule.

A period runs from one payday (inclusive) to the day before the next
payday. Paydays are generated from the user's ``PaycheckPreferences``:

- ``weekly`` / ``biweekly``: every 7 / 14 days, anchored on ``next_payday``
  (both forwards and backwards in time).
- ``semimonthly``: two fixed days of every month.
- ``monthly``: one fixed day of every month, the day of ``next_payday``.

A day of month past the end of a short month clamps to that month's last
day, so a 31st payday falls on Feb 28 (or 29), Apr 30 and so on.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import TYPE_CHECKING

from envelope_pace.errors import InvalidScheduleError
from envelope_pace.types import PaycheckPreferences, Period

if TYPE_CHECKING:
    from envelope_pace.plans import PeriodPlanStore

FIXED_STEP_DAYS: dict[str, int] = {
    "weekly": 7,
    "biweekly": 14,
}

MONTHLY_FREQUENCIES = frozenset({"semimonthly", "monthly"})

# ─── Day arithmetic ───────────────────────────────────────────────────────────


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def day_in_period(start_date: date, today: date, period_length: int) -> int:
    """1-based day of the period ``today`` falls on, clamped to the period."""
    return max(1, min(days_between(start_date, today) + 1, period_length))


def period_end(start_date: date, period_length: int) -> date:
    """Last day (inclusive) of a period starting on ``start_date``."""
    return start_date + timedelta(days=period_length - 1)


def period_id(start_date: date, period_length: int) -> str:
    """
    Stable identifier for a period, e.g. ``"2026-10-18+14"``.

    Derived only from the period's dates so plans saved against an id
    reattach when the same periods are generated again.
    """
    return f"{start_date.isoformat()}+{period_length}"


def parse_period_id(value: str) -> tuple[date, int]:
    """
    Split a period id back into its start date and length.

    Raises InvalidScheduleError if ``value`` was not produced by ``period_id``.
    """
    start_text, separator, length_text = value.partition("+")
    if not separator or not length_text.isdigit():
        raise InvalidScheduleError(f"'{value}' is not a period id.")
    try:
        start_date = date.fromisoformat(start_text)
    except ValueError as exc:
        raise InvalidScheduleError(f"'{value}' is not a period id.") from exc
    length = int(length_text)
    if length < 1:
        raise InvalidScheduleError(f"'{value}' is not a period id.")
    return start_date, length


def _clamped_date(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


# ─── Schedule validation ──────────────────────────────────────────────────────


def _month_days(preferences: PaycheckPreferences) -> tuple[int, ...]:
    """Validated days of month for semimonthly and monthly schedules."""
    if preferences.paycheck_frequency == "monthly":
        return (preferences.next_payday.day,)

    pay_days = preferences.semi_monthly_pay_days
    if pay_days is None:
        raise InvalidScheduleError("Semi-monthly pay days are not configured.")
    if len(pay_days) != 2:
        raise InvalidScheduleError(
            f"Semi-monthly pay days must be a pair of days of month, got {list(pay_days)}."
        )
    for day in pay_days:
        if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 31:
            raise InvalidScheduleError(
                f"Semi-monthly pay day {day!r} is not a day of month between 1 and 31."
            )
    if pay_days[0] == pay_days[1]:
        raise InvalidScheduleError(
            f"Semi-monthly pay days must be two different days, got {pay_days[0]} twice."
        )
    return tuple(sorted(pay_days))


def validate_schedule(preferences: PaycheckPreferences) -> None:
    """Raise InvalidScheduleError if the preferences cannot produce periods."""
    frequency = preferences.paycheck_frequency
    if frequency in FIXED_STEP_DAYS:
        return
    if frequency in MONTHLY_FREQUENCIES:
        _month_days(preferences)
        return
    raise InvalidScheduleError(
        f"'{frequency}' is not a supported paycheck frequency. "
        f"Valid values: {sorted([*FIXED_STEP_DAYS, *MONTHLY_FREQUENCIES])}."
    )


# ─── Paydays ──────────────────────────────────────────────────────────────────


def _paydays_in_month(year: int, month: int, month_days: tuple[int, ...]) -> list[date]:
    # Clamping can fold two pay days onto the same date (30th and 31st in February).
    return sorted({_clamped_date(year, month, day) for day in month_days})


def payday_on_or_before(preferences: PaycheckPreferences, day: date) -> date:
    """The latest payday that is not after ``day``."""
    validate_schedule(preferences)
    frequency = preferences.paycheck_frequency

    if frequency in FIXED_STEP_DAYS:
        step = FIXED_STEP_DAYS[frequency]
        offset = days_between(preferences.next_payday, day)
        return preferences.next_payday + timedelta(days=(offset // step) * step)

    month_days = _month_days(preferences)
    candidates = [payday for payday in _paydays_in_month(day.year, day.month, month_days) if payday <= day]
    if candidates:
        return candidates[-1]
    year, month = _shift_month(day.year, day.month, -1)
    return _paydays_in_month(year, month, month_days)[-1]


def next_payday_after(preferences: PaycheckPreferences, day: date) -> date:
    """The earliest payday strictly after ``day``."""
    validate_schedule(preferences)
    frequency = preferences.paycheck_frequency

    if frequency in FIXED_STEP_DAYS:
        return payday_on_or_before(preferences, day) + timedelta(days=FIXED_STEP_DAYS[frequency])

    month_days = _month_days(preferences)
    candidates = [payday for payday in _paydays_in_month(day.year, day.month, month_days) if payday > day]
    if candidates:
        return candidates[0]
    year, month = _shift_month(day.year, day.month, 1)
    return _paydays_in_month(year, month, month_days)[0]


# ─── Periods ──────────────────────────────────────────────────────────────────


def _period_from(preferences: PaycheckPreferences, start_date: date) -> Period:
    end_date = next_payday_after(preferences, start_date) - timedelta(days=1)
    length = days_between(start_date, end_date) + 1
    return Period(
        id=period_id(start_date, length),
        start_date=start_date,
        end_date=end_date,
        period_length=length,
    )


def current_period(preferences: PaycheckPreferences, today: date) -> Period:
    """The schedule-derived period that contains ``today``."""
    period = _period_from(preferences, payday_on_or_before(preferences, today))
    return period.model_copy(update={"is_current": True, "is_planned": True})


def next_periods(
    preferences: PaycheckPreferences,
    today: date,
    count: int = 3,
    *,
    active: Period | None = None,
    plans: PeriodPlanStore | None = None,
) -> list[Period]:
    """
    Return the current period followed by ``count - 1`` upcoming periods.

    ``active`` is the period the budget was last rolled over into. When it
    contains ``today`` it is reported as the current period as-is (its
    envelopes are the live ones, so it always counts as planned), and the
    upcoming periods continue from the day after it ends. Otherwise the
    current period is the one the schedule places around ``today``.

    ``is_planned`` on upcoming periods reflects whether ``plans`` holds a
    saved plan under that period's id.

    Raises InvalidScheduleError for an unknown frequency, malformed
    semi-monthly pay days, or a count below 1.
    """
    if count < 1:
        raise InvalidScheduleError(f"At least one period must be requested, got {count}.")
    validate_schedule(preferences)

    if active is not None and active.contains(today):
        first = active.model_copy(update={"is_current": True, "is_planned": True})
    else:
        first = current_period(preferences, today)

    periods = [first]
    while len(periods) < count:
        upcoming = _period_from(preferences, periods[-1].end_date + timedelta(days=1))
        if plans is not None:
            upcoming.is_planned = plans.has_plan(upcoming.id)
        periods.append(upcoming)

    return periods
