"""
Occurrence date arithmetic for recurrence schedules.

Pure functions with no database access; the current day is always passed
in so the generator and its tests agree on what "today" means.

Stepping starts at max(start_date, today) and advances by the frequency
step while the date stays inside both the horizon and the schedule's
end date. Weekly schedules keep only dates on day_of_week when it is set,
monthly schedules only dates on day_of_month.

Usage:
    from recurring.scheduling import calculate_service_dates

    dates = calculate_service_dates(schedule, today=date(2025, 3, 3), horizon_days=30)
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

from django.utils import timezone

from recurring.models import Frequency

if TYPE_CHECKING:
    from collections.abc import Iterator

    from recurring.models import RecurrenceSchedule

DAY_STEPS = {
    Frequency.WEEKLY: 7,
    Frequency.BIWEEKLY: 14,
}

MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.BIMONTHLY: 2,
    Frequency.QUARTERLY: 3,
}


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of shorter months."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def weekday_number(day: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def iter_stepped_dates(frequency: str, first: date) -> Iterator[date]:
    """
    Endless sequence of candidate dates starting at first.

    Month steps are taken from first rather than from the previous date,
    so a schedule anchored on the 31st returns to the 31st after a short
    month.
    """
    if frequency in DAY_STEPS:
        step = timedelta(days=DAY_STEPS[frequency])
        current = first
        while True:
            yield current
            current += step
    elif frequency in MONTH_STEPS:
        months = MONTH_STEPS[frequency]
        n = 0
        while True:
            yield add_months(first, n * months)
            n += 1
    else:
        raise ValueError(f"Unknown frequency: {frequency}")


def matches_frequency(schedule: RecurrenceSchedule, day: date) -> bool:
    if schedule.frequency == Frequency.WEEKLY and schedule.day_of_week is not None:
        return weekday_number(day) == schedule.day_of_week
    if schedule.frequency == Frequency.MONTHLY and schedule.day_of_month is not None:
        return day.day == schedule.day_of_month
    return True


def calculate_service_dates(
    schedule: RecurrenceSchedule,
    today: date,
    horizon_days: int,
) -> list[date]:
    """
    Calendar days within [today, today + horizon_days] the schedule falls on.

    Args:
        schedule: Schedule to expand (only its rule fields are read)
        today: Current local date
        horizon_days: How far ahead to look

    Returns:
        Ascending list of dates, possibly empty
    """
    first = max(schedule.start_date, today)
    horizon = today + timedelta(days=horizon_days)

    dates = []
    for day in iter_stepped_dates(schedule.frequency, first):
        if day > horizon:
            break
        if schedule.end_date is not None and day > schedule.end_date:
            break
        if matches_frequency(schedule, day):
            dates.append(day)
    return dates


def occurrence_datetime(schedule: RecurrenceSchedule, day: date) -> datetime:
    """Aware datetime of the occurrence on day, in the active time zone."""
    return timezone.make_aware(datetime.combine(day, schedule.start_time))
