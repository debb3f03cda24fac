"""Date utilities for finledger.

Pure functions for month arithmetic, payday resolution and month ranges.
"""

import calendar
import math
from datetime import date, datetime, timedelta

from finledger.domain.models import Month

AVERAGE_DAYS_PER_MONTH = 30.4375


def month_range(month: Month) -> tuple[str, str, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (since_date, until_date, label) where:
        - since_date: First day of month (YYYY-MM-DD)
        - until_date: First day of next month (YYYY-MM-DD)
        - label: Human-readable month (e.g., "January 2025")
    """
    dt = datetime.strptime(month, "%Y-%m")
    since = dt.strftime("%Y-%m-01")
    next_month = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    until = next_month.strftime("%Y-%m-%d")
    label = dt.strftime("%B %Y")
    return since, until, label


def previous_month(month: Month) -> Month:
    """Return the month before the given one."""
    dt = datetime.strptime(month, "%Y-%m")
    last_of_previous = dt.replace(day=1) - timedelta(days=1)
    return Month(last_of_previous.strftime("%Y-%m"))


def clamp_day_for_month(year: int, month: int, day: int) -> int:
    """Clamp a day of month to the length of a specific month.

    Args:
        year: Calendar year.
        month: Month number (1-12).
        day: Requested day of month.

    Returns:
        Day between 1 and the last day of that month (e.g., 31 -> 30 in April).
    """
    last_day = calendar.monthrange(year, month)[1]
    return max(1, min(day, last_day))


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Shift a (year, month) pair by a number of months."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def add_months(start: date, months: int) -> date:
    """Add whole months, clamping the day to the target month's length."""
    year, month = shift_month(start.year, start.month, months)
    return date(year, month, clamp_day_for_month(year, month, start.day))


def add_fractional_months(start: date, months: float) -> date:
    """Add an average-length month span, rounding to whole days (half up).

    The result is clamped to the representable date range, so huge or
    infinite spans end on date.max (or date.min going backwards).
    """
    days = months * AVERAGE_DAYS_PER_MONTH + 0.5
    if math.isnan(days):
        return start
    days = min(max(days, -(start - date.min).days), (date.max - start).days)
    return start + timedelta(days=math.floor(days))



def months_between(start: date, end: date) -> float:
    """Measure the span between two dates in average-length months."""
    return (end - start).days / AVERAGE_DAYS_PER_MONTH


def resolve_income_date(start: date, day: int, offset: int) -> date:
    """Resolve the Nth payday on or after a start date.

    The first payday is in the start month when the start day has not passed
    the (clamped) income day, otherwise in the next month. Later paydays step
    month by month from the first one; the day is clamped per month, never
    skipped.

    Args:
        start: Start date.
        day: Configured income day of month.
        offset: 1 for the first payday, 2 for the second, ...

    Returns:
        Payday date.
    """
    if start.day <= clamp_day_for_month(start.year, start.month, day):
        first_year, first_month = start.year, start.month
    else:
        first_year, first_month = shift_month(start.year, start.month, 1)

    year, month = shift_month(first_year, first_month, max(offset, 1) - 1)
    return date(year, month, clamp_day_for_month(year, month, day))
