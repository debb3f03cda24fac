"""Pure functions for spending insights and trends.

This module contains the functional core for reporting:
- No I/O operations (no database, no console, no files)
- No side effects
- Pure data transformations
- Easy to test
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from finledger.dates import month_range, previous_month
from finledger.domain.amounts import format_timestamp, parse_amount, parse_iso_date
from finledger.domain.history import Snapshot, sort_points
from finledger.domain.models import Month, Timestamp
from finledger.domain.records import EXPENSE_CATEGORIES, FALLBACK_CATEGORY, SpendingEntry

FLAT_TREND_PERCENT = 1.0


class Trend(StrEnum):
    """Direction of spending compared to last month."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


@dataclass(frozen=True)
class MonthlySpendingInsight:
    """Immutable month-over-month spending comparison."""

    current_month_total: float
    last_month_total: float
    difference: float
    percentage_change: float
    trend: Trend
    current_month_label: str
    last_month_label: str


@dataclass(frozen=True)
class CategoryShare:
    """Immutable share of the dominant spending category."""

    category: str
    total: float
    share: float


@dataclass(frozen=True)
class TrendPoint:
    """Immutable point of the net worth trend."""

    captured_at: Timestamp
    value: float


def calculate_percentage_change(current: float, previous: float) -> float:
    """Calculate percentage change against the previous value.

    Args:
        current: Current total.
        previous: Previous total.

    Returns:
        Percentage change; 100 when there was nothing before and something
        now, 0 when both are empty.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def classify_trend(percentage_change: float) -> Trend:
    """Classify a percentage change as up, down or flat."""
    if abs(percentage_change) < FLAT_TREND_PERCENT:
        return Trend.FLAT
    return Trend.UP if percentage_change > 0 else Trend.DOWN


def build_monthly_spending_insight(entries: tuple[SpendingEntry, ...], today: date) -> MonthlySpendingInsight:
    """Compare this month's spending with last month's.

    Args:
        entries: Spending ledger.
        today: Current date (decides the current month).

    Returns:
        MonthlySpendingInsight with totals and trend.
    """
    current_month = Month(today.strftime("%Y-%m"))
    last_month = previous_month(current_month)
    current_since, _, current_label = month_range(current_month)
    last_since, last_until, last_label = month_range(last_month)

    current_start = date.fromisoformat(current_since)
    last_start = date.fromisoformat(last_since)
    last_end = date.fromisoformat(last_until)

    current_total = 0.0
    last_total = 0.0
    for entry in entries:
        entry_date = parse_iso_date(entry.date)
        amount = parse_amount(entry.amount)
        if entry_date is None or amount <= 0:
            continue

        if entry_date >= current_start:
            current_total += amount
        elif last_start <= entry_date < last_end:
            last_total += amount

    percentage_change = calculate_percentage_change(current_total, last_total)

    return MonthlySpendingInsight(
        current_month_total=current_total,
        last_month_total=last_total,
        difference=current_total - last_total,
        percentage_change=percentage_change,
        trend=classify_trend(percentage_change),
        current_month_label=current_label,
        last_month_label=last_label,
    )


def build_category_share(entries: tuple[SpendingEntry, ...]) -> CategoryShare | None:
    """Find the category with the largest spending and its share.

    Returns:
        CategoryShare, or None when there is no positive spending.
    """
    totals: dict[str, float] = {}
    for entry in entries:
        amount = parse_amount(entry.amount)
        if amount <= 0:
            continue
        category = entry.category if entry.category in EXPENSE_CATEGORIES else FALLBACK_CATEGORY
        totals[category] = totals.get(category, 0.0) + amount

    grand_total = sum(totals.values())
    if grand_total <= 0:
        return None

    top_category = max(totals, key=lambda category: totals[category])
    return CategoryShare(category=top_category, total=totals[top_category], share=totals[top_category] / grand_total)


def build_net_worth_trend(snapshots: tuple[Snapshot, ...], net_worth: float, now: datetime) -> list[TrendPoint]:
    """Build the net worth trend from captured snapshots.

    Falls back to a single point for the current net worth when nothing has
    been captured yet.
    """
    if not snapshots:
        return [TrendPoint(captured_at=format_timestamp(now), value=net_worth)]

    return [TrendPoint(captured_at=snapshot.captured_at, value=snapshot.value) for snapshot in sort_points(snapshots)]


def calculate_trend_delta(trend: list[TrendPoint]) -> float:
    """Difference between the two most recent trend points."""
    if len(trend) < 2:
        return 0.0
    return trend[-1].value - trend[-2].value
