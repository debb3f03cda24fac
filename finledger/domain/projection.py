"""Pure functions for payday-based net worth projections.

Income arrives in discrete deposits on a recurring day of month while
spending drains net worth continuously between deposits. Each pay cycle
therefore yields two points: one just before payday and one on payday, so a
plan can be compared against actual values at the right moments.
"""

import math
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import StrEnum

from finledger.dates import AVERAGE_DAYS_PER_MONTH, add_months, resolve_income_date
from finledger.domain.amounts import parse_amount, parse_iso_date
from finledger.domain.history import HistoryPoint
from finledger.domain.planning import PlanningMetrics
from finledger.domain.records import ProjectionEntry

MAX_PAY_CYCLES = 240
MAX_MONTHS_AHEAD = 120
DEFAULT_MONTHS_AHEAD = 3
ON_TRACK_TOLERANCE = 1.0


class PointKind(StrEnum):
    """Role of a point in the projection."""

    START = "start"
    BEFORE_INCOME = "before_income"
    PAYDAY = "payday"
    END = "end"


@dataclass(frozen=True)
class ProjectionPoint:
    """Immutable projected net worth on a date."""

    date: date
    value: float
    kind: PointKind
    with_extra: float | None = None


@dataclass(frozen=True)
class ActualPoint:
    """Immutable observed net worth on a date."""

    date: date
    value: float


class PlanStatus(StrEnum):
    """Actual net worth relative to the plan."""

    AHEAD = "ahead"
    BEHIND = "behind"
    ON_TRACK = "on_track"


@dataclass(frozen=True)
class PlanComparison:
    """Immutable plan-vs-actual comparison."""

    actual: float
    planned: float
    difference: float
    status: PlanStatus
    compared_on: date


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def normalize_income_day(day: int | float | str) -> int:
    """Parse an income day, defaulting to 1 outside 1-31."""
    value = parse_amount(day) if isinstance(day, str) else _finite(float(day))
    if value < 1 or value > 31:
        return 1
    return math.floor(value)


def planned_monthly_spend(monthly_income: float, monthly_saving_target: float) -> float:
    """Spending allowed by the plan: income not set aside for the goal."""
    return max(monthly_income - monthly_saving_target, 0.0)


def plan_months_ahead(metrics: PlanningMetrics, today: date) -> int:
    """Number of months the projection should cover.

    Uses the larger of the plan duration and the months until the completion
    date (both rounded up), falling back to 3 and capped at 120.
    """
    duration = math.ceil(metrics.plan_duration_months) if math.isfinite(metrics.plan_duration_months) else 0

    from_date = 0
    completion = metrics.planned_completion_date
    if completion is not None and completion > today:
        from_date = math.ceil((completion - today).days / AVERAGE_DAYS_PER_MONTH)

    months = max(duration, from_date)
    if months <= 0:
        return DEFAULT_MONTHS_AHEAD
    return min(MAX_MONTHS_AHEAD, months)


def build_payday_series(
    net_worth: float,
    monthly_income: float,
    monthly_spend: float,
    months_ahead: float,
    income_day: int | float | str,
    planned_completion: date | None,
    today: date,
) -> list[ProjectionPoint]:
    """Build a payday-anchored projection of net worth.

    Args:
        net_worth: Current net worth (the starting value).
        monthly_income: Income deposited on each payday.
        monthly_spend: Spending drained across each pay cycle.
        months_ahead: Horizon in months when no completion date applies.
        income_day: Configured income day of month.
        planned_completion: Explicit end date, if any.
        today: Start date.

    Returns:
        Points in date order: the start point, then a before-income and a
        payday point per full cycle, then a final partial point on the end
        date. Values are rounded to cents.
    """
    base = _finite(net_worth)
    income = max(0.0, _finite(monthly_income))
    spend = max(0.0, _finite(monthly_spend))
    day = normalize_income_day(income_day)

    months = max(1, math.ceil(months_ahead) if math.isfinite(months_ahead) else 1)
    end_date = planned_completion if planned_completion is not None else add_months(today, months)
    if end_date <= today:
        end_date = add_months(today, months)

    points = [ProjectionPoint(date=today, value=round(base, 2), kind=PointKind.START)]

    current = base
    cycle_start = today
    cycle = 1

    while cycle_start < end_date and cycle <= MAX_PAY_CYCLES:
        payday = resolve_income_date(today, day, cycle)
        cycle_days = max(1, (payday - cycle_start).days)

        if payday >= end_date:
            elapsed_days = max(0, (end_date - cycle_start).days)
            spent = min(spend, spend / cycle_days * elapsed_days)
            points.append(ProjectionPoint(date=end_date, value=round(current - spent, 2), kind=PointKind.END))
            break

        before_income = current - spend
        day_before = payday - timedelta(days=1)
        if day_before > cycle_start:
            points.append(
                ProjectionPoint(date=day_before, value=round(before_income, 2), kind=PointKind.BEFORE_INCOME)
            )

        current = before_income + income
        points.append(ProjectionPoint(date=payday, value=round(current, 2), kind=PointKind.PAYDAY))

        cycle_start = payday
        cycle += 1

    return points


def projected_amount(entry: ProjectionEntry, weighted: bool) -> float:
    """Amount a projection contributes, optionally weighted by probability."""
    amount = parse_amount(entry.amount)
    if amount <= 0:
        return 0.0
    if not weighted:
        return amount
    return amount * min(max(entry.probability, 0.0), 100.0) * 0.01


def overlay_projected_income(
    series: list[ProjectionPoint],
    projections: tuple[ProjectionEntry, ...],
    weighted: bool = True,
) -> list[ProjectionPoint]:
    """Add projected extra income on top of a projection.

    Each projection is credited from the first point dated on or after its
    expected date (the last point when it falls beyond the series) and stays
    included in every later point.

    Returns:
        Copy of the series with with_extra filled in.
    """
    if not series:
        return []

    extras = [0.0] * len(series)
    for entry in projections:
        expected = parse_iso_date(entry.date)
        amount = projected_amount(entry, weighted)
        if expected is None or amount <= 0:
            continue

        index = next((i for i, point in enumerate(series) if expected <= point.date), len(series) - 1)
        extras[index] += amount

    running = 0.0
    overlaid: list[ProjectionPoint] = []
    for point, extra in zip(series, extras, strict=True):
        running += extra
        overlaid.append(replace(point, with_extra=round(point.value + running, 2)))
    return overlaid


def actual_points_from_history(
    plan_history: tuple[HistoryPoint, ...],
    net_worth: float,
    today: date,
) -> list[ActualPoint]:
    """Turn the net worth history into dated actual points.

    Falls back to a single point for the current net worth when the history
    holds no usable point.
    """
    points = [
        ActualPoint(date=parsed, value=point.value)
        for point in plan_history
        if (parsed := parse_iso_date(point.captured_at)) is not None
    ]
    return points or [ActualPoint(date=today, value=net_worth)]


def compare_plan_to_actual(
    series: list[ProjectionPoint],
    actual: list[ActualPoint],
    tolerance: float = ON_TRACK_TOLERANCE,
) -> PlanComparison | None:
    """Compare the latest actual value with the plan at the same moment.

    The plan value is the first projection point dated on or after the latest
    actual point, or the last projection point.

    Returns:
        PlanComparison, or None when either side is empty.
    """
    if not series or not actual:
        return None

    latest = actual[-1]
    planned = next((point for point in series if point.date >= latest.date), series[-1])
    difference = latest.value - planned.value

    if abs(difference) < tolerance:
        status = PlanStatus.ON_TRACK
    elif difference > 0:
        status = PlanStatus.AHEAD
    else:
        status = PlanStatus.BEHIND

    return PlanComparison(
        actual=latest.value,
        planned=planned.value,
        difference=difference,
        status=status,
        compared_on=planned.date,
    )
