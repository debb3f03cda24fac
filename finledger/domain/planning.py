"""Pure functions for savings plan feasibility.

This module contains the functional core for planning:
- No I/O operations
- No side effects
- Metrics are always a complete snapshot recomputed from the inputs

All amounts are floats in the local currency.
"""

import math
from dataclasses import dataclass, replace
from datetime import date, timedelta
from enum import StrEnum

from finledger.dates import add_fractional_months, months_between
from finledger.domain.amounts import clamp_ratio, generate_id, parse_amount, parse_iso_date
from finledger.domain.models import FixedExpense, RawAmount, RecordId

DEFAULT_PLAN_MONTHS = 4.0
AVERAGE_WEEKS_PER_MONTH = 4.34524
GOAL_DATE_MAX_WEEKS = 2_000


class TargetMode(StrEnum):
    """How the plan horizon is expressed."""

    DURATION = "duration"
    DATE = "date"


@dataclass(frozen=True)
class PlanningInputs:
    """Immutable user-entered planning fields (raw text)."""

    goal: str = ""
    monthly_income: str = ""
    monthly_income_day: str = "1"
    expenses: tuple[FixedExpense, ...] = ()
    target_mode: TargetMode = TargetMode.DURATION
    target_duration_months: str = "4"
    target_date: str = ""


@dataclass(frozen=True)
class PlanHorizon:
    """Immutable resolved plan horizon."""

    months: float
    completion_date: date | None


@dataclass(frozen=True)
class PlanningMetrics:
    """Immutable feasibility metrics."""

    goal_value: float
    income_value: float
    fixed_total: float
    monthly_saving_target: float
    flexible_spending: float
    weekly_limit: float
    remaining_goal: float
    progress_to_goal: float
    weekly_spend: float
    weekly_progress: float
    plan_duration_months: float
    planned_completion_date: date | None
    monthly_shortfall: float
    shortfall_ratio: float
    plan_feasible: bool


EMPTY_METRICS = PlanningMetrics(
    goal_value=0.0,
    income_value=0.0,
    fixed_total=0.0,
    monthly_saving_target=0.0,
    flexible_spending=0.0,
    weekly_limit=0.0,
    remaining_goal=0.0,
    progress_to_goal=0.0,
    weekly_spend=0.0,
    weekly_progress=0.0,
    plan_duration_months=DEFAULT_PLAN_MONTHS,
    planned_completion_date=None,
    monthly_shortfall=0.0,
    shortfall_ratio=0.0,
    plan_feasible=True,
)


def create_fixed_expense(category: str = "", amount: str = "") -> FixedExpense:
    """Create a fixed expense with a fresh id."""
    return FixedExpense(id=generate_id(), category=category, amount=RawAmount(amount))


def add_fixed_expense(expenses: tuple[FixedExpense, ...], expense: FixedExpense) -> tuple[FixedExpense, ...]:
    """Append a fixed expense."""
    return (*expenses, expense)


def update_fixed_expense(
    expenses: tuple[FixedExpense, ...],
    expense_id: RecordId,
    category: str | None = None,
    amount: str | None = None,
) -> tuple[FixedExpense, ...]:
    """Update the category and/or amount of one fixed expense."""
    updated: list[FixedExpense] = []
    for expense in expenses:
        if expense.id == expense_id:
            expense = replace(
                expense,
                category=expense.category if category is None else category,
                amount=expense.amount if amount is None else RawAmount(amount),
            )
        updated.append(expense)
    return tuple(updated)


def remove_fixed_expense(expenses: tuple[FixedExpense, ...], expense_id: RecordId) -> tuple[FixedExpense, ...]:
    """Remove a fixed expense, refusing to remove the last one."""
    if len(expenses) <= 1:
        return expenses
    return tuple(expense for expense in expenses if expense.id != expense_id)


def ensure_fixed_expenses(expenses: tuple[FixedExpense, ...]) -> tuple[FixedExpense, ...]:
    """Guarantee at least one fixed expense exists."""
    return expenses if expenses else (create_fixed_expense(),)


def calculate_fixed_total(expenses: tuple[FixedExpense, ...]) -> float:
    """Sum parsed fixed expense amounts."""
    return sum((parse_amount(expense.amount) for expense in expenses), 0.0)


def resolve_horizon(
    target_mode: TargetMode,
    target_duration_months: str,
    target_date: str,
    today: date,
) -> PlanHorizon:
    """Resolve the plan horizon in months and its completion date.

    Args:
        target_mode: Duration or date mode.
        target_duration_months: Raw month count (duration mode).
        target_date: Raw ISO date (date mode).
        today: Current date.

    Returns:
        PlanHorizon. Duration mode falls back to 4 months for a non-positive
        value; date mode uses at least 1 month and falls back to 4 months with
        no completion date when the target date is missing or invalid.
    """
    if target_mode == TargetMode.DATE:
        parsed = parse_iso_date(target_date)
        if parsed is None:
            return PlanHorizon(months=DEFAULT_PLAN_MONTHS, completion_date=None)
        return PlanHorizon(months=max(months_between(today, parsed), 1.0), completion_date=parsed)

    months = parse_amount(target_duration_months)
    if months <= 0:
        months = DEFAULT_PLAN_MONTHS
    return PlanHorizon(months=months, completion_date=add_fractional_months(today, months))


def compute_planning_metrics(
    inputs: PlanningInputs,
    net_worth: float,
    weekly_spend: float,
    today: date,
) -> PlanningMetrics:
    """Combine planning inputs and current figures into feasibility metrics.

    Args:
        inputs: Raw planning inputs.
        net_worth: Current net worth.
        weekly_spend: Spending over the trailing 7 days.
        today: Current date.

    Returns:
        Complete PlanningMetrics snapshot.
    """
    goal_value = parse_amount(inputs.goal)
    income_value = parse_amount(inputs.monthly_income)
    fixed_total = calculate_fixed_total(inputs.expenses)
    horizon = resolve_horizon(inputs.target_mode, inputs.target_duration_months, inputs.target_date, today)

    remaining_goal = goal_value - net_worth
    outstanding = max(remaining_goal, 0.0)
    monthly_saving_target = outstanding / horizon.months if horizon.months > 0 else outstanding

    flexible_spending = income_value - fixed_total - monthly_saving_target
    monthly_shortfall = max(-flexible_spending, 0.0)
    if income_value > 0:
        shortfall_ratio = min(monthly_shortfall / income_value, 1.0)
    else:
        shortfall_ratio = 1.0 if monthly_shortfall > 0 else 0.0

    weekly_limit = max(flexible_spending, 0.0) / AVERAGE_WEEKS_PER_MONTH
    progress_to_goal = clamp_ratio(net_worth / goal_value) if goal_value > 0 else 0.0
    weekly_progress = clamp_ratio(weekly_spend / weekly_limit) if weekly_limit > 0 else 0.0

    return PlanningMetrics(
        goal_value=goal_value,
        income_value=income_value,
        fixed_total=fixed_total,
        monthly_saving_target=monthly_saving_target,
        flexible_spending=flexible_spending,
        weekly_limit=weekly_limit,
        remaining_goal=remaining_goal,
        progress_to_goal=progress_to_goal,
        weekly_spend=weekly_spend,
        weekly_progress=weekly_progress,
        plan_duration_months=horizon.months,
        planned_completion_date=horizon.completion_date,
        monthly_shortfall=monthly_shortfall,
        shortfall_ratio=shortfall_ratio,
        plan_feasible=monthly_shortfall == 0,
    )


def estimate_goal_date(metrics: PlanningMetrics, net_worth: float, today: date) -> date | None:
    """Estimate when the goal is reached at the current weekly pace.

    Args:
        metrics: Current planning metrics.
        net_worth: Current net worth.
        today: Current date.

    Returns:
        Today when the goal is already met, None when weekly savings are not
        positive or the goal is more than 2000 weeks away.
    """
    remaining = metrics.goal_value - net_worth
    if remaining <= 0:
        return today

    weekly_savings = max(metrics.weekly_limit - metrics.weekly_spend, 0.0)
    if weekly_savings <= 0:
        return None

    weeks_needed = remaining / weekly_savings
    if not math.isfinite(weeks_needed) or weeks_needed > GOAL_DATE_MAX_WEEKS:
        return None

    return today + timedelta(days=math.ceil(weeks_needed * 7))
