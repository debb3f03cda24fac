"""Conversion between domain records and the persisted state shape.

The persisted shape uses camelCase keys and raw text amounts. Decoding is
forgiving: any value that cannot be read is normalised (fresh id, now, 0,
first enum member) instead of rejected.
"""

from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any, TypeVar

from finledger.domain.amounts import ensure_id, ensure_timestamp, parse_amount
from finledger.domain.history import HistoryPoint, sort_points, trim_series
from finledger.domain.models import Entry, EntryType, FixedExpense, RawAmount, Unit, derive_unit
from finledger.domain.planning import PlanningInputs, TargetMode
from finledger.domain.records import ExtraIncomeEntry, ProjectionEntry, SpendingEntry
from finledger.domain.totals import CategoryTotals

E = TypeVar("E", bound=StrEnum)


def as_text(value: Any, default: str = "") -> str:
    """Read a raw text field; numbers are accepted, other values give the default."""
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _member(enum_cls: type[E], value: Any, default: E) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _mappings(value: Any) -> list[Mapping[str, Any]]:
    """Keep only mapping items of a list value."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def entry_to_dict(entry: Entry) -> dict[str, Any]:
    """Encode an entry."""
    data: dict[str, Any] = {
        "id": entry.id,
        "name": entry.name,
        "amount": entry.amount,
        "type": entry.type.value,
        "unit": entry.unit.value,
    }
    if entry.credit_limit is not None:
        data["creditLimit"] = entry.credit_limit
    return data


def entry_from_dict(raw: Mapping[str, Any]) -> Entry:
    """Decode an entry, defaulting unknown types to Cash and units to Local."""
    entry_type = _member(EntryType, raw.get("type"), EntryType.CASH)
    unit = _member(Unit, raw.get("unit"), Unit.LOCAL)
    credit_limit = raw.get("creditLimit")

    return Entry(
        id=ensure_id(raw.get("id")),
        name=as_text(raw.get("name")),
        amount=RawAmount(as_text(raw.get("amount"))),
        type=entry_type,
        unit=derive_unit(entry_type, unit),
        credit_limit=RawAmount(as_text(credit_limit)) if credit_limit is not None else None,
    )


def point_to_dict(point: HistoryPoint) -> dict[str, Any]:
    """Encode a history point or snapshot."""
    return {"id": point.id, "capturedAt": point.captured_at, "value": point.value}


def point_from_dict(raw: Mapping[str, Any], now: datetime) -> HistoryPoint:
    """Decode a history point or snapshot."""
    return HistoryPoint(
        id=ensure_id(raw.get("id")),
        captured_at=ensure_timestamp(raw.get("capturedAt"), now),
        value=parse_amount(raw.get("value")),
    )


def series_from_list(raw: Any, now: datetime, limit: int | None = None) -> tuple[HistoryPoint, ...]:
    """Decode a series, restoring ascending order and the size bound."""
    series = sort_points([point_from_dict(item, now) for item in _mappings(raw)])
    return trim_series(series, limit) if limit is not None else series


def category_totals_to_dict(category_totals: CategoryTotals) -> dict[str, float]:
    """Encode category totals."""
    return {
        "cards": category_totals.cards,
        "debts": category_totals.debts,
        "crypto": category_totals.crypto,
        "assets": category_totals.assets,
    }


def fixed_expense_to_dict(expense: FixedExpense) -> dict[str, Any]:
    """Encode a fixed expense."""
    return {"id": expense.id, "category": expense.category, "amount": expense.amount}


def fixed_expense_from_dict(raw: Mapping[str, Any]) -> FixedExpense:
    """Decode a fixed expense."""
    return FixedExpense(
        id=ensure_id(raw.get("id")),
        category=as_text(raw.get("category")),
        amount=RawAmount(as_text(raw.get("amount"))),
    )


def planning_to_dict(inputs: PlanningInputs) -> dict[str, Any]:
    """Encode planning inputs."""
    return {
        "goal": inputs.goal,
        "monthlyIncome": inputs.monthly_income,
        "monthlyIncomeDay": inputs.monthly_income_day,
        "expenses": [fixed_expense_to_dict(expense) for expense in inputs.expenses],
        "targetMode": inputs.target_mode.value,
        "targetDurationMonths": inputs.target_duration_months,
        "targetDate": inputs.target_date,
    }


def planning_from_dict(raw: Mapping[str, Any], current: PlanningInputs) -> PlanningInputs:
    """Decode planning inputs, keeping current values for absent fields.

    An absent or empty expense list leaves a single blank fixed expense (added
    by the caller through ensure_fixed_expenses).
    """
    expenses = current.expenses
    if "expenses" in raw:
        expenses = tuple(fixed_expense_from_dict(item) for item in _mappings(raw.get("expenses")))

    target_mode = current.target_mode
    if "targetMode" in raw:
        target_mode = TargetMode.DATE if raw.get("targetMode") == TargetMode.DATE.value else TargetMode.DURATION

    def field(key: str, fallback: str) -> str:
        return as_text(raw.get(key), fallback) if key in raw else fallback

    return PlanningInputs(
        goal=field("goal", current.goal),
        monthly_income=field("monthlyIncome", current.monthly_income),
        monthly_income_day=field("monthlyIncomeDay", current.monthly_income_day),
        expenses=expenses,
        target_mode=target_mode,
        target_duration_months=field("targetDurationMonths", current.target_duration_months),
        target_date=field("targetDate", current.target_date),
    )


def spending_to_dict(entry: SpendingEntry) -> dict[str, Any]:
    """Encode a spending record."""
    return {
        "id": entry.id,
        "category": entry.category,
        "description": entry.description,
        "amount": entry.amount,
        "date": entry.date,
        "createdAt": entry.created_at,
    }


def extra_income_to_dict(entry: ExtraIncomeEntry) -> dict[str, Any]:
    """Encode an extra income record."""
    return {
        "id": entry.id,
        "source": entry.source,
        "amount": entry.amount,
        "type": entry.type.value,
        "date": entry.date,
        "notes": entry.notes,
        "createdAt": entry.created_at,
    }


def projection_to_dict(entry: ProjectionEntry) -> dict[str, Any]:
    """Encode a projection record."""
    return {
        "id": entry.id,
        "source": entry.source,
        "amount": entry.amount,
        "date": entry.date,
        "probability": entry.probability,
        "note": entry.note,
        "createdAt": entry.created_at,
    }


def section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    """Return a nested mapping section, or None when absent or malformed."""
    value = raw.get(key)
    return value if isinstance(value, Mapping) else None


def record_list(raw: Mapping[str, Any] | None) -> list[Mapping[str, Any]] | None:
    """Return the "entries" list of a section, or None when absent."""
    if raw is None or "entries" not in raw:
        return None
    return _mappings(raw.get("entries"))
