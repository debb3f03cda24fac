"""Pure functions for the secondary ledgers.

Spending, extra income and projected income share one shape: an id, a raw
amount, a calendar date and a creation time in epoch milliseconds. Each
ledger keeps a stable order:
- spending and extra income: newest date first
- projections: earliest expected date first
with ties always broken by the most recently created record first.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import StrEnum
from typing import Any, TypeVar

from finledger.domain.amounts import (
    ensure_epoch_millis,
    ensure_id,
    ensure_iso_date,
    parse_amount,
    parse_iso_date,
)
from finledger.domain.models import IsoDate, RawAmount, RecordId

EXPENSE_CATEGORIES = ("Housing", "Transport", "Food", "Entertainment", "Health", "Bills", "Other")
FALLBACK_CATEGORY = "Other"
DEFAULT_PROBABILITY = 50.0


class ExtraIncomeType(StrEnum):
    """Whether extra income has been received or is only expected."""

    REALIZED = "Realized"
    ESTIMATED = "Estimated"


@dataclass(frozen=True)
class SpendingEntry:
    """Immutable day-to-day spending record."""

    id: RecordId
    category: str
    description: str
    amount: RawAmount
    date: IsoDate
    created_at: int


@dataclass(frozen=True)
class ExtraIncomeEntry:
    """Immutable extra income record."""

    id: RecordId
    source: str
    amount: RawAmount
    type: ExtraIncomeType
    date: IsoDate
    notes: str
    created_at: int


@dataclass(frozen=True)
class ProjectionEntry:
    """Immutable probability-weighted future income."""

    id: RecordId
    source: str
    amount: RawAmount
    date: IsoDate
    probability: float
    note: str
    created_at: int


Record = SpendingEntry | ExtraIncomeEntry | ProjectionEntry
Dated = TypeVar("Dated", SpendingEntry, ExtraIncomeEntry)
AnyRecord = TypeVar("AnyRecord", SpendingEntry, ExtraIncomeEntry, ProjectionEntry)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return ""
    return str(value)


def normalize_category(value: Any) -> str:
    """Map a category to a known expense category."""
    return value if value in EXPENSE_CATEGORIES else FALLBACK_CATEGORY


def normalize_probability(value: Any) -> float:
    """Clamp a probability to 0-100, defaulting to 50 when missing."""
    if value is None or value == "":
        return DEFAULT_PROBABILITY
    return min(max(parse_amount(value), 0.0), 100.0)


def spending_from_dict(raw: Mapping[str, Any], today: date, now: datetime) -> SpendingEntry:
    """Normalise a raw spending record."""
    return SpendingEntry(
        id=ensure_id(raw.get("id")),
        category=normalize_category(raw.get("category")),
        description=_text(raw.get("description")),
        amount=RawAmount(_text(raw.get("amount"))),
        date=ensure_iso_date(raw.get("date"), today),
        created_at=ensure_epoch_millis(raw.get("createdAt"), now),
    )


def extra_income_from_dict(raw: Mapping[str, Any], today: date, now: datetime) -> ExtraIncomeEntry:
    """Normalise a raw extra income record."""
    income_type = ExtraIncomeType.ESTIMATED if raw.get("type") == "Estimated" else ExtraIncomeType.REALIZED
    return ExtraIncomeEntry(
        id=ensure_id(raw.get("id")),
        source=_text(raw.get("source")),
        amount=RawAmount(_text(raw.get("amount"))),
        type=income_type,
        date=ensure_iso_date(raw.get("date"), today),
        notes=_text(raw.get("notes")),
        created_at=ensure_epoch_millis(raw.get("createdAt"), now),
    )


def projection_from_dict(raw: Mapping[str, Any], today: date, now: datetime) -> ProjectionEntry:
    """Normalise a raw projection record.

    Older snapshots store the date under "expectedDate"; both keys are read.
    """
    raw_date = raw.get("date") if raw.get("date") is not None else raw.get("expectedDate")
    return ProjectionEntry(
        id=ensure_id(raw.get("id")),
        source=_text(raw.get("source")),
        amount=RawAmount(_text(raw.get("amount"))),
        date=ensure_iso_date(raw_date, today),
        probability=normalize_probability(raw.get("probability")),
        note=_text(raw.get("note")),
        created_at=ensure_epoch_millis(raw.get("createdAt"), now),
    )


def sort_newest_first(entries: tuple[Dated, ...] | list[Dated]) -> tuple[Dated, ...]:
    """Sort by date descending, most recently created first on ties."""
    return tuple(sorted(entries, key=lambda entry: (entry.date, entry.created_at), reverse=True))


def sort_by_expected_date(entries: tuple[ProjectionEntry, ...] | list[ProjectionEntry]) -> tuple[ProjectionEntry, ...]:
    """Sort by expected date ascending, most recently created first on ties."""
    return tuple(sorted(entries, key=lambda entry: (entry.date, -entry.created_at)))


def add_spending(entries: tuple[SpendingEntry, ...], entry: SpendingEntry) -> tuple[SpendingEntry, ...]:
    """Insert a spending record in order."""
    return sort_newest_first((entry, *entries))


def add_extra_income(entries: tuple[ExtraIncomeEntry, ...], entry: ExtraIncomeEntry) -> tuple[ExtraIncomeEntry, ...]:
    """Insert an extra income record in order."""
    return sort_newest_first((entry, *entries))


def add_projection(entries: tuple[ProjectionEntry, ...], entry: ProjectionEntry) -> tuple[ProjectionEntry, ...]:
    """Insert a projection record in order."""
    return sort_by_expected_date((entry, *entries))


def remove_record(entries: tuple[AnyRecord, ...], record_id: RecordId) -> tuple[AnyRecord, ...]:
    """Remove a record by id."""
    return tuple(entry for entry in entries if entry.id != record_id)


def update_extra_income(
    entries: tuple[ExtraIncomeEntry, ...],
    record_id: RecordId,
    today: date,
    source: str | None = None,
    amount: str | None = None,
    income_type: ExtraIncomeType | None = None,
    on_date: str | None = None,
    notes: str | None = None,
) -> tuple[ExtraIncomeEntry, ...]:
    """Update fields of one extra income record and restore the order.

    Args:
        entries: Current extra income ledger.
        record_id: Record to update; unknown ids leave the ledger unchanged.
        today: Fallback for an unparseable date.
        source, amount, income_type, on_date, notes: New values (None keeps).

    Returns:
        Updated and re-sorted ledger.
    """
    updated: list[ExtraIncomeEntry] = []
    for entry in entries:
        if entry.id == record_id:
            entry = replace(
                entry,
                source=entry.source if source is None else source,
                amount=entry.amount if amount is None else RawAmount(amount),
                type=entry.type if income_type is None else income_type,
                date=entry.date if on_date is None else ensure_iso_date(on_date, today),
                notes=entry.notes if notes is None else notes,
            )
        updated.append(entry)
    return sort_newest_first(updated)


def sum_amounts(entries: tuple[Record, ...] | list[Record]) -> float:
    """Sum parsed amounts of a ledger."""
    return sum((parse_amount(entry.amount) for entry in entries), 0.0)


def sum_extra_income(entries: tuple[ExtraIncomeEntry, ...], income_type: ExtraIncomeType) -> float:
    """Sum extra income of one type."""
    return sum_amounts([entry for entry in entries if entry.type == income_type])


def is_within_last_week(entry_date: str, today: date) -> bool:
    """Check whether a date falls in the trailing 7 days (today included)."""
    parsed = parse_iso_date(entry_date)
    if parsed is None:
        return False
    return 0 <= (today - parsed).days < 7


def calculate_weekly_spend(entries: tuple[SpendingEntry, ...], today: date) -> float:
    """Sum spending dated within the trailing 7 days."""
    return sum_amounts([entry for entry in entries if is_within_last_week(entry.date, today)])
