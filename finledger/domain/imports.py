"""Pure functions for importing spending from bank CSV exports.

- No I/O operations (reading the file and parsing dates happen in the caller)
- No side effects
- Easy to test
"""

from collections.abc import Callable
from typing import TypedDict

from finledger.domain.amounts import parse_amount
from finledger.domain.records import EXPENSE_CATEGORIES, FALLBACK_CATEGORY


class CsvMapping(TypedDict):
    """CSV column mapping configuration."""

    date_column: str
    description_column: str
    amount_column: str
    category_column: str


class ParsedSpending(TypedDict):
    """Parsed spending row ready to be added to the ledger."""

    date: str
    description: str
    amount: str
    category: str


def analyze_csv_columns(headers: list[str]) -> CsvMapping:
    """Analyze CSV headers and suggest column mappings.

    Args:
        headers: List of CSV column names.

    Returns:
        Suggested mapping (empty string where nothing was detected).
    """
    mapping = CsvMapping(date_column="", description_column="", amount_column="", category_column="")

    for header in headers:
        lowered = header.lower()

        if not mapping["date_column"] and "date" in lowered:
            mapping["date_column"] = header

        if not mapping["description_column"]:
            if "merchant" in lowered and "name" in lowered:
                mapping["description_column"] = header
            elif "description" in lowered:
                mapping["description_column"] = header

        if not mapping["amount_column"] and "amount" in lowered and "currency" not in lowered:
            mapping["amount_column"] = header

        if not mapping["category_column"] and "category" in lowered:
            mapping["category_column"] = header

    return mapping


def match_category(raw: str) -> str:
    """Match a bank category label to an expense category (case-insensitive)."""
    wanted = raw.strip().lower()
    for category in EXPENSE_CATEGORIES:
        if category.lower() == wanted:
            return category
    return FALLBACK_CATEGORY


def parse_csv_spending(
    row: dict[str, str],
    mapping: CsvMapping,
    normalize_date: Callable[[str], str],
) -> ParsedSpending | None:
    """Parse a CSV row into a spending record.

    Bank exports show outgoing payments as negative numbers; the amount is
    stored as a positive spend either way.

    Args:
        row: CSV row as dictionary.
        mapping: Column mapping configuration.
        normalize_date: Turns a raw date into YYYY-MM-DD. May raise ValueError.

    Returns:
        ParsedSpending if valid, None if the row should be skipped.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    raw_date = (row.get(mapping["date_column"]) or "").strip()
    if not raw_date:
        return None

    raw_amount = (row.get(mapping["amount_column"]) or "").strip()
    # "1,234.56": the comma is a thousands separator, not a decimal comma
    if "." in raw_amount:
        raw_amount = raw_amount.replace(",", "")
    amount = abs(parse_amount(raw_amount))
    if amount == 0:
        return None

    description = (row.get(mapping["description_column"]) or "").strip() or "Unknown"

    category = FALLBACK_CATEGORY
    if mapping["category_column"]:
        category = match_category(row.get(mapping["category_column"]) or "")

    return ParsedSpending(
        date=normalize_date(raw_date),
        description=description,
        amount=f"{amount:.2f}",
        category=category,
    )
