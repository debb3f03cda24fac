"""Tests for finledger.domain.imports pure functions."""

import pytest

from finledger.domain.imports import CsvMapping, analyze_csv_columns, match_category, parse_csv_spending


def iso(raw: str) -> str:
    return raw


def failing(raw: str) -> str:
    raise ValueError(f"Could not parse date '{raw}'")


MAPPING = CsvMapping(
    date_column="Date",
    description_column="Description",
    amount_column="Amount",
    category_column="Category",
)


class TestAnalyzeCsvColumns:
    """Tests for analyze_csv_columns."""

    def test_common_headers(self) -> None:
        """Should detect the usual bank export columns."""
        mapping = analyze_csv_columns(["Transaction Date", "Merchant Name", "Amount (TRY)", "Category"])

        assert mapping["date_column"] == "Transaction Date"
        assert mapping["description_column"] == "Merchant Name"
        assert mapping["amount_column"] == "Amount (TRY)"
        assert mapping["category_column"] == "Category"

    def test_currency_column_not_amount(self) -> None:
        """Should skip amount currency columns."""
        mapping = analyze_csv_columns(["Date", "Amount Currency", "Amount"])

        assert mapping["amount_column"] == "Amount"

    def test_missing_columns_empty(self) -> None:
        """Should leave undetected columns empty."""
        mapping = analyze_csv_columns(["foo"])

        assert mapping["date_column"] == ""
        assert mapping["category_column"] == ""


class TestParseCsvSpending:
    """Tests for parse_csv_spending and match_category."""

    def test_outgoing_payment(self) -> None:
        """Should store a negative payment as a positive spend."""
        row = {"Date": "2025-03-01", "Description": "Market", "Amount": "-1,234.50", "Category": "food"}

        parsed = parse_csv_spending(row, MAPPING, iso)

        assert parsed == {"date": "2025-03-01", "description": "Market", "amount": "1234.50", "category": "Food"}

    def test_decimal_comma(self) -> None:
        """Should read a decimal comma."""
        row = {"Date": "2025-03-01", "Description": "", "Amount": "45,90", "Category": ""}

        parsed = parse_csv_spending(row, MAPPING, iso)

        assert parsed is not None
        assert parsed["amount"] == "45.90"
        assert parsed["description"] == "Unknown"
        assert parsed["category"] == "Other"

    def test_skips_rows_without_date_or_amount(self) -> None:
        """Should skip incomplete rows."""
        assert parse_csv_spending({"Date": "", "Amount": "5"}, MAPPING, iso) is None
        assert parse_csv_spending({"Date": "2025-03-01", "Amount": "0"}, MAPPING, iso) is None

    def test_bad_date_raises(self) -> None:
        """Should propagate date parsing errors."""
        with pytest.raises(ValueError):
            parse_csv_spending({"Date": "soon", "Amount": "5"}, MAPPING, failing)

    def test_match_category(self) -> None:
        """Should match case-insensitively and fall back to Other."""
        assert match_category(" HOUSING ") == "Housing"
        assert match_category("Groceries") == "Other"
