"""Pure functions folding the entry ledger into totals.

This module contains the functional core for net worth:
- No I/O operations
- No side effects
- Totals are recomputed from scratch on every call, never patched

All amounts are floats in the local (base) currency.
"""

from dataclasses import dataclass

from finledger.domain.amounts import parse_amount
from finledger.domain.credit import resolve_credit_meta
from finledger.domain.models import Entry, EntryType, Unit


@dataclass(frozen=True)
class Totals:
    """Immutable aggregate figures."""

    debt: float
    assets: float
    net_worth: float


@dataclass(frozen=True)
class CategoryTotals:
    """Immutable four-way breakdown of Totals."""

    cards: float
    debts: float
    crypto: float
    assets: float


EMPTY_TOTALS = Totals(debt=0.0, assets=0.0, net_worth=0.0)
EMPTY_CATEGORY_TOTALS = CategoryTotals(cards=0.0, debts=0.0, crypto=0.0, assets=0.0)


def convert_amount(amount: float, unit: Unit, rate: float) -> float:
    """Convert an amount to the base currency.

    Args:
        amount: Parsed amount.
        unit: Unit of the amount.
        rate: Foreign-to-local exchange rate.

    Returns:
        Converted amount. Foreign amounts contribute 0 without a positive rate.
    """
    if unit == Unit.FOREIGN:
        return amount * rate if rate > 0 else 0.0
    return amount


def calculate_totals(entries: tuple[Entry, ...], usd_rate: str) -> tuple[Totals, CategoryTotals]:
    """Classify every entry and fold the ledger into totals.

    Args:
        entries: Ledger entries.
        usd_rate: Raw exchange rate text.

    Returns:
        Tuple of (Totals, CategoryTotals).
    """
    rate = parse_amount(usd_rate)

    cards = 0.0
    debts = 0.0
    crypto = 0.0
    assets = 0.0

    for entry in entries:
        converted = convert_amount(parse_amount(entry.amount), entry.unit, rate)
        credit = resolve_credit_meta(entry, converted)

        if entry.type == EntryType.CREDIT_CARD:
            cards += credit.debt if credit else 0.0
        elif entry.type == EntryType.DEBT:
            debts += credit.debt if credit else converted
        elif entry.type == EntryType.CRYPTO:
            crypto += converted
        elif entry.type in (EntryType.RECEIVABLE, EntryType.CASH):
            assets += converted

    category_totals = CategoryTotals(cards=cards, debts=debts, crypto=crypto, assets=assets)
    total_debt = cards + debts
    total_assets = crypto + assets
    totals = Totals(debt=total_debt, assets=total_assets, net_worth=total_assets - total_debt)

    return totals, category_totals
