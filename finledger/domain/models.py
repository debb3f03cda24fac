"""Domain type definitions for finledger.

These NewTypes and enums provide semantic clarity and help with type checking:
- RecordId: Opaque unique token identifying any record
- RawAmount: Free text amount exactly as the user typed it
- IsoDate: Calendar date in YYYY-MM-DD format
- EntryType / Unit: Classification of ledger entries
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import NewType

# Every record carries an opaque id (uuid4 text for generated ids)
RecordId = NewType("RecordId", str)

# Amounts are kept as raw text so partially typed values survive round trips
RawAmount = NewType("RawAmount", str)

# Calendar date in YYYY-MM-DD format (e.g., "2025-01-31")
IsoDate = NewType("IsoDate", str)

# Timestamp in ISO 8601 format with milliseconds
Timestamp = NewType("Timestamp", str)

# Month is always in YYYY-MM format (e.g., "2025-01")
Month = NewType("Month", str)


class EntryType(StrEnum):
    """Kind of ledger entry, which decides how it is classified."""

    DEBT = "Debt"
    CREDIT_CARD = "CreditCard"
    RECEIVABLE = "Receivable"
    CASH = "Cash"
    CRYPTO = "Crypto"


class Unit(StrEnum):
    """Currency unit of an entry amount."""

    LOCAL = "Local"
    FOREIGN = "Foreign"


# Units fixed by entry type; other types let the user choose
FIXED_UNITS: dict[EntryType, Unit] = {
    EntryType.CRYPTO: Unit.FOREIGN,
    EntryType.CREDIT_CARD: Unit.LOCAL,
}


@dataclass(frozen=True)
class Entry:
    """Immutable financial line item."""

    id: RecordId
    name: str
    amount: RawAmount
    type: EntryType
    unit: Unit
    credit_limit: RawAmount | None = None


@dataclass(frozen=True)
class FixedExpense:
    """Immutable recurring monthly cost."""

    id: RecordId
    category: str
    amount: RawAmount


def derive_unit(entry_type: EntryType, requested: Unit) -> Unit:
    """Return the unit an entry of this type must use.

    Args:
        entry_type: Entry type.
        requested: Unit the user asked for.

    Returns:
        The fixed unit for Crypto and CreditCard, otherwise the requested unit.
    """
    return FIXED_UNITS.get(entry_type, requested)
