"""Domain models and types for finledger.

This package contains the functional core:
- Pure functions with no side effects
- No I/O operations
- Easy to test
- Derivation logic separated from persistence and presentation
"""

from finledger.domain.models import Entry, EntryType, FixedExpense, IsoDate, RawAmount, RecordId, Unit

__all__ = ["Entry", "EntryType", "FixedExpense", "IsoDate", "RawAmount", "RecordId", "Unit"]
