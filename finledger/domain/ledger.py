"""Pure functions for the entry ledger.

The ledger is an ordered tuple of immutable entries. Every operation returns a
new tuple; an unknown id leaves the ledger unchanged.

Field updates are expressed as small command values (SetName, SetAmount, ...)
applied by a single handler, so each field keeps its own type.
"""

from dataclasses import dataclass, replace

from finledger.domain.amounts import generate_id
from finledger.domain.models import Entry, EntryType, RawAmount, RecordId, Unit, derive_unit


@dataclass(frozen=True)
class SetName:
    value: str


@dataclass(frozen=True)
class SetAmount:
    value: str


@dataclass(frozen=True)
class SetType:
    value: EntryType


@dataclass(frozen=True)
class SetUnit:
    value: Unit


@dataclass(frozen=True)
class SetCreditLimit:
    value: str | None


EntryCommand = SetName | SetAmount | SetType | SetUnit | SetCreditLimit


def create_entry(
    entry_type: EntryType = EntryType.CASH,
    name: str = "",
    amount: str = "",
    unit: Unit = Unit.LOCAL,
    credit_limit: str | None = None,
    entry_id: RecordId | None = None,
) -> Entry:
    """Create a new entry with type-dependent defaults.

    Args:
        entry_type: Entry type.
        name: Display name.
        amount: Raw amount text.
        unit: Requested unit (ignored for types with a fixed unit).
        credit_limit: Raw credit limit text; CreditCard entries default to "".
        entry_id: Explicit id. If None, a fresh id is generated.

    Returns:
        New Entry.
    """
    if credit_limit is None and entry_type == EntryType.CREDIT_CARD:
        credit_limit = ""

    return Entry(
        id=entry_id or generate_id(),
        name=name,
        amount=RawAmount(amount),
        type=entry_type,
        unit=derive_unit(entry_type, unit),
        credit_limit=RawAmount(credit_limit) if credit_limit is not None else None,
    )


def apply_command(entry: Entry, command: EntryCommand) -> Entry:
    """Apply a field update command to an entry.

    Args:
        entry: Entry to update.
        command: Field update.

    Returns:
        Updated entry. Units stay derived for types with a fixed unit.
    """
    match command:
        case SetName(value=name):
            return replace(entry, name=name)
        case SetAmount(value=amount):
            return replace(entry, amount=RawAmount(amount))
        case SetType(value=entry_type):
            credit_limit = entry.credit_limit
            if entry_type == EntryType.CREDIT_CARD and credit_limit is None:
                credit_limit = RawAmount("")
            return replace(
                entry,
                type=entry_type,
                unit=derive_unit(entry_type, entry.unit),
                credit_limit=credit_limit,
            )
        case SetUnit(value=unit):
            return replace(entry, unit=derive_unit(entry.type, unit))
        case SetCreditLimit(value=limit):
            return replace(entry, credit_limit=RawAmount(limit) if limit is not None else None)


def add_entry(entries: tuple[Entry, ...], entry: Entry) -> tuple[Entry, ...]:
    """Append an entry to the end of the ledger."""
    return (*entries, entry)


def update_entry(entries: tuple[Entry, ...], entry_id: RecordId, command: EntryCommand) -> tuple[Entry, ...]:
    """Apply a command to the entry with the given id."""
    return tuple(apply_command(entry, command) if entry.id == entry_id else entry for entry in entries)


def remove_entry(entries: tuple[Entry, ...], entry_id: RecordId) -> tuple[Entry, ...]:
    """Remove the entry with the given id."""
    return tuple(entry for entry in entries if entry.id != entry_id)


def reorder_entries(entries: tuple[Entry, ...], from_id: RecordId, to_id: RecordId) -> tuple[Entry, ...]:
    """Move one entry to the position currently held by another.

    Args:
        entries: Current ledger.
        from_id: Id of the entry to move.
        to_id: Id of the entry whose position it takes.

    Returns:
        Reordered ledger, or the same ledger when either id is unknown or both
        ids are the same.
    """
    ids = [entry.id for entry in entries]
    if from_id not in ids or to_id not in ids or from_id == to_id:
        return entries

    from_index = ids.index(from_id)
    to_index = ids.index(to_id)

    reordered = list(entries)
    moved = reordered.pop(from_index)
    reordered.insert(to_index, moved)
    return tuple(reordered)


def find_entry(entries: tuple[Entry, ...], entry_id: RecordId) -> Entry | None:
    """Find an entry by id."""
    for entry in entries:
        if entry.id == entry_id:
            return entry
    return None
