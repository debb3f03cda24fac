"""Pure functions for resolving credit facility metadata.

A card entry records the *available* balance; the owed amount is the credit
limit minus what is still available. The limit comes from an explicit field
on CreditCard entries, or from a small registry of known issuers matched by
name.
"""

from dataclasses import dataclass

from finledger.domain.amounts import parse_amount
from finledger.domain.models import Entry, EntryType

GENERIC_ISSUER = "Credit card"

# Lowercase name fragment -> (issuer label, credit limit)
KNOWN_ISSUERS: dict[str, tuple[str, float]] = {
    "qnb": ("QNB", 282_000.0),
    "akbank": ("Akbank", 31_700.0),
}


@dataclass(frozen=True)
class CreditCardMeta:
    """Immutable resolved credit facility."""

    issuer: str
    limit: float
    debt: float


def owed_balance(limit: float, available: float) -> float:
    """Compute owed balance, never negative."""
    return max(limit - available, 0.0)


def match_known_issuer(name: str) -> tuple[str, float] | None:
    """Match an entry name against the issuer registry.

    Args:
        name: Entry name.

    Returns:
        Tuple of (issuer, limit) for the first registry key contained in the
        name (case-insensitive), or None.
    """
    normalized = name.strip().lower()
    if not normalized:
        return None

    for fragment, issuer in KNOWN_ISSUERS.items():
        if fragment in normalized:
            return issuer

    return None


def resolve_credit_meta(entry: Entry, available: float) -> CreditCardMeta | None:
    """Resolve credit metadata for an entry.

    Args:
        entry: Ledger entry.
        available: Available balance already converted to the base currency.

    Returns:
        CreditCardMeta, or None when the entry is not a known credit facility.
    """
    if entry.type == EntryType.CREDIT_CARD:
        explicit_limit = parse_amount(entry.credit_limit)
        if explicit_limit > 0:
            return CreditCardMeta(
                issuer=entry.name.strip() or GENERIC_ISSUER,
                limit=explicit_limit,
                debt=owed_balance(explicit_limit, available),
            )

    known = match_known_issuer(entry.name)
    if known is None:
        return None

    issuer, limit = known
    return CreditCardMeta(issuer=issuer, limit=limit, debt=owed_balance(limit, available))
