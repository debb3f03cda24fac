"""Tests for finledger.domain.credit pure functions."""

from finledger.domain.credit import GENERIC_ISSUER, match_known_issuer, owed_balance, resolve_credit_meta
from finledger.domain.ledger import create_entry
from finledger.domain.models import EntryType


class TestOwedBalance:
    """Tests for owed_balance."""

    def test_limit_minus_available(self) -> None:
        """Should owe the used part of the limit."""
        assert owed_balance(10000, 3000) == 7000

    def test_never_negative(self) -> None:
        """Should floor at zero when more is available than the limit."""
        assert owed_balance(10000, 12000) == 0


class TestMatchKnownIssuer:
    """Tests for match_known_issuer."""

    def test_case_insensitive_fragment(self) -> None:
        """Should match a registry key anywhere in the name."""
        assert match_known_issuer("My QNB Kredi") == ("QNB", 282000.0)
        assert match_known_issuer("akbank card") == ("Akbank", 31700.0)

    def test_no_match(self) -> None:
        """Should return None for unknown or empty names."""
        assert match_known_issuer("Garanti") is None
        assert match_known_issuer("   ") is None


class TestResolveCreditMeta:
    """Tests for resolve_credit_meta."""

    def test_explicit_limit(self) -> None:
        """Should use the explicit limit of a credit card."""
        entry = create_entry(EntryType.CREDIT_CARD, "Visa", "3000", credit_limit="10000")

        meta = resolve_credit_meta(entry, 3000)

        assert meta is not None
        assert meta.issuer == "Visa"
        assert meta.limit == 10000
        assert meta.debt == 7000

    def test_blank_name_uses_generic_issuer(self) -> None:
        """Should label an unnamed card generically."""
        entry = create_entry(EntryType.CREDIT_CARD, "", "0", credit_limit="500")

        meta = resolve_credit_meta(entry, 0)

        assert meta is not None
        assert meta.issuer == GENERIC_ISSUER

    def test_registry_fallback_for_debt(self) -> None:
        """Should resolve a Debt entry named after a known issuer."""
        entry = create_entry(EntryType.DEBT, "QNB Kredi", "50000")

        meta = resolve_credit_meta(entry, 50000)

        assert meta is not None
        assert meta.debt == 232000

    def test_card_without_limit_uses_registry(self) -> None:
        """Should fall back to the registry when the limit is blank."""
        entry = create_entry(EntryType.CREDIT_CARD, "Akbank", "1700")

        meta = resolve_credit_meta(entry, 1700)

        assert meta is not None
        assert meta.debt == 30000

    def test_unknown_facility(self) -> None:
        """Should return None for an unknown entry without a limit."""
        entry = create_entry(EntryType.DEBT, "Car loan", "5000")

        assert resolve_credit_meta(entry, 5000) is None
