"""End-to-end tests for the finledger CLI."""

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from finledger.cli import app
from finledger.config import get_config_path, load_config
from finledger.store import UNDO_SNAPSHOT_KEY, get_db_path, load_state, load_value

runner = CliRunner()


@pytest.fixture(autouse=True)
def xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    return tmp_path


@pytest.fixture
def initialized() -> None:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output


def stored_state() -> dict[str, Any]:
    state = load_state(get_db_path())
    assert state is not None
    return state


class TestInit:
    """Tests for init and backup."""

    def test_init_creates_files(self, initialized: None) -> None:
        """Should create the database and a default config."""
        assert get_db_path().exists()
        assert load_config(get_config_path())["local_currency"] == "TRY"

    def test_init_refuses_to_overwrite(self, initialized: None) -> None:
        """Should refuse without --force."""
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_force_starts_over(self, initialized: None) -> None:
        """Should wipe the stored state with --force."""
        runner.invoke(app, ["entry", "add", "Wallet", "100"])

        result = runner.invoke(app, ["init", "--force"])

        assert result.exit_code == 0
        assert load_state(get_db_path()) is None

    def test_command_before_init(self) -> None:
        """Should exit with an error when the database is missing."""
        result = runner.invoke(app, ["summary"])

        assert result.exit_code == 1
        assert "finledger init" in result.output

    def test_backup(self, initialized: None, tmp_path: Path) -> None:
        """Should copy the database and write the settings."""
        runner.invoke(app, ["entry", "add", "Wallet", "100"])

        result = runner.invoke(app, ["backup", "--output", str(tmp_path / "backups")])

        assert result.exit_code == 0, result.output
        config_backup, db_backup = sorted((tmp_path / "backups").iterdir())
        assert config_backup.name.startswith("config_")
        assert load_config(config_backup)["foreign_currency"] == "USD"
        assert load_state(db_backup)["finance"]["entries"][0]["name"] == "Wallet"


class TestEntries:
    """Tests for the entry commands."""

    def test_add_and_list(self, initialized: None) -> None:
        """Should persist entries and show them."""
        result = runner.invoke(app, ["entry", "add", "Visa", "3000", "--type", "creditcard", "--limit", "10000"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["entry", "list"])
        assert result.exit_code == 0
        assert "Visa" in result.output

        entries = stored_state()["finance"]["entries"]
        assert entries[0]["type"] == "CreditCard"
        assert entries[0]["creditLimit"] == "10000"
        assert stored_state()["finance"]["categoryTotals"]["cards"] == 7000

    def test_edit_by_prefix(self, initialized: None) -> None:
        """Should resolve an id prefix."""
        runner.invoke(app, ["entry", "add", "Wallet", "100"])
        entry_id = stored_state()["finance"]["entries"][0]["id"]

        result = runner.invoke(app, ["entry", "edit", entry_id[:8], "--amount", "250"])

        assert result.exit_code == 0, result.output
        assert stored_state()["finance"]["entries"][0]["amount"] == "250"

    def test_unknown_id(self, initialized: None) -> None:
        """Should exit with an error for an unknown id."""
        result = runner.invoke(app, ["entry", "remove", "nope"])

        assert result.exit_code == 1
        assert "No entry" in result.output

    def test_rate(self, initialized: None) -> None:
        """Should store the exchange rate."""
        runner.invoke(app, ["entry", "add", "Dollars", "100", "--unit", "foreign"])

        result = runner.invoke(app, ["rate", "30"])

        assert result.exit_code == 0
        assert stored_state()["finance"]["categoryTotals"]["assets"] == 3000


class TestSnapshots:
    """Tests for snapshot capture, removal and undo across invocations."""

    def test_remove_then_undo(self, initialized: None) -> None:
        """Should keep the removed snapshot until undone."""
        runner.invoke(app, ["entry", "add", "Wallet", "100"])
        runner.invoke(app, ["snapshot", "capture"])
        snapshot = stored_state()["finance"]["snapshots"][0]
        assert snapshot["value"] == 100

        result = runner.invoke(app, ["snapshot", "remove", snapshot["id"]])
        assert result.exit_code == 0, result.output
        assert stored_state()["finance"]["snapshots"] == []
        assert load_value(UNDO_SNAPSHOT_KEY, get_db_path())["id"] == snapshot["id"]

        result = runner.invoke(app, ["snapshot", "undo"])
        assert result.exit_code == 0, result.output
        assert [item["id"] for item in stored_state()["finance"]["snapshots"]] == [snapshot["id"]]
        assert load_value(UNDO_SNAPSHOT_KEY, get_db_path()) is None

    def test_nothing_to_undo(self, initialized: None) -> None:
        """Should say there is nothing to undo."""
        result = runner.invoke(app, ["snapshot", "undo"])

        assert result.exit_code == 0
        assert "Nothing to undo" in result.output


class TestHistory:
    """Tests for the history commands."""

    def test_clear_survives_reload(self, initialized: None) -> None:
        """Should keep cleared series empty on the next invocation."""
        runner.invoke(app, ["entry", "add", "Wallet", "100"])
        assert stored_state()["finance"]["planHistory"] != []

        result = runner.invoke(app, ["history", "clear"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["history", "show", "plan"])
        assert result.exit_code == 0, result.output
        assert "No history for 'plan'" in result.output
        assert stored_state()["finance"]["planHistory"] == []


class TestPlanning:
    """Tests for plan, fixed, payday and insights."""

    def test_plan_set(self, initialized: None) -> None:
        """Should store the plan and switch to date mode with --by."""
        result = runner.invoke(app, ["plan", "set", "--goal", "120000", "--income", "30000", "--by", "2030-01-01"])

        assert result.exit_code == 0, result.output
        planning = stored_state()["planning"]
        assert planning["goal"] == "120000"
        assert planning["targetMode"] == "date"
        assert planning["targetDate"] == "2030-01-01"

    def test_last_fixed_expense_kept(self, initialized: None) -> None:
        """Should refuse to remove the only fixed expense."""
        runner.invoke(app, ["plan", "set", "--goal", "1000"])
        expense_id = stored_state()["planning"]["expenses"][0]["id"]

        result = runner.invoke(app, ["fixed", "remove", expense_id])

        assert result.exit_code == 0
        assert "At least one fixed expense" in result.output

    def test_payday_and_insights(self, initialized: None) -> None:
        """Should render the projection and insights."""
        runner.invoke(app, ["entry", "add", "Savings", "20000"])
        runner.invoke(app, ["plan", "set", "--goal", "120000", "--income", "30000", "--months", "5"])
        runner.invoke(app, ["project", "add", "5000", "--source", "Bonus", "--probability", "80"])

        result = runner.invoke(app, ["payday", "--no-weighted"])
        assert result.exit_code == 0, result.output
        assert "On track" in result.output

        result = runner.invoke(app, ["insights"])
        assert result.exit_code == 0, result.output

    def test_huge_plan_values(self, initialized: None) -> None:
        """Should store and report a plan with huge values."""
        runner.invoke(app, ["entry", "add", "Savings", "1000"])

        result = runner.invoke(app, ["plan", "set", "--goal", "1e308", "--income", "1e308", "--months", "400000"])
        assert result.exit_code == 0, result.output
        assert stored_state()["planning"]["targetDurationMonths"] == "400000"

        for command in (["plan", "show"], ["payday"], ["insights"], ["summary"]):
            result = runner.invoke(app, command)
            assert result.exit_code == 0, result.output


class TestRecords:
    """Tests for spending, extra income and projections."""

    def test_spend_add(self, initialized: None) -> None:
        """Should accept a category in any case."""
        result = runner.invoke(app, ["spend", "add", "45,90", "--category", "food", "--date", "2025-03-01"])

        assert result.exit_code == 0, result.output
        entry = stored_state()["expenses"]["entries"][0]
        assert entry["category"] == "Food"
        assert entry["amount"] == "45,90"
        assert entry["date"] == "2025-03-01"

    def test_spend_bad_category(self, initialized: None) -> None:
        """Should reject unknown categories."""
        result = runner.invoke(app, ["spend", "add", "10", "--category", "Pets"])

        assert result.exit_code == 1
        assert "Unknown category" in result.output

    def test_spend_import(self, initialized: None, tmp_path: Path) -> None:
        """Should import rows and skip rows with bad dates."""
        csv_path = tmp_path / "export.csv"
        csv_path.write_text(
            "Date,Description,Amount,Category\n"
            "01/03/2025,Market,-45.50,Food\n"
            "15/03/2025,Bus,-12.00,transport\n"
            "someday,Broken,-3.00,Food\n"
        )

        result = runner.invoke(app, ["spend", "import", str(csv_path)])

        assert result.exit_code == 0, result.output
        entries = stored_state()["expenses"]["entries"]
        assert [(entry["date"], entry["amount"], entry["category"]) for entry in entries] == [
            ("2025-03-15", "12.00", "Transport"),
            ("2025-03-01", "45.50", "Food"),
        ]

    def test_spend_import_missing_columns(self, initialized: None, tmp_path: Path) -> None:
        """Should fail when no amount column is found."""
        csv_path = tmp_path / "export.csv"
        csv_path.write_text("Date,Memo\n01/03/2025,Market\n")

        result = runner.invoke(app, ["spend", "import", str(csv_path)])

        assert result.exit_code == 1
        assert "CSV format error" in result.output

    def test_income_add_and_edit(self, initialized: None) -> None:
        """Should record and update extra income."""
        runner.invoke(app, ["income", "add", "800", "--source", "Freelance", "--type", "estimated"])
        record_id = stored_state()["extraIncome"]["entries"][0]["id"]

        result = runner.invoke(app, ["income", "edit", record_id, "--type", "realized", "--notes", "paid"])

        assert result.exit_code == 0, result.output
        entry = stored_state()["extraIncome"]["entries"][0]
        assert entry["type"] == "Realized"
        assert entry["notes"] == "paid"

    def test_project_probability_clamped(self, initialized: None) -> None:
        """Should clamp the probability to 100."""
        result = runner.invoke(app, ["project", "add", "1000", "--probability", "150"])

        assert result.exit_code == 0, result.output
        assert stored_state()["projections"]["entries"][0]["probability"] == 100
