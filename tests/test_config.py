"""Tests for finledger.config."""

import stat
from pathlib import Path

import pytest

from finledger.config import (
    DEFAULT_CONFIG,
    create_default_config,
    get_config_path,
    get_setting,
    load_config,
    load_settings,
    save_config,
)


@pytest.fixture
def config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    return tmp_path


class TestConfig:
    """Tests for config file handling."""

    def test_path_under_xdg_config_home(self, config_home: Path) -> None:
        """Should use XDG_CONFIG_HOME."""
        assert get_config_path() == config_home / "finledger" / "config.toml"

    def test_missing_file(self, config_home: Path) -> None:
        """Should raise when loading and fall back to defaults for settings."""
        with pytest.raises(FileNotFoundError):
            load_config()

        assert get_setting("local_currency") == "TRY"
        assert get_setting("no_such_setting") is None

    def test_default_config_is_private(self, config_home: Path) -> None:
        """Should write the defaults with 0600 permissions."""
        create_default_config()

        assert load_config() == DEFAULT_CONFIG
        assert stat.S_IMODE(get_config_path().stat().st_mode) == 0o600

    def test_saved_values_win(self, config_home: Path) -> None:
        """Should read saved values and default the rest."""
        create_default_config()
        save_config({"local_currency": "EUR"})

        assert get_setting("local_currency") == "EUR"
        assert get_setting("weighted_projections") is True

    def test_settings_merge_defaults(self, config_home: Path) -> None:
        """Should overlay the file on the defaults."""
        get_config_path().parent.mkdir(parents=True)
        save_config({"log_level": "DEBUG"})

        assert load_settings() == {**DEFAULT_CONFIG, "log_level": "DEBUG"}
