"""Settings file for finledger.

Settings live in a small TOML file next to other XDG configuration. Every key
has a default, so a missing file or key never stops a command.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

DEFAULT_CONFIG: dict[str, Any] = {
    "log_level": "WARNING",
    "local_currency": "TRY",
    "foreign_currency": "USD",
    "weighted_projections": True,
}


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    return get_xdg_config_home() / "finledger" / "config.toml"


def _write_private_toml(data: dict[str, Any], path: Path) -> None:
    with open(path, "wb") as f:
        tomli_w.dump(data, f)
    os.chmod(path, 0o600)


def create_default_config(config_path: Path | None = None) -> None:
    """Write a config file holding every default setting (mode 0600)."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    _write_private_toml(dict(DEFAULT_CONFIG), path)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Read the config file as written, without defaults.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(config_path or get_config_path(), "rb") as f:
        return tomllib.load(f)


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Replace the config file contents (mode 0600)."""
    _write_private_toml(config, config_path or get_config_path())


def load_settings(config_path: Path | None = None) -> dict[str, Any]:
    """Return the defaults overlaid with whatever the file sets.

    A missing file yields the defaults unchanged.
    """
    settings = dict(DEFAULT_CONFIG)
    try:
        settings.update(load_config(config_path))
    except FileNotFoundError:
        pass
    return settings


def get_setting(key: str, config_path: Path | None = None) -> Any:
    """Look up one setting; unknown keys give None."""
    return load_settings(config_path).get(key)
