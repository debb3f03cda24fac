"""Key/value queries over the kv_store table.

Values are JSON documents. The whole application state lives under one key;
auxiliary records (such as the pending snapshot undo) get their own keys.
"""

import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any

import structlog

from finledger.store.schema import get_db_path

logger = structlog.get_logger(__name__)

STATE_KEY = "app_state"
UNDO_SNAPSHOT_KEY = "undo_snapshot"


def _connect(db_path: Path | None = None) -> sqlite3.Connection:
    """Create a database connection with row factory.

    Args:
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Database connection with row_factory configured.
    """
    if db_path is None:
        db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def load_value(key: str, db_path: Path | None = None) -> Any | None:
    """Load and decode a stored JSON value.

    Args:
        key: Storage key.
        db_path: Path to the database file. If None, uses default location.

    Returns:
        Decoded value, or None when the key is absent or the stored text is
        not valid JSON.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with closing(_connect(db_path)) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()

    if row is None:
        return None

    try:
        return json.loads(row["value"])
    except json.JSONDecodeError as e:
        logger.warning("stored_value_unreadable", key=key, error=str(e))
        return None


def save_value(key: str, value: Any, db_path: Path | None = None) -> None:
    """Encode and store a JSON value, replacing any previous one.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    payload = json.dumps(value, ensure_ascii=False)
    with closing(_connect(db_path)) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, payload),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise


def delete_value(key: str, db_path: Path | None = None) -> None:
    """Delete a stored value. Missing keys are ignored.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    with closing(_connect(db_path)) as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise


def load_state(db_path: Path | None = None) -> dict[str, Any] | None:
    """Load the persisted application state.

    Returns:
        State dictionary, or None when nothing usable has been saved.
    """
    state = load_value(STATE_KEY, db_path)
    if state is not None and not isinstance(state, dict):
        logger.warning("stored_state_ignored", reason="not an object")
        return None
    return state


def save_state(state: dict[str, Any], db_path: Path | None = None) -> None:
    """Persist the application state."""
    save_value(STATE_KEY, state, db_path)
