"""Database location and schema.

The whole application state is a JSON document, so one key/value table is
all the schema there is. PRAGMA user_version records which layout a file
was created with.
"""

import os
import sqlite3
from contextlib import closing
from pathlib import Path

SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


def get_xdg_data_home() -> Path:
    """Get XDG data directory, with fallback to ~/.local/share."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data)
    return Path.home() / ".local" / "share"


def get_db_path() -> Path:
    return get_xdg_data_home() / "finledger" / "finledger.db"


def get_backup_dir() -> Path:
    return get_xdg_data_home() / "finledger" / "backups"


def database_exists(db_path: Path | None = None) -> bool:
    return (db_path or get_db_path()).exists()


def init_database(db_path: Path | None = None) -> None:
    """Create the database file and its table if they do not exist yet.

    Existing rows are kept.

    Raises:
        sqlite3.Error: If database initialization fails.
    """
    path = db_path or get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with closing(sqlite3.connect(path)) as conn:
        try:
            conn.executescript(SCHEMA)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise


def schema_version(db_path: Path | None = None) -> int:
    """Read the layout version stored in the database file."""
    with closing(sqlite3.connect(db_path or get_db_path())) as conn:
        return int(conn.execute("PRAGMA user_version").fetchone()[0])
