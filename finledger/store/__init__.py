"""Database store layer - provides persistence for the application.

This module re-exports all public database functions for easy importing.
"""

from finledger.store.queries import (
    STATE_KEY,
    UNDO_SNAPSHOT_KEY,
    delete_value,
    load_state,
    load_value,
    save_state,
    save_value,
)
from finledger.store.schema import (
    SCHEMA_VERSION,
    database_exists,
    get_backup_dir,
    get_db_path,
    init_database,
    schema_version,
)

__all__ = [
    # Schema
    "SCHEMA_VERSION",
    "database_exists",
    "get_backup_dir",
    "get_db_path",
    "init_database",
    "schema_version",
    # Queries
    "STATE_KEY",
    "UNDO_SNAPSHOT_KEY",
    "delete_value",
    "load_state",
    "load_value",
    "save_state",
    "save_value",
]
