# engine/db.py

"""Storage layer for Mnemo: a SQLite key-value store plus legacy JSON migration."""

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)

CARDS_KEY = "cards"
FOLDERS_KEY = "folders"
SETTINGS_KEY = "settings"

STATE_KEYS = (CARDS_KEY, FOLDERS_KEY, SETTINGS_KEY)


class Database:
    """SQLite-backed key-value store for Mnemo."""

    def __init__(self, path: str):
        """Initialize database connection.

        Args:
            path: Path to SQLite database file
        """
        self.path = path
        self._ensure_path_exists()
        self.conn = sqlite3.connect(path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._setup_database()

    def _ensure_path_exists(self) -> None:
        """Ensure the database directory exists."""
        if self.path == ":memory:":
            return
        db_path = Path(self.path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

    def _setup_database(self) -> None:
        """Set up database with WAL mode and create tables."""
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.create_tables()

    def create_tables(self) -> None:
        """Create necessary tables if they don't exist."""
        self.conn.executescript("""
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value JSON NOT NULL,
            updated_at INTEGER NOT NULL
        );
        """)
        self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value for ``key``, or None when absent."""
        try:
            row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, AttributeError) as e:
            raise StorageError(f"Could not read '{key}': {e}") from e

        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored value for '{key}' is corrupt: {e}") from e

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` (last write wins)."""
        try:
            self.conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, json.dumps(value, ensure_ascii=False), int(time.time()))
            )
            self.conn.commit()
        except (sqlite3.Error, TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Could not write '{key}': {e}") from e


class LegacyStore:
    """Synchronous JSON-file store from earlier versions (``<key>.json``).

    Only read during the one-time migration into :class:`Database`.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def get(self, key: str) -> Optional[Any]:
        path = self.directory / f"{key}.json"
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)


def load_state(db: Database, legacy: Optional[LegacyStore] = None) -> Dict[str, Any]:
    """Load cards, folders and settings, migrating legacy data when needed.

    A key missing from the database is looked up in the legacy store and, if
    found there, copied into the database. Keys found nowhere load as None
    (fresh install).
    """
    state: Dict[str, Any] = {}

    for key in STATE_KEYS:
        try:
            value = db.get(key)
        except StorageError as e:
            logger.error("Failed to load %s: %s", key, e)
            value = None

        if value is None and legacy is not None:
            value = _migrate(db, legacy, key)

        state[key] = value

    return state


def _migrate(db: Database, legacy: LegacyStore, key: str) -> Optional[Any]:
    try:
        value = legacy.get(key)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Migration error (%s): %s", key, e)
        return None

    if value is None:
        return None

    logger.info("Migrating legacy %s into the database", key)
    save(db, key, value)
    return value


def save(db: Database, key: str, value: Any) -> bool:
    """Write a key, logging instead of raising on failure.

    In-memory state stays authoritative for the session when a write fails.
    """
    try:
        db.set(key, value)
        return True
    except StorageError as e:
        logger.error("Failed to save %s: %s", key, e)
        return False
