import sqlite3
import json
import logging
import os
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load .env before reading the environment below (config may not be imported yet).
load_dotenv()

logger = logging.getLogger(__name__)

# Default database file.
# Priority:
# 1) BOOKSHELF_DB_FILE
# 2) bookshelf.db in the working directory
DATABASE_FILE = os.environ.get("BOOKSHELF_DB_FILE") or "bookshelf.db"


def get_db_connection(db_file: Optional[str] = None) -> sqlite3.Connection:
    """Open a connection to the SQLite key-value database."""
    conn = sqlite3.connect(db_file or DATABASE_FILE)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(db_file: Optional[str] = None) -> None:
    """Create the key-value table if it does not exist."""
    conn = get_db_connection(db_file)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()
    finally:
        conn.close()


class KeyValueStorage:
    """localStorage-like string store kept in a single SQLite table.

    Values are plain strings; reading a key that was never written returns None.
    """

    def __init__(self, db_file: Optional[str] = None) -> None:
        self.db_file = db_file or DATABASE_FILE
        create_tables(self.db_file)

    def get_item(self, key: str) -> Optional[str]:
        conn = get_db_connection(self.db_file)
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set_item(self, key: str, value: str) -> None:
        conn = get_db_connection(self.db_file)
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, value)
            )
            conn.commit()
        finally:
            conn.close()

    def remove_item(self, key: str) -> None:
        conn = get_db_connection(self.db_file)
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> List[str]:
        conn = get_db_connection(self.db_file)
        try:
            return [row["key"] for row in conn.execute("SELECT key FROM kv_store ORDER BY key")]
        finally:
            conn.close()


class MemoryStorage:
    """Dict-backed storage with the same contract as KeyValueStorage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


def migrate_from_json(storage, key: str, json_file: Optional[str]) -> bool:
    """Copy a legacy JSON export into an empty storage key.

    One-shot: does nothing when the key already holds data or the file is missing.
    Returns True when data was migrated.
    """
    if not json_file or not os.path.exists(json_file):
        return False
    if storage.get_item(key) is not None:
        return False

    try:
        with open(json_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Could not read legacy export {json_file}: {e}")
        return False

    if not isinstance(data, list):
        logger.warning(f"Legacy export {json_file} is not a JSON array, skipping migration")
        return False

    storage.set_item(key, json.dumps(data, ensure_ascii=False))
    logger.info(f"Migrated {len(data)} records from {json_file}")
    return True
