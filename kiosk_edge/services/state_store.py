"""
state_store.py - Durable kiosk state

SQLite-backed typed key/value store for flags that must survive a full
reload of the kiosk, plus an activity log of remote commands.
"""

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import DATA_DIR

logger = logging.getLogger("StateStore")

DB_PATH = DATA_DIR / "kiosk_state.db"


@dataclass(frozen=True)
class StateKey:
    """A named, typed slot in the store."""
    name: str
    type: type
    default: Any = None


# Set by the dispatcher on `refresh`, cleared by the session once it is ready again.
REFRESHING = StateKey("kiosk_refreshing", bool, False)
RELOAD_OVERLAY = StateKey("kiosk_reload_overlay", bool, False)


class KioskStateStore:
    """SQLite database manager for durable kiosk flags."""

    def __init__(self, db_path=None):
        self.db_path = str(db_path or DB_PATH)
        self._ensure_data_dir()
        self._init_db()

    def _ensure_data_dir(self):
        """Create data directory if it doesn't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema if tables don't exist."""
        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS activity_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                event_type TEXT NOT NULL,
                status TEXT DEFAULT 'pending',
                details TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        conn.commit()
        conn.close()
        logger.info(f"SQLite state store initialized at: {self.db_path}")

    # ==================== Typed Key/Value ====================

    def get(self, key: StateKey):
        """Read a value, falling back to the key's default when unset or unreadable."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                'SELECT value FROM kv_state WHERE key = ?', (key.name,)
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return key.default

        try:
            value = json.loads(row['value'])
        except ValueError:
            logger.warning(f"Corrupt value for {key.name}, using default")
            return key.default

        if not isinstance(value, key.type):
            logger.warning(f"Unexpected type for {key.name}: {type(value).__name__}")
            return key.default
        return value

    def set(self, key: StateKey, value):
        if not isinstance(value, key.type):
            raise TypeError(f"{key.name} expects {key.type.__name__}, got {type(value).__name__}")

        conn = self._get_connection()
        try:
            conn.execute('''
                INSERT INTO kv_state (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            ''', (key.name, json.dumps(value)))
            conn.commit()
        finally:
            conn.close()

    def clear(self, key: StateKey):
        conn = self._get_connection()
        try:
            conn.execute('DELETE FROM kv_state WHERE key = ?', (key.name,))
            conn.commit()
        finally:
            conn.close()

    def is_set(self, key: StateKey) -> bool:
        conn = self._get_connection()
        try:
            row = conn.execute(
                'SELECT 1 FROM kv_state WHERE key = ?', (key.name,)
            ).fetchone()
        finally:
            conn.close()
        return row is not None

    # ==================== Activity Logging ====================

    def log_activity(self, event_type: str, status: str = 'pending', details: str = None):
        """Log a kiosk activity event."""
        conn = self._get_connection()
        try:
            conn.execute('''
                INSERT INTO activity_log (event_type, status, details)
                VALUES (?, ?, ?)
            ''', (event_type, status, details))
            conn.commit()
        finally:
            conn.close()

    def get_recent_logs(self, limit: int = 50) -> List[Dict]:
        """Get recent activity logs, newest first."""
        conn = self._get_connection()
        try:
            rows = conn.execute('''
                SELECT * FROM activity_log
                ORDER BY id DESC
                LIMIT ?
            ''', (limit,)).fetchall()
        finally:
            conn.close()
        return [dict(row) for row in rows]


# Singleton instance
_store_instance: Optional[KioskStateStore] = None

def get_state_store(db_path=None) -> KioskStateStore:
    """Get or create the singleton KioskStateStore instance."""
    global _store_instance
    if _store_instance is None:
        _store_instance = KioskStateStore(db_path)
    return _store_instance
