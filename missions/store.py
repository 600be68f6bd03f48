"""
Mission board snapshot storage (SQLite key/value slot).

The whole board lives in one named slot as a JSON array. Every save replaces
the entire prior value inside a single transaction, so readers see either the
old snapshot or the new one, never a partial write.
"""
import sqlite3
import logging
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone
from .schema import Category, Collection, collection_to_json, collection_from_json

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "missions-possible-data"
DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "missions" / "missions.db"


def default_categories() -> Collection:
    """Bootstrap board used when no readable snapshot exists."""
    return (
        Category(id="1", name="Client", color="#FF6B9D"),
        Category(id="2", name="Biz System", color="#4ECDC4"),
        Category(id="3", name="Web & Funnel", color="#95E1D3"),
        Category(id="4", name="AI & Tech", color="#FFA07A"),
        Category(id="5", name="Learning", color="#9B59B6"),
        Category(id="6", name="Personal", color="#3498DB"),
    )


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SnapshotStore:
    """Full-snapshot store for the category collection."""

    def __init__(self, db_path: Optional[str] = None, slot: str = DEFAULT_SLOT):
        """Initialize store. Schema creation is lazy so a bad path never raises here."""
        self.db_path = str(db_path) if db_path else str(DEFAULT_DB_PATH)
        self.slot = slot

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

    def _open(self) -> sqlite3.Connection:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = _connect(self.db_path)
        self._init_schema(conn)
        return conn

    def read_raw(self) -> Optional[str]:
        """Return the slot's raw payload, or None if the slot is empty."""
        conn = self._open()
        try:
            row = conn.execute(
                "SELECT value FROM snapshots WHERE key = ?", (self.slot,)
            ).fetchone()
        finally:
            conn.close()
        return row["value"] if row else None

    def load(self) -> Collection:
        """Read the snapshot; fall back to the seed board if absent or corrupt."""
        try:
            payload = self.read_raw()
            if payload is not None:
                return collection_from_json(payload)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error loading snapshot {self.slot}: {e}")
        except (ValueError, TypeError, KeyError, OverflowError, RecursionError) as e:
            logger.warning(f"Corrupt snapshot in slot {self.slot}, using defaults: {e}")
        return default_categories()

    def save(self, collection: Collection) -> bool:
        """Replace the slot with the given snapshot. Returns False on failure."""
        if not collection:
            logger.debug(f"Skipping save of empty collection to {self.slot}")
            return False
        try:
            self.write_raw(collection_to_json(collection))
            return True
        except (sqlite3.Error, OSError, ValueError, TypeError) as e:
            logger.error(f"Error saving snapshot {self.slot}: {e}")
            return False

    def clear(self) -> bool:
        """Drop the slot so the next load() returns the seed board."""
        try:
            conn = self._open()
            try:
                with conn:
                    conn.execute("DELETE FROM snapshots WHERE key = ?", (self.slot,))
            finally:
                conn.close()
            return True
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error clearing snapshot {self.slot}: {e}")
            return False

    def write_raw(self, payload: str) -> None:
        """Store a raw payload verbatim (for imports and fixtures). May raise."""
        now = datetime.now(timezone.utc).isoformat()
        conn = self._open()
        try:
            with conn:
                conn.execute("""
                    INSERT INTO snapshots (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """, (self.slot, payload, now))
        finally:
            conn.close()
