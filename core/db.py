"""
SQLite-backed profile store.

Holds each profile's raw CSV text and its custom summary definitions
(as JSON). The pipeline only needs ``get``/``set`` of raw text keyed by
profile id; the remaining methods back the profile service.
"""
import json
import sqlite3
from typing import List, Optional

from core.config import get_settings
from core.exceptions import ProfileNotFoundError, StorageError
from core.logger import setup_logger
from core.schema import Profile

logger = setup_logger(__name__)

_PROFILE_COLUMNS = (
    "id, name, csv_data, created_at, last_active, description, color, custom_summaries"
)


class Database:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_settings().database_path

    def get_connection(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        conn = self.get_connection()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor
        except sqlite3.Error as e:
            logger.error(f"Database statement failed: {e}")
            raise StorageError("Profile store operation failed", details={"error": str(e)})
        finally:
            conn.close()

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        conn = self.get_connection()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Database query failed: {e}")
            raise StorageError("Profile store query failed", details={"error": str(e)})
        finally:
            conn.close()

    def init_db(self) -> None:
        """Initialize database tables."""
        self._execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                csv_data TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                last_active TEXT NOT NULL,
                description TEXT,
                color TEXT,
                custom_summaries TEXT NOT NULL DEFAULT '[]'
            )
        """)
        self._execute("""
            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        """)
        logger.info(f"Database initialized at {self.db_path}")

    # Raw text store

    def get(self, profile_id: str) -> Optional[str]:
        """Stored CSV text for a profile, or None when the profile is unknown."""
        rows = self._query("SELECT csv_data FROM profiles WHERE id = ?", (profile_id,))
        return rows[0]["csv_data"] if rows else None

    def set(self, profile_id: str, raw_text: str) -> None:
        """Replace a profile's CSV text."""
        cursor = self._execute(
            "UPDATE profiles SET csv_data = ? WHERE id = ?",
            (raw_text, profile_id)
        )
        if cursor.rowcount == 0:
            raise ProfileNotFoundError(
                f"Profile with id {profile_id} not found",
                details={"profile_id": profile_id}
            )

    # Profiles

    @staticmethod
    def _to_profile(row: sqlite3.Row) -> Profile:
        return Profile(
            id=row["id"],
            name=row["name"],
            csv_data=row["csv_data"],
            created_at=row["created_at"],
            last_active=row["last_active"],
            description=row["description"],
            color=row["color"],
            custom_summaries=json.loads(row["custom_summaries"] or "[]"),
        )

    def list_profiles(self) -> List[Profile]:
        rows = self._query(f"SELECT {_PROFILE_COLUMNS} FROM profiles ORDER BY created_at, rowid")
        return [self._to_profile(row) for row in rows]

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        rows = self._query(f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE id = ?", (profile_id,))
        return self._to_profile(rows[0]) if rows else None

    def save_profile(self, profile: Profile) -> None:
        """Insert or fully replace a profile record."""
        summaries = json.dumps([summary.model_dump() for summary in profile.custom_summaries])
        self._execute(
            f"""
            INSERT INTO profiles ({_PROFILE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                csv_data = excluded.csv_data,
                created_at = excluded.created_at,
                last_active = excluded.last_active,
                description = excluded.description,
                color = excluded.color,
                custom_summaries = excluded.custom_summaries
            """,
            (
                profile.id, profile.name, profile.csv_data, profile.created_at,
                profile.last_active, profile.description, profile.color, summaries,
            )
        )

    def delete_profile(self, profile_id: str) -> bool:
        cursor = self._execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
        return cursor.rowcount > 0

    # Active profile

    def set_active_id(self, profile_id: Optional[str]) -> None:
        self._execute(
            "INSERT INTO app_state (key, value) VALUES ('active_profile', ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (profile_id,)
        )

    def get_active_id(self) -> Optional[str]:
        rows = self._query("SELECT value FROM app_state WHERE key = 'active_profile'")
        return rows[0]["value"] if rows else None


# Global DB instance
_db: Optional[Database] = None


def get_db() -> Database:
    global _db
    if _db is None:
        _db = Database()
        _db.init_db()
    return _db


def reset_db() -> None:
    """Drop the cached instance (useful for testing)."""
    global _db
    _db = None
