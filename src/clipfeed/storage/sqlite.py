"""SQLite implementation of the video repository."""

import logging
import sqlite3
import threading
from datetime import datetime, timezone

from clipfeed.config import settings
from clipfeed.errors import StorageFailure, ValidationError
from clipfeed.models import Video
from clipfeed.storage.repository import VideoRepository

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value; larger Python ints cannot be bound.
MAX_ROWID = 2**63 - 1
MIN_ROWID = -(2**63)


def _fits_rowid(value: int) -> bool:
    return MIN_ROWID <= value <= MAX_ROWID


class SQLiteVideoRepository(VideoRepository):
    """SQLite-backed video storage.

    Implements VideoRepository using stdlib sqlite3. A single connection
    is shared by the request threads; every operation runs its statements
    and commit under one lock, so an increment and the read of its result
    can never interleave with another caller's.
    """

    _CREATE_TABLE = """
        CREATE TABLE IF NOT EXISTS videos (
            id           INTEGER PRIMARY KEY AUTOINCREMENT,
            title        TEXT NOT NULL,
            storage_name TEXT NOT NULL UNIQUE,
            likes        INTEGER NOT NULL DEFAULT 0 CHECK (likes >= 0),
            created_at   TEXT NOT NULL
        )
    """

    _COLUMNS = "id, title, storage_name, likes, created_at"

    def __init__(self, db_path: str | None = None) -> None:
        """Initialize the repository.

        Args:
            db_path: Path to SQLite database file. Defaults to settings.db_path.
                     Use ":memory:" for testing.
        """
        self._db_path = db_path or str(settings.db_path)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        with self._lock:
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute(self._CREATE_TABLE)
            self._conn.commit()

    def insert(self, title: str, storage_name: str) -> int:
        if not title or not title.strip():
            raise ValidationError("title required")
        if not storage_name or not storage_name.strip():
            raise ValidationError("storage name required")

        sql = "INSERT INTO videos (title, storage_name, likes, created_at) VALUES (?, ?, 0, ?)"
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock, self._conn:
                cursor = self._conn.execute(sql, (title.strip(), storage_name, created_at))
                video_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to insert video: {e}") from e
        logger.debug("Inserted video %d (%s)", video_id, storage_name)
        return video_id

    def get(self, video_id: int) -> Video | None:
        if not _fits_rowid(video_id):
            return None
        sql = f"SELECT {self._COLUMNS} FROM videos WHERE id = ?"
        try:
            with self._lock:
                row = self._conn.execute(sql, (video_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to read video {video_id}: {e}") from e
        if row is None:
            return None
        return self._row_to_video(row)

    def list_before(self, cursor: int | None, limit: int) -> list[Video]:
        if limit < 1:
            return []
        if cursor is not None and cursor > MAX_ROWID:
            cursor = None
        elif cursor is not None and cursor < MIN_ROWID:
            return []
        if cursor is None:
            sql = f"SELECT {self._COLUMNS} FROM videos ORDER BY id DESC LIMIT ?"
            params: tuple = (limit,)
        else:
            sql = f"SELECT {self._COLUMNS} FROM videos WHERE id < ? ORDER BY id DESC LIMIT ?"
            params = (cursor, limit)
        try:
            with self._lock:
                rows = self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to list videos: {e}") from e
        return [self._row_to_video(row) for row in rows]

    def increment_likes(self, video_id: int) -> int | None:
        if not _fits_rowid(video_id):
            return None
        update = "UPDATE videos SET likes = likes + 1 WHERE id = ?"
        select = "SELECT likes FROM videos WHERE id = ?"
        try:
            with self._lock, self._conn:
                if self._conn.execute(update, (video_id,)).rowcount == 0:
                    return None
                row = self._conn.execute(select, (video_id,)).fetchone()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to like video {video_id}: {e}") from e
        return row["likes"]

    def count(self) -> int:
        try:
            with self._lock:
                row = self._conn.execute("SELECT COUNT(*) FROM videos").fetchone()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to count videos: {e}") from e
        return row[0]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @staticmethod
    def _row_to_video(row: sqlite3.Row) -> Video:
        """Convert a database row to a Video model."""
        return Video(
            id=row["id"],
            title=row["title"],
            storage_name=row["storage_name"],
            likes=row["likes"],
            created_at=row["created_at"],
        )
