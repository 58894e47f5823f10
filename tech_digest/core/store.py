"""SQLite persistence for subscriber ids."""

from __future__ import annotations

from contextlib import closing
import logging
from pathlib import Path
import sqlite3

logger = logging.getLogger(__name__)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    chat_id INTEGER PRIMARY KEY,
    username TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""


class SqliteSubscriberStore:
    """Stores Telegram chat ids and optional usernames in a SQLite file.

    A connection is opened per operation so the store can be used from the
    polling thread and the scheduler thread alike. SQLite serializes writers.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.execute(_SCHEMA)
        logger.debug("Subscriber store ready | path=%s", self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def load(self) -> list[tuple[int, str | None]]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT chat_id, username FROM users ORDER BY created_at").fetchall()
        return [(int(chat_id), username) for chat_id, username in rows]

    def save(self, chat_id: int, username: str | None = None) -> None:
        with closing(self._connect()) as conn, conn:
            if username:
                conn.execute(
                    "INSERT INTO users (chat_id, username) VALUES (?, ?) "
                    "ON CONFLICT(chat_id) DO UPDATE SET username = excluded.username",
                    (chat_id, username),
                )
            else:
                conn.execute("INSERT OR IGNORE INTO users (chat_id) VALUES (?)", (chat_id,))

    def count(self) -> int:
        with closing(self._connect()) as conn:
            (total,) = conn.execute("SELECT COUNT(*) FROM users").fetchone()
        return int(total)
