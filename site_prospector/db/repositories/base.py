"""
Base repository with shared SQLite execution helpers.

Repositories receive an open ``sqlite3.Connection`` (from
``get_connection()``); transaction boundaries belong to the caller.
SQL lives in repository methods, and repositories return Pydantic models
rather than raw rows.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


class BaseRepository:
    """Shared SQL helpers.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        """Execute one statement with ``?`` or ``:name`` placeholders."""
        logger.debug("SQL: %s | params: %s", " ".join(sql.split()), params)
        return self.conn.execute(sql, params)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def last_insert_rowid(self) -> int:
        """Rowid of the last successful INSERT on this connection."""
        row = self.fetchone("SELECT last_insert_rowid() AS rowid;")
        assert row is not None
        return int(row["rowid"])
