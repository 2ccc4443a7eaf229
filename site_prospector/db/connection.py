"""
SQLite connection management.

``get_connection()`` is the only way the application opens the history
database. Each connection:
  - Enables foreign key enforcement (OFF by default in SQLite).
  - Uses WAL journal mode so the dashboard can read while the API writes.
  - Sets a busy timeout so concurrent writers wait instead of failing.
  - Uses the ``sqlite3.Row`` factory for name-based column access.
  - Commits on clean exit and rolls back on exception.

Usage::

    from site_prospector.db.connection import get_connection

    with get_connection(config.database.db_path) as conn:
        AnalysisRepository(conn).list_history()
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Generator

from site_prospector.config import DatabaseConfig

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured SQLite connection.

    Parent directories of ``db_path`` are created on demand.

    Args:
        db_path: Database file path, or ``":memory:"`` in tests.
        wal_mode: Enable WAL journal mode.
        busy_timeout_ms: Lock wait before ``OperationalError`` is raised.

    Yields:
        An open ``sqlite3.Connection``.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms};")
        if wal_mode and db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        conn.close()


def connect_from_config(config: DatabaseConfig) -> AbstractContextManager[sqlite3.Connection]:
    """Shorthand for ``get_connection(**config)``."""
    return get_connection(
        config.db_path,
        wal_mode=config.wal_mode,
        busy_timeout_ms=config.busy_timeout_ms,
    )
