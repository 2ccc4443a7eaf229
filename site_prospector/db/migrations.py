"""
Sequential schema migrations.

A lightweight scheme for a local tool (no Alembic, no down migrations):

  1. A ``schema_versions`` table records applied migration IDs.
  2. Each migration is a function taking a ``sqlite3.Connection``.
  3. ``run_migrations()`` applies, in registry order, those not yet recorded.

The baseline tables come from ``apply_schema()``; migrations hold
incremental changes only.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable

logger = logging.getLogger(__name__)

MigrationFn = Callable[[sqlite3.Connection], None]


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_versions (
            version_id  TEXT    NOT NULL PRIMARY KEY,
            applied_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
            description TEXT
        );
    """)
    conn.commit()


def _get_applied_versions(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT version_id FROM schema_versions;").fetchall()
    return {row["version_id"] for row in rows}


def _mark_applied(conn: sqlite3.Connection, version_id: str, description: str) -> None:
    conn.execute(
        "INSERT INTO schema_versions(version_id, description) VALUES (?, ?);",
        (version_id, description),
    )
    conn.commit()


# ── Migration functions ────────────────────────────────────────────────────────

def migration_0001_baseline(conn: sqlite3.Connection) -> None:
    """Anchor the version history; the tables themselves come from apply_schema()."""


def migration_0002_history_indexes(conn: sqlite3.Connection) -> None:
    """Index url and overall_score for history search and score sorting."""
    conn.executescript("""
        CREATE INDEX IF NOT EXISTS idx_analyses_url
            ON analyses(url);
        CREATE INDEX IF NOT EXISTS idx_analyses_score
            ON analyses(overall_score DESC, created_at DESC);
    """)
    conn.commit()


# ── Registry ──────────────────────────────────────────────────────────────────

MIGRATIONS: dict[str, tuple[MigrationFn, str]] = {
    "0001_baseline": (
        migration_0001_baseline,
        "Baseline: analyses table created by apply_schema()",
    ),
    "0002_history_indexes": (
        migration_0002_history_indexes,
        "Add url and overall_score indexes on analyses",
    ),
}


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply all pending migrations.

    Returns:
        Number of migrations applied in this call.
    """
    _ensure_version_table(conn)
    applied = _get_applied_versions(conn)

    count = 0
    for version_id, (fn, description) in MIGRATIONS.items():
        if version_id in applied:
            logger.debug("Migration %s already applied; skipping.", version_id)
            continue

        logger.info("Applying migration %s: %s", version_id, description)
        try:
            fn(conn)
            _mark_applied(conn, version_id, description)
            count += 1
        except Exception as exc:
            conn.rollback()
            logger.error("Migration %s FAILED: %s", version_id, exc)
            raise

    if count:
        logger.info("Applied %d migration(s).", count)
    else:
        logger.debug("No pending migrations.")

    return count


def init_database(conn: sqlite3.Connection) -> int:
    """Apply the baseline schema and then any pending migrations."""
    from site_prospector.db.schema import apply_schema

    apply_schema(conn)
    return run_migrations(conn)
