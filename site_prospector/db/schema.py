"""
SQLite schema DDL for the analysis history store.

One table holds every completed analysis:

  analyses
    id             autoincrement primary key (the history item id)
    url            normalized URL that was analysed
    overall_score  integer 0–100, denormalized for listing and sorting
    analysis_json  full ``AnalysisResult.to_wire()`` payload
    created_at     analysis timestamp, ISO-8601 UTC with microseconds

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_DDL_ANALYSES = """
CREATE TABLE IF NOT EXISTS analyses (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    url             TEXT    NOT NULL,
    overall_score   INTEGER NOT NULL CHECK (overall_score BETWEEN 0 AND 100),
    analysis_json   TEXT    NOT NULL,
    created_at      TEXT    NOT NULL
);
"""

_DDL_ANALYSES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_analyses_created
    ON analyses(created_at DESC);
"""

_ALL_DDL: list[str] = [
    _DDL_ANALYSES,
    _DDL_ANALYSES_INDEXES,
]

ALL_TABLE_NAMES: list[str] = ["analyses"]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn`` (idempotent)."""
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d table(s), indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return index names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
