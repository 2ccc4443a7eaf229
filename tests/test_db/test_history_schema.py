"""
Tests for the history database schema, migrations and connection helper.

What we test
------------
1. apply_schema creates the analyses table and its date index; idempotent.
2. run_migrations applies each migration once and records it.
3. The score CHECK constraint rejects out-of-range rows.
4. get_connection creates parent directories, commits on success and rolls
   back on error.
"""

from __future__ import annotations

import sqlite3

import pytest

from site_prospector.db.connection import connect_from_config, get_connection
from site_prospector.db.migrations import MIGRATIONS, init_database, run_migrations
from site_prospector.db.schema import (
    ALL_TABLE_NAMES,
    apply_schema,
    get_existing_indexes,
    get_existing_tables,
)


class TestSchema:
    def test_tables_created(self, in_memory_db):
        tables = get_existing_tables(in_memory_db)
        for name in ALL_TABLE_NAMES:
            assert name in tables
        assert "schema_versions" in tables

    def test_indexes_created(self, in_memory_db):
        indexes = get_existing_indexes(in_memory_db)
        assert "idx_analyses_created" in indexes
        assert "idx_analyses_url" in indexes
        assert "idx_analyses_score" in indexes

    def test_apply_schema_idempotent(self, in_memory_db):
        apply_schema(in_memory_db)
        apply_schema(in_memory_db)
        assert "analyses" in get_existing_tables(in_memory_db)

    def test_score_check_constraint(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            in_memory_db.execute(
                "INSERT INTO analyses (url, overall_score, analysis_json, created_at) "
                "VALUES ('https://x', 101, '{}', '2026-01-01T00:00:00.000000Z');"
            )


class TestMigrations:
    def test_all_recorded(self, in_memory_db):
        rows = in_memory_db.execute("SELECT version_id FROM schema_versions;").fetchall()
        assert {r["version_id"] for r in rows} == set(MIGRATIONS)

    def test_second_run_applies_nothing(self, in_memory_db):
        assert run_migrations(in_memory_db) == 0

    def test_fresh_database_applies_all(self):
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        try:
            assert init_database(conn) == len(MIGRATIONS)
            assert init_database(conn) == 0
        finally:
            conn.close()


class TestConnection:
    def test_creates_parent_dirs_and_commits(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "history.db"
        with get_connection(str(db_path)) as conn:
            init_database(conn)
            conn.execute(
                "INSERT INTO analyses (url, overall_score, analysis_json, created_at) "
                "VALUES ('https://x', 50, '{}', '2026-01-01T00:00:00.000000Z');"
            )
        assert db_path.exists()

        with get_connection(str(db_path)) as conn:
            assert conn.execute("SELECT COUNT(*) AS n FROM analyses;").fetchone()["n"] == 1

    def test_rolls_back_on_error(self, tmp_path):
        db_path = str(tmp_path / "history.db")
        with get_connection(db_path) as conn:
            init_database(conn)

        with pytest.raises(RuntimeError):
            with get_connection(db_path) as conn:
                conn.execute(
                    "INSERT INTO analyses (url, overall_score, analysis_json, created_at) "
                    "VALUES ('https://x', 50, '{}', '2026-01-01T00:00:00.000000Z');"
                )
                raise RuntimeError("boom")

        with get_connection(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) AS n FROM analyses;").fetchone()["n"] == 0

    def test_wal_mode(self, app_config):
        with connect_from_config(app_config.database) as conn:
            mode = conn.execute("PRAGMA journal_mode;").fetchone()[0]
        assert mode.lower() == "wal"
