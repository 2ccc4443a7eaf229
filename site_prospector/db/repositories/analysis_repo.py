"""
Repository for persisted analyses (the ``analyses`` table).

The full ``AnalysisResult`` is stored as camelCase JSON; ``url``,
``overall_score`` and ``created_at`` are copied into columns so history
listings never have to decode the payload.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from site_prospector.db.repositories.base import BaseRepository
from site_prospector.models.analysis import AnalysisResult, HistoryEntry, StoredAnalysis

logger = logging.getLogger(__name__)

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class AnalysisRepository(BaseRepository):
    """Read/write access to ``analyses``."""

    def insert(self, result: AnalysisResult) -> int:
        """Persist an analysis and return its new id."""
        self.execute(
            """
            INSERT INTO analyses (url, overall_score, analysis_json, created_at)
            VALUES (?, ?, ?, ?);
            """,
            (
                result.url,
                result.overall_score.overall,
                json.dumps(result.to_wire()),
                _format_timestamp(result.timestamp),
            ),
        )
        analysis_id = self.last_insert_rowid()
        logger.debug("Stored analysis id=%d url=%s", analysis_id, result.url)
        return analysis_id

    def get_by_id(self, analysis_id: int) -> Optional[StoredAnalysis]:
        """Fetch one stored analysis, or ``None`` if the id is unknown."""
        row = self.fetchone("SELECT * FROM analyses WHERE id = ?;", (analysis_id,))
        return _row_to_stored(row) if row else None

    def list_history(
        self,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> list[HistoryEntry]:
        """List analyses newest first.

        Args:
            limit: Maximum number of entries returned.
            search: Optional case-insensitive substring filter on ``url``.

        Returns:
            ``HistoryEntry`` list ordered by ``created_at`` descending
            (ties broken by id, newest insert first).
        """
        if search:
            rows = self.fetchall(
                """
                SELECT id, url, overall_score, created_at FROM analyses
                WHERE url LIKE ? ESCAPE '\\'
                ORDER BY created_at DESC, id DESC
                LIMIT ?;
                """,
                (f"%{_escape_like(search)}%", limit),
            )
        else:
            rows = self.fetchall(
                """
                SELECT id, url, overall_score, created_at FROM analyses
                ORDER BY created_at DESC, id DESC
                LIMIT ?;
                """,
                (limit,),
            )
        return [_row_to_entry(r) for r in rows]

    def list_stored(self, limit: int = 50) -> list[StoredAnalysis]:
        """Full stored analyses, newest first (used by export)."""
        rows = self.fetchall(
            "SELECT * FROM analyses ORDER BY created_at DESC, id DESC LIMIT ?;",
            (limit,),
        )
        return [_row_to_stored(r) for r in rows]

    def count(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM analyses;")
        return int(row["n"]) if row else 0

    def delete(self, analysis_id: int) -> bool:
        """Delete one analysis. Returns ``False`` if the id did not exist."""
        cursor = self.execute("DELETE FROM analyses WHERE id = ?;", (analysis_id,))
        return cursor.rowcount > 0

    def clear(self) -> int:
        """Delete every analysis and return how many were removed."""
        cursor = self.execute("DELETE FROM analyses;")
        logger.info("Cleared %d stored analyses.", cursor.rowcount)
        return cursor.rowcount


# ── Row mapping ────────────────────────────────────────────────────────────────

def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def _parse_timestamp(raw: str) -> datetime:
    return datetime.strptime(raw, _TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_entry(row: sqlite3.Row) -> HistoryEntry:
    return HistoryEntry(
        id=row["id"],
        url=row["url"],
        overall_score=row["overall_score"],
        timestamp=_parse_timestamp(row["created_at"]),
    )


def _row_to_stored(row: sqlite3.Row) -> StoredAnalysis:
    return StoredAnalysis(
        id=row["id"],
        url=row["url"],
        overall_score=row["overall_score"],
        timestamp=_parse_timestamp(row["created_at"]),
        analysis=AnalysisResult.from_wire(json.loads(row["analysis_json"])),
    )
