"""
Tests for AnalysisRepository.

What we test
------------
1. insert() returns increasing ids and stores the denormalized columns.
2. get_by_id() restores the full AnalysisResult; unknown id → None.
3. list_history(): newest first, limit, case-insensitive URL search with
   LIKE wildcards treated literally.
4. list_stored(), count(), delete(), clear().
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from site_prospector.db.repositories.analysis_repo import AnalysisRepository
from site_prospector.models.analysis import HistoryEntry

BASE_TIME = datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _seed(repo: AnalysisRepository, make_result, urls: list[str]) -> list[int]:
    """Insert one analysis per URL, each a day newer than the last."""
    return [
        repo.insert(make_result(url=url, timestamp=BASE_TIME + timedelta(days=i)))
        for i, url in enumerate(urls)
    ]


# ── Tests ─────────────────────────────────────────────────────────────────────

class TestInsertAndGet:
    def test_insert_returns_ids(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        ids = _seed(repo, make_result, ["https://a.example", "https://b.example"])
        assert ids == [1, 2]

    def test_columns_denormalized(self, in_memory_db, sample_result):
        repo = AnalysisRepository(in_memory_db)
        analysis_id = repo.insert(sample_result)
        row = in_memory_db.execute(
            "SELECT url, overall_score, created_at FROM analyses WHERE id = ?;",
            (analysis_id,),
        ).fetchone()
        assert row["url"] == "https://example.com"
        assert row["overall_score"] == 86
        assert row["created_at"] == "2026-10-19T12:00:00.000000Z"

    def test_get_by_id_round_trip(self, in_memory_db, sample_result):
        repo = AnalysisRepository(in_memory_db)
        stored = repo.get_by_id(repo.insert(sample_result))
        assert stored is not None
        assert stored.analysis == sample_result
        assert stored.timestamp == sample_result.timestamp

    def test_get_unknown_id(self, in_memory_db):
        assert AnalysisRepository(in_memory_db).get_by_id(999) is None


class TestListHistory:
    def test_newest_first(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        _seed(repo, make_result, ["https://a.example", "https://b.example", "https://c.example"])
        entries = repo.list_history()
        assert all(isinstance(e, HistoryEntry) for e in entries)
        assert [e.url for e in entries] == [
            "https://c.example", "https://b.example", "https://a.example",
        ]

    def test_same_timestamp_newest_insert_first(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        first = repo.insert(make_result(url="https://a.example"))
        second = repo.insert(make_result(url="https://b.example"))
        assert [e.id for e in repo.list_history()] == [second, first]

    def test_limit(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        _seed(repo, make_result, [f"https://site{i}.example" for i in range(5)])
        assert len(repo.list_history(limit=2)) == 2

    def test_search_case_insensitive(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        _seed(repo, make_result, ["https://Shop.example", "https://blog.example"])
        assert [e.url for e in repo.list_history(search="shop")] == ["https://Shop.example"]

    def test_search_wildcards_are_literal(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        _seed(repo, make_result, ["https://a_b.example", "https://axb.example"])
        assert [e.url for e in repo.list_history(search="a_b")] == ["https://a_b.example"]
        assert repo.list_history(search="100%") == []


class TestMaintenance:
    def test_count_and_list_stored(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        _seed(repo, make_result, ["https://a.example", "https://b.example"])
        assert repo.count() == 2
        stored = repo.list_stored(limit=10)
        assert [s.url for s in stored] == ["https://b.example", "https://a.example"]
        assert stored[0].analysis.overall_score.overall == stored[0].overall_score

    def test_delete(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        first, second = _seed(repo, make_result, ["https://a.example", "https://b.example"])
        assert repo.delete(first) is True
        assert repo.delete(first) is False
        assert [e.id for e in repo.list_history()] == [second]

    def test_clear(self, in_memory_db, make_result):
        repo = AnalysisRepository(in_memory_db)
        _seed(repo, make_result, ["https://a.example", "https://b.example"])
        assert repo.clear() == 2
        assert repo.count() == 0
        assert repo.list_history() == []
