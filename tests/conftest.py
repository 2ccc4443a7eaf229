"""
Shared pytest fixtures for the Site Prospector test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the schema and
    all migrations applied. Created anew for each test that requests it.
  - Sample input records (audit, site info, freshness) matching the worked
    scoring example: overall 86, one high-priority performance recommendation.
  - ``make_result``: factory for scored ``AnalysisResult`` objects.
  - ``app_config`` / ``config_file``: configuration rooted in ``tmp_path`` so
    no test touches ``data/``.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from site_prospector.config import (
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    ReportsConfig,
)
from site_prospector.db.migrations import init_database
from site_prospector.models.analysis import AnalysisResult
from site_prospector.models.audit import (
    AuditMetrics,
    AuditScores,
    PerformanceAudit,
    SeoDetails,
)
from site_prospector.models.freshness import FreshnessFound, FreshnessInfo
from site_prospector.models.site import SiteInfo, SocialLinks
from site_prospector.scoring import compute_overall_score, generate_recommendations
from site_prospector.taxonomy.categories import FreshnessSource

ANALYZED_AT = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with schema + migrations.

    Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    init_database(conn)
    yield conn
    conn.close()


# ── Sample domain objects ─────────────────────────────────────────────────────

@pytest.fixture
def sample_audit() -> PerformanceAudit:
    """Audit with performance 45, SEO 95, mobile friendly, all SEO flags set."""
    return PerformanceAudit(
        scores=AuditScores(
            performance=45,
            accessibility=88,
            best_practices=92,
            seo=95,
            mobile_friendly=True,
        ),
        metrics=AuditMetrics(
            first_contentful_paint="1.2 s",
            largest_contentful_paint="2.1 s",
            total_blocking_time="120 ms",
            cumulative_layout_shift="0.02",
            speed_index="1.9 s",
        ),
        seo_details=SeoDetails(
            has_viewport=True,
            has_meta=True,
            has_title=True,
            has_canonical=True,
            robots_txt=True,
        ),
    )


@pytest.fixture
def sample_site_info() -> SiteInfo:
    """800 words, 9/10 images with alt, 15 internal links, every social platform."""
    return SiteInfo(
        title="Example Domain",
        description="An example page.",
        images=10,
        images_with_alt=9,
        all_links=20,
        internal_links=15,
        external_links=5,
        word_count=800,
        has_structured_data=True,
        social_links=SocialLinks(facebook=True, twitter=True, linkedin=True, instagram=True),
    )


@pytest.fixture
def sample_freshness() -> FreshnessFound:
    """Content updated five days before ``ANALYZED_AT``."""
    return FreshnessFound(
        last_updated=ANALYZED_AT - timedelta(days=5),
        age_in_days=5,
        source=FreshnessSource.HTTP_HEADER,
    )


@pytest.fixture
def make_result(
    sample_audit: PerformanceAudit,
    sample_site_info: SiteInfo,
    sample_freshness: FreshnessFound,
) -> Callable[..., AnalysisResult]:
    """Factory building a scored ``AnalysisResult``.

    Keyword overrides: ``url``, ``timestamp``, ``audit``, ``site_info``,
    ``freshness``. Score and recommendations are always computed, never faked.
    """

    def _make(
        url: str = "https://example.com",
        timestamp: datetime = ANALYZED_AT,
        audit: PerformanceAudit | None = None,
        site_info: SiteInfo | None = None,
        freshness: FreshnessInfo | None = None,
    ) -> AnalysisResult:
        audit = audit or sample_audit
        site_info = site_info or sample_site_info
        freshness = freshness or sample_freshness
        return AnalysisResult(
            url=url,
            overall_score=compute_overall_score(audit, site_info, freshness),
            lighthouse_results=audit,
            site_info=site_info,
            last_updated=freshness,
            recommendations=tuple(generate_recommendations(audit, site_info, freshness)),
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def sample_result(make_result: Callable[..., AnalysisResult]) -> AnalysisResult:
    return make_result()


# ── Configuration fixtures ────────────────────────────────────────────────────

@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """``AppConfig`` whose database, reports and settings live under ``tmp_path``."""
    return AppConfig(
        database=DatabaseConfig(db_path=str(tmp_path / "db" / "test.db")),
        reports=ReportsConfig(
            output_dir=str(tmp_path / "reports"),
            settings_file=str(tmp_path / "settings.json"),
        ),
        logging=LoggingConfig(level="WARNING", log_file=""),
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A TOML config file equivalent to ``app_config``."""
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join([
            "[database]",
            f'db_path = "{(tmp_path / "db" / "test.db").as_posix()}"',
            "",
            "[reports]",
            f'output_dir = "{(tmp_path / "reports").as_posix()}"',
            f'settings_file = "{(tmp_path / "settings.json").as_posix()}"',
            "",
            "[logging]",
            'level = "WARNING"',
            'log_file = ""',
            "",
        ]),
        encoding="utf-8",
    )
    return path
