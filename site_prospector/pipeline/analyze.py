"""
Analysis pipeline — collect, score, recommend, persist.

``AnalysisPipeline.run(url)`` is the single entry point shared by the CLI,
the HTTP API and the dashboard:

  1. Normalize the URL (``https://`` is prepended when no scheme is given).
  2. Run the audit, site-info and freshness collectors concurrently on one
     shared ``httpx.AsyncClient``; fetch competitor data if requested.
  3. Score with ``compute_overall_score()`` and derive recommendations with
     ``generate_recommendations()``. A ``SiteInfoError`` is scored as
     ``SiteInfo.empty()`` but stored as the error it was.
  4. Build the ``AnalysisResult`` (UTC timestamp) and optionally persist it.

The audit is the only mandatory signal: without it there is no performance,
SEO or mobile score, so an audit failure raises ``AnalysisError``. Every
other collector degrades to its error / not-found variant.

Usage::

    pipeline = AnalysisPipeline(config)
    run = pipeline.run("example.com")
    print(run.result.overall_score.overall, run.analysis_id)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from site_prospector.collectors.competitors import StubCompetitorClient
from site_prospector.collectors.errors import CollectorError
from site_prospector.collectors.freshness import detect_freshness
from site_prospector.collectors.lighthouse import LighthouseRunner
from site_prospector.collectors.site_info import fetch_site_info
from site_prospector.config import AppConfig
from site_prospector.db.connection import get_connection
from site_prospector.db.migrations import init_database
from site_prospector.db.repositories.analysis_repo import AnalysisRepository
from site_prospector.models.analysis import AnalysisResult
from site_prospector.models.competitor import CompetitorInfo
from site_prospector.models.site import SiteInfo
from site_prospector.scoring import compute_overall_score, generate_recommendations
from site_prospector.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """An analysis could not be completed.

    Attributes:
        details: Underlying error text, surfaced to API clients.
    """

    def __init__(self, message: str, details: str = "") -> None:
        super().__init__(message)
        self.details = details


@dataclass(frozen=True)
class AnalysisRun:
    """Outcome of ``AnalysisPipeline.run()``.

    ``analysis_id`` is ``None`` when the run was not persisted.
    """

    result: AnalysisResult
    analysis_id: Optional[int] = None


def normalize_url(raw: str) -> str:
    """Trim ``raw`` and prepend ``https://`` when it has no http(s) scheme.

    Raises:
        ValueError: If ``raw`` is blank or has no host.
    """
    url = (raw or "").strip()
    if not url:
        raise ValueError("URL is required")
    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"
    if not urlparse(url).hostname:
        raise ValueError(f"Invalid URL: {raw!r}")
    return url


class AnalysisPipeline:
    """Runs one website analysis end to end.

    Collaborators are injectable for tests; by default they are built from
    ``config``.

    Attributes:
        config: Application configuration.
        db_path: History database path (defaults to ``config.database.db_path``).
        runner: Performance audit runner.
        competitor_client: Competitor data client.
        http_client: Shared ``httpx.AsyncClient``; when ``None`` one is
            opened per analysis.
        clock: Returns the analysis timestamp (``utcnow`` by default).
    """

    def __init__(
        self,
        config: AppConfig,
        db_path: Optional[str] = None,
        runner: Optional[LighthouseRunner] = None,
        competitor_client: Optional[StubCompetitorClient] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path
        self.runner = runner or LighthouseRunner(config.audit)
        self.competitor_client = competitor_client or StubCompetitorClient(
            api_key=config.competitors.api_key or None
        )
        self.http_client = http_client
        self.clock = clock

    def run(
        self,
        url: str,
        include_competitors: bool = True,
        save: bool = True,
    ) -> AnalysisRun:
        """Synchronous wrapper around ``arun()`` for CLI use."""
        return asyncio.run(self.arun(url, include_competitors=include_competitors, save=save))

    async def arun(
        self,
        url: str,
        include_competitors: bool = True,
        save: bool = True,
    ) -> AnalysisRun:
        """Analyze ``url`` and optionally persist the result.

        Raises:
            ValueError: If ``url`` is blank or malformed.
            AnalysisError: If the performance audit fails or the result
                cannot be stored.
        """
        result = await self.analyze(url, include_competitors=include_competitors)
        analysis_id = self.save(result) if save else None
        return AnalysisRun(result=result, analysis_id=analysis_id)

    async def analyze(self, url: str, include_competitors: bool = True) -> AnalysisResult:
        """Collect, score and recommend without persisting."""
        target = normalize_url(url)
        logger.info("Analysis starting | url=%s | competitors=%s", target, include_competitors)

        if self.http_client is not None:
            result = await self._collect_and_score(target, include_competitors, self.http_client)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                result = await self._collect_and_score(target, include_competitors, client)

        logger.info(
            "Analysis complete | url=%s | overall=%d | recommendations=%d",
            target, result.overall_score.overall, len(result.recommendations),
        )
        return result

    def save(self, result: AnalysisResult) -> int:
        """Persist ``result`` and return its history id.

        Raises:
            AnalysisError: If the database write fails.
        """
        try:
            with get_connection(
                self.db_path,
                wal_mode=self.config.database.wal_mode,
                busy_timeout_ms=self.config.database.busy_timeout_ms,
            ) as conn:
                init_database(conn)
                analysis_id = AnalysisRepository(conn).insert(result)
        except Exception as exc:
            logger.error("Failed to store analysis | url=%s | error=%s", result.url, exc)
            raise AnalysisError("Failed to store analysis", details=str(exc)) from exc

        logger.info("Analysis stored | id=%d | url=%s", analysis_id, result.url)
        return analysis_id

    async def _collect_and_score(
        self,
        url: str,
        include_competitors: bool,
        client: httpx.AsyncClient,
    ) -> AnalysisResult:
        audit_outcome, site_info, freshness = await asyncio.gather(
            self.runner.audit(url),
            fetch_site_info(url, self.config.fetch, client),
            detect_freshness(url, self.config.fetch, client),
            return_exceptions=True,
        )

        if isinstance(audit_outcome, BaseException):
            if not isinstance(audit_outcome, Exception):
                raise audit_outcome
            if isinstance(audit_outcome, CollectorError):
                logger.error("Audit failed | url=%s | error=%s", url, audit_outcome)
            else:
                logger.error(
                    "Audit failed unexpectedly | url=%s | error=%r", url, audit_outcome,
                    exc_info=audit_outcome,
                )
            raise AnalysisError(
                "Failed to analyze website", details=str(audit_outcome)
            ) from audit_outcome
        # The other collectors convert their own failures into result variants.
        for outcome in (site_info, freshness):
            if isinstance(outcome, BaseException):
                raise outcome

        competitor_info = self._competitor_info(url) if include_competitors else None

        scoring_site_info = site_info if isinstance(site_info, SiteInfo) else SiteInfo.empty()
        breakdown = compute_overall_score(audit_outcome, scoring_site_info, freshness)
        recommendations = generate_recommendations(audit_outcome, scoring_site_info, freshness)

        return AnalysisResult(
            url=url,
            overall_score=breakdown,
            lighthouse_results=audit_outcome,
            site_info=site_info,
            last_updated=freshness,
            competitor_info=competitor_info,
            recommendations=tuple(recommendations),
            timestamp=self.clock(),
        )

    def _competitor_info(self, url: str) -> Optional[CompetitorInfo]:
        try:
            return self.competitor_client.get_competitor_info(url)
        except NotImplementedError as exc:
            logger.warning("Competitor data unavailable | url=%s | error=%s", url, exc)
            return None

