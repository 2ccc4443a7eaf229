"""
Performance audit collector — Lighthouse CLI or PageSpeed Insights.

Two backends produce the same Lighthouse report (``lhr``) JSON:

  lighthouse : local CLI against headless Chrome::

      lighthouse <url> --output=json --output-path=stdout --quiet \\
          --only-categories=performance,accessibility,best-practices,seo \\
          --chrome-flags="--headless --disable-gpu --no-sandbox"

  pagespeed  : Google PageSpeed Insights v5 API; the report is the
               ``lighthouseResult`` member of the response.

``parse_lighthouse_report(lhr)`` is the single, pure mapping from a report to
a ``PerformanceAudit``:
  - category ``score`` (0–1) × 100 → ``AuditScores``
  - ``content-width`` audit score == 1 → ``mobile_friendly``
  - key audit ``displayValue`` strings → ``AuditMetrics``
  - SEO audit pass/fail (score == 1) → ``SeoDetails``

Any failure raises ``CollectorError``; the pipeline decides what to do.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
from typing import Any, ClassVar, Optional

import httpx

from site_prospector.collectors.errors import CollectorError
from site_prospector.config import AuditConfig
from site_prospector.models.audit import (
    AuditMetrics,
    AuditScores,
    PerformanceAudit,
    SeoDetails,
)

logger = logging.getLogger(__name__)

AUDIT_CATEGORIES: tuple[str, ...] = ("performance", "accessibility", "best-practices", "seo")

# AuditMetrics field → Lighthouse audit id
_METRIC_AUDITS: dict[str, str] = {
    "first_contentful_paint":   "first-contentful-paint",
    "largest_contentful_paint": "largest-contentful-paint",
    "total_blocking_time":      "total-blocking-time",
    "cumulative_layout_shift":  "cumulative-layout-shift",
    "speed_index":              "speed-index",
}

# SeoDetails field → Lighthouse audit id
_SEO_AUDITS: dict[str, str] = {
    "has_viewport":  "viewport",
    "has_meta":      "meta-description",
    "has_title":     "document-title",
    "has_hreflang":  "hreflang",
    "has_canonical": "canonical",
    "robots_txt":    "robots-txt",
}


def parse_lighthouse_report(lhr: dict[str, Any]) -> PerformanceAudit:
    """Map a Lighthouse report dict to a ``PerformanceAudit``.

    Missing categories score 0; missing audits count as failed and missing
    metrics become empty display strings.

    Args:
        lhr: Parsed Lighthouse JSON report (the ``lhr`` object).

    Returns:
        ``PerformanceAudit`` for the audited page.

    Raises:
        CollectorError: If ``lhr`` is not an object, has no ``categories``
            object, or carries a category score that is not a number.
    """
    if not isinstance(lhr, dict):
        raise CollectorError(
            f"Lighthouse report must be a JSON object, got {type(lhr).__name__}."
        )
    categories = lhr.get("categories")
    if not isinstance(categories, dict):
        raise CollectorError("Lighthouse report has no 'categories' section.")
    audits = lhr.get("audits")
    if not isinstance(audits, dict):
        audits = {}

    scores = AuditScores(
        performance=_category_score(categories, "performance"),
        accessibility=_category_score(categories, "accessibility"),
        best_practices=_category_score(categories, "best-practices"),
        seo=_category_score(categories, "seo"),
        mobile_friendly=_audit_passed(audits, "content-width"),
    )
    metrics = AuditMetrics(**{
        field: str(_audit(audits, audit_id).get("displayValue") or "")
        for field, audit_id in _METRIC_AUDITS.items()
    })
    seo_details = SeoDetails(**{
        field: _audit_passed(audits, audit_id)
        for field, audit_id in _SEO_AUDITS.items()
    })
    return PerformanceAudit(scores=scores, metrics=metrics, seo_details=seo_details)


def _audit(audits: dict[str, Any], audit_id: str) -> dict[str, Any]:
    entry = audits.get(audit_id)
    return entry if isinstance(entry, dict) else {}


def _category_score(categories: dict[str, Any], key: str) -> float:
    entry = categories.get(key)
    raw = entry.get("score") if isinstance(entry, dict) else None
    if raw is None:
        return 0.0
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise CollectorError(f"Lighthouse category '{key}' has a non-numeric score: {raw!r}")
    return max(0.0, min(100.0, float(raw) * 100.0))


def _audit_passed(audits: dict[str, Any], audit_id: str) -> bool:
    return _audit(audits, audit_id).get("score") == 1


# ── Runner ─────────────────────────────────────────────────────────────────────

class LighthouseRunner:
    """Runs a performance audit with the configured backend.

    Usage::

        runner = LighthouseRunner(config.audit)
        audit = await runner.audit("https://example.com")

    Attributes:
        config: ``AuditConfig`` section from ``AppConfig``.
        client: Optional ``httpx.AsyncClient`` for the PageSpeed backend
            (injected in tests); a short-lived client is created otherwise.
    """

    PAGESPEED_URL: ClassVar[str] = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

    def __init__(
        self,
        config: AuditConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.client = client

    async def audit(self, url: str) -> PerformanceAudit:
        """Audit ``url`` and return the parsed result.

        Raises:
            CollectorError: On process failure, HTTP error, timeout or an
                unreadable report.
        """
        logger.info("Audit starting | backend=%s | url=%s", self.config.backend, url)
        if self.config.backend == "pagespeed":
            lhr = await self._run_pagespeed(url)
        else:
            lhr = await self._run_cli(url)
        result = parse_lighthouse_report(lhr)
        logger.info(
            "Audit complete | url=%s | performance=%.0f | seo=%.0f | mobile=%s",
            url, result.scores.performance, result.scores.seo,
            result.scores.mobile_friendly,
        )
        return result

    def build_command(self, url: str) -> list[str]:
        """Return the Lighthouse CLI argv for ``url``."""
        return [
            *shlex.split(self.config.lighthouse_bin),
            url,
            "--output=json",
            "--output-path=stdout",
            "--quiet",
            f"--only-categories={','.join(AUDIT_CATEGORIES)}",
            f"--chrome-flags={self.config.chrome_flags}",
        ]

    async def _run_cli(self, url: str) -> dict[str, Any]:
        cmd = self.build_command(url)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise CollectorError(
                f"Lighthouse executable not found: {self.config.lighthouse_bin}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.config.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise CollectorError(
                f"Lighthouse timed out after {self.config.timeout_seconds:.0f}s"
            ) from exc

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()[:500]
            raise CollectorError(f"Lighthouse exited with code {proc.returncode}: {message}")

        try:
            return json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise CollectorError(f"Lighthouse produced invalid JSON: {exc}") from exc

    async def _run_pagespeed(self, url: str) -> dict[str, Any]:
        params: list[tuple[str, str]] = [("url", url), ("strategy", self.config.strategy)]
        params += [("category", c.upper().replace("-", "_")) for c in AUDIT_CATEGORIES]
        if self.config.pagespeed_api_key:
            params.append(("key", self.config.pagespeed_api_key))

        try:
            if self.client is not None:
                resp = await self.client.get(
                    self.PAGESPEED_URL, params=params, timeout=self.config.timeout_seconds
                )
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(
                        self.PAGESPEED_URL, params=params, timeout=self.config.timeout_seconds
                    )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise CollectorError(f"PageSpeed request failed: {exc}") from exc
        except ValueError as exc:
            raise CollectorError(f"PageSpeed returned invalid JSON: {exc}") from exc

        lhr = data.get("lighthouseResult")
        if not isinstance(lhr, dict):
            raise CollectorError("PageSpeed response has no 'lighthouseResult'.")
        return lhr
