"""
Tests for the performance audit collector.

What we test
------------
1. parse_lighthouse_report: category scores scaled to 0–100, mobile flag
   from content-width, display strings, SEO pass/fail, missing sections.
2. LighthouseRunner.build_command: argv layout for the CLI backend.
3. PageSpeed backend against an httpx.MockTransport: request parameters,
   happy path, HTTP error, malformed body.
4. CLI backend with a missing executable raises CollectorError.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from site_prospector.collectors.errors import CollectorError
from site_prospector.collectors.lighthouse import LighthouseRunner, parse_lighthouse_report
from site_prospector.config import AuditConfig


# ── Helpers ───────────────────────────────────────────────────────────────────

def _lhr() -> dict[str, Any]:
    return {
        "categories": {
            "performance": {"score": 0.45},
            "accessibility": {"score": 0.9},
            "best-practices": {"score": 1},
            "seo": {"score": 0.95},
        },
        "audits": {
            "content-width": {"score": 1},
            "first-contentful-paint": {"displayValue": "1.2\xa0s"},
            "largest-contentful-paint": {"displayValue": "2.7\xa0s"},
            "total-blocking-time": {"displayValue": "1,230\xa0ms"},
            "cumulative-layout-shift": {"displayValue": "0.052"},
            "speed-index": {"displayValue": "3.1\xa0s"},
            "viewport": {"score": 1},
            "meta-description": {"score": 1},
            "document-title": {"score": 0},
            "canonical": {"score": None},
        },
    }


def _run(coro):
    return asyncio.run(coro)


# ── Report parsing ────────────────────────────────────────────────────────────

class TestParseLighthouseReport:
    def test_scores_scaled(self):
        audit = parse_lighthouse_report(_lhr())
        assert audit.scores.performance == pytest.approx(45.0)
        assert audit.scores.accessibility == pytest.approx(90.0)
        assert audit.scores.best_practices == pytest.approx(100.0)
        assert audit.scores.seo == pytest.approx(95.0)

    def test_mobile_friendly_from_content_width(self):
        assert parse_lighthouse_report(_lhr()).scores.mobile_friendly is True

        lhr = _lhr()
        lhr["audits"]["content-width"]["score"] = 0
        assert parse_lighthouse_report(lhr).scores.mobile_friendly is False

    def test_metrics_are_display_strings(self):
        metrics = parse_lighthouse_report(_lhr()).metrics
        assert metrics.largest_contentful_paint == "2.7\xa0s"
        assert metrics.total_blocking_time == "1,230\xa0ms"
        assert metrics.cumulative_layout_shift == "0.052"

    def test_seo_details(self):
        seo = parse_lighthouse_report(_lhr()).seo_details
        assert seo.has_viewport is True
        assert seo.has_meta is True
        assert seo.has_title is False
        assert seo.has_canonical is False
        assert seo.robots_txt is False

    def test_missing_category_scores_zero(self):
        lhr = _lhr()
        del lhr["categories"]["seo"]
        lhr["categories"]["performance"]["score"] = None
        audit = parse_lighthouse_report(lhr)
        assert audit.scores.seo == 0.0
        assert audit.scores.performance == 0.0

    def test_missing_audits_tolerated(self):
        audit = parse_lighthouse_report({"categories": {"performance": {"score": 0.5}}})
        assert audit.metrics.speed_index == ""
        assert audit.scores.mobile_friendly is False

    def test_no_categories_raises(self):
        with pytest.raises(CollectorError):
            parse_lighthouse_report({"audits": {}})

    @pytest.mark.parametrize("lhr", [[], "report", None, 42])
    def test_non_object_report_raises(self, lhr):
        with pytest.raises(CollectorError, match="must be a JSON object"):
            parse_lighthouse_report(lhr)

    @pytest.mark.parametrize("score", ["n/a", "0.5", True, [0.5]])
    def test_non_numeric_score_raises(self, score):
        with pytest.raises(CollectorError, match="non-numeric score"):
            parse_lighthouse_report({"categories": {"performance": {"score": score}}})

    def test_malformed_entries_tolerated(self):
        audit = parse_lighthouse_report({
            "categories": {"performance": "fast", "seo": {"score": 0.8}},
            "audits": {"content-width": [], "viewport": {"score": 1}},
        })
        assert audit.scores.performance == 0.0
        assert audit.scores.seo == pytest.approx(80.0)
        assert audit.scores.mobile_friendly is False
        assert audit.seo_details.has_viewport is True

    def test_audits_not_an_object(self):
        audit = parse_lighthouse_report(
            {"categories": {"performance": {"score": 0.5}}, "audits": ["viewport"]}
        )
        assert audit.metrics.first_contentful_paint == ""


# ── Runner ────────────────────────────────────────────────────────────────────

class TestBuildCommand:
    def test_argv(self):
        runner = LighthouseRunner(AuditConfig(lighthouse_bin="npx lighthouse"))
        cmd = runner.build_command("https://example.com")
        assert cmd[:3] == ["npx", "lighthouse", "https://example.com"]
        assert "--output=json" in cmd
        assert "--output-path=stdout" in cmd
        assert "--only-categories=performance,accessibility,best-practices,seo" in cmd
        assert cmd[-1] == "--chrome-flags=--headless --disable-gpu --no-sandbox"


class TestPageSpeedBackend:
    def _runner(self, handler, api_key: str = "") -> LighthouseRunner:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return LighthouseRunner(
            AuditConfig(backend="pagespeed", pagespeed_api_key=api_key),
            client=client,
        )

    def test_request_parameters(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"lighthouseResult": _lhr()})

        audit = _run(self._runner(handler, api_key="secret").audit("https://example.com"))
        assert audit.scores.seo == pytest.approx(95.0)

        params = seen[0].url.params
        assert params["url"] == "https://example.com"
        assert params["strategy"] == "mobile"
        assert params["key"] == "secret"
        assert params.get_list("category") == [
            "PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO",
        ]

    def test_no_key_param_without_api_key(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"lighthouseResult": _lhr()})

        _run(self._runner(handler).audit("https://example.com"))
        assert "key" not in seen[0].url.params

    def test_http_error_raises(self):
        runner = self._runner(lambda request: httpx.Response(429, json={"error": "quota"}))
        with pytest.raises(CollectorError, match="PageSpeed request failed"):
            _run(runner.audit("https://example.com"))

    def test_missing_lighthouse_result_raises(self):
        runner = self._runner(lambda request: httpx.Response(200, json={"kind": "x"}))
        with pytest.raises(CollectorError, match="lighthouseResult"):
            _run(runner.audit("https://example.com"))

    def test_invalid_json_raises(self):
        runner = self._runner(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(CollectorError):
            _run(runner.audit("https://example.com"))


class TestCliBackend:
    def test_missing_executable_raises(self, tmp_path):
        runner = LighthouseRunner(
            AuditConfig(lighthouse_bin=str(tmp_path / "no-such-lighthouse"))
        )
        with pytest.raises(CollectorError, match="not found"):
            _run(runner.audit("https://example.com"))
