"""
Standalone HTML analysis report.

Rendered with Jinja2 from ``templates/report.html`` with autoescaping on, so
page titles, URLs and recommendation text taken from analysed sites can never
inject markup into the report.

The ``detail`` level (from ``UserSettings.report_detail``) controls the
sections included:

  basic     scores only
  standard  scores, recommendations, metrics, site info, last updated
  detailed  everything in standard plus SEO audit flags and competitor data
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_prospector.models.analysis import AnalysisResult
from site_prospector.models.freshness import FreshnessFound
from site_prospector.models.site import SiteInfo
from site_prospector.reporting.formatters import (
    CATEGORY_LABELS,
    format_date,
    format_metric_name,
    score_class,
)
from site_prospector.scoring.aggregator import round_half_up
from site_prospector.state import ReportDetail
from site_prospector.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["score_class"] = score_class
_env.filters["metric_name"] = format_metric_name
_env.filters["date"] = format_date


def generate_report_html(
    result: AnalysisResult,
    detail: ReportDetail | str = ReportDetail.STANDARD,
) -> str:
    """Render ``result`` as a self-contained HTML document."""
    level = ReportDetail(detail)
    site = result.site_info if isinstance(result.site_info, SiteInfo) else None
    fresh = result.last_updated if isinstance(result.last_updated, FreshnessFound) else None

    categories = [
        (label, round_half_up(result.overall_score.breakdown[cat].score))
        for cat, label in CATEGORY_LABELS.items()
        if cat in result.overall_score.breakdown
    ]
    template = _env.get_template("report.html")
    return template.render(
        result=result,
        detail=level.value,
        show_sections=level is not ReportDetail.BASIC,
        show_detailed=level is ReportDetail.DETAILED,
        categories=categories,
        metrics=result.lighthouse_results.metrics.model_dump(by_alias=True),
        seo_details=result.lighthouse_results.seo_details.model_dump(by_alias=True),
        site=site,
        site_error=None if site else result.site_info,
        fresh=fresh,
        generated_year=utcnow().year,
    )


def write_report(
    result: AnalysisResult,
    output_dir: Path,
    detail: ReportDetail | str = ReportDetail.STANDARD,
    filename: Optional[str] = None,
) -> Path:
    """Render and write the report; returns the written path."""
    from site_prospector.reporting.export import report_filename

    path = Path(output_dir) / (filename or report_filename(result.url))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_report_html(result, detail), encoding="utf-8")
    logger.info("Report written to %s", path)
    return path
