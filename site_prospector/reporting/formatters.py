"""
ASCII terminal formatters for CLI reporting commands.

All formatters take models and return plain multi-line strings suitable for
``typer.echo()``. No third-party dependencies.

Score bands
-----------
``score_class()`` maps a 0–100 score to the label used everywhere a score is
shown (terminal, HTML report, dashboard)::

  >= 90  excellent
  >= 75  good
  >= 60  average
  >= 40  poor
  else   bad
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable

from site_prospector.models.analysis import AnalysisResult, HistoryEntry
from site_prospector.models.freshness import FreshnessFound
from site_prospector.models.site import SiteInfo
from site_prospector.scoring.aggregator import round_half_up
from site_prospector.state import UserSettings
from site_prospector.taxonomy.categories import ScoreCategory

SCORE_BANDS: tuple[tuple[float, str], ...] = (
    (90.0, "excellent"),
    (75.0, "good"),
    (60.0, "average"),
    (40.0, "poor"),
)
LOWEST_BAND = "bad"

CATEGORY_LABELS: dict[ScoreCategory, str] = {
    ScoreCategory.PERFORMANCE:     "Performance",
    ScoreCategory.SEO:             "SEO",
    ScoreCategory.CONTENT:         "Content",
    ScoreCategory.FRESHNESS:       "Freshness",
    ScoreCategory.MOBILE_FRIENDLY: "Mobile Friendly",
}

_BAR_WIDTH = 20


def score_class(score: float) -> str:
    """Band label for a 0–100 score."""
    for threshold, label in SCORE_BANDS:
        if score >= threshold:
            return label
    return LOWEST_BAND


def format_metric_name(key: str) -> str:
    """``"firstContentfulPaint"`` → ``"First Contentful Paint"``."""
    spaced = re.sub(r"([A-Z])", r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def format_date(moment: datetime) -> str:
    """Short human date, e.g. ``"Oct 19, 2026, 14:05"``."""
    return moment.strftime("%b %d, %Y, %H:%M")


def share_text(result: AnalysisResult) -> str:
    """One-line summary suitable for sharing."""
    return f"Website analysis for {result.url} - Overall Score: {result.overall_score.overall}/100"


def _bar(score: float) -> str:
    filled = int(round(max(0.0, min(100.0, score)) / 100 * _BAR_WIDTH))
    return "#" * filled + "." * (_BAR_WIDTH - filled)


# ── Analysis ──────────────────────────────────────────────────────────────────


def format_analysis(result: AnalysisResult, compact: bool = False) -> str:
    """Format one analysis: score breakdown, recommendations and key signals.

    Args:
        result:  The analysis to show.
        compact: Omit the metrics and site-info blocks.

    Returns:
        Multi-line string.
    """
    breakdown = result.overall_score
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Analysis: {result.url} ===")
    lines.append(f"  Analyzed at:   {format_date(result.timestamp)}")
    lines.append(
        f"  Overall score: {breakdown.overall}/100 ({score_class(breakdown.overall)})"
    )
    lines.append("")
    lines.append(f"    {'Category':<16}  {'Score':>5}  {'Weight':>6}  {'':<{_BAR_WIDTH}}  Band")
    lines.append("    " + "-" * (16 + 5 + 6 + _BAR_WIDTH + 16))
    for category, label in CATEGORY_LABELS.items():
        cat = breakdown.breakdown.get(category)
        if cat is None:
            continue
        lines.append(
            f"    {label:<16}  {round_half_up(cat.score):>5}  {cat.weight:>6.2f}  "
            f"{_bar(cat.score)}  {score_class(cat.score)}"
        )

    lines.append("")
    lines.append(f"  Recommendations ({len(result.recommendations)})")
    if not result.recommendations:
        lines.append("    (none; nothing crossed a threshold)")
    for rec in result.recommendations:
        lines.append(f"    [{rec.priority.upper():<6}] {rec.title}  ({rec.category})")
        lines.append(f"             {rec.description}")
        for detail in rec.details:
            lines.append(f"             - {detail}")

    if compact:
        return "\n".join(lines)

    lines.append("")
    lines.append("  Metrics")
    for key, value in result.lighthouse_results.metrics.model_dump(by_alias=True).items():
        lines.append(f"    {format_metric_name(key):<26}  {value or 'N/A'}")

    lines.append("")
    lines.append("  Site info")
    site = result.site_info
    if isinstance(site, SiteInfo):
        lines.append(f"    {'Title':<26}  {site.title or '(none)'}")
        lines.append(f"    {'Word count':<26}  {site.word_count}")
        lines.append(f"    {'Images with alt text':<26}  {site.images_with_alt}/{site.images}")
        lines.append(
            f"    {'Links (int/ext/all)':<26}  "
            f"{site.internal_links}/{site.external_links}/{site.all_links}"
        )
        lines.append(f"    {'Structured data':<26}  {'yes' if site.has_structured_data else 'no'}")
        lines.append(f"    {'Social platforms':<26}  {site.social_links.present_count}/4")
    else:
        lines.append(f"    {site.error}: {site.details}")

    lines.append("")
    fresh = result.last_updated
    if isinstance(fresh, FreshnessFound):
        lines.append(
            f"  Last updated: {format_date(fresh.last_updated)} "
            f"({fresh.age_in_days} days ago, via {fresh.source})"
        )
    else:
        lines.append(f"  Last updated: unknown ({fresh.reason or 'no date found'})")

    if result.competitor_info is not None:
        info = result.competitor_info
        lines.append("")
        suffix = " [placeholder data]" if info.is_placeholder else ""
        lines.append(f"  Competitors{suffix}")
        for comp in info.competitors:
            lines.append(
                f"    {comp.domain:<26}  common keywords {comp.common_keywords:>4}  "
                f"score {comp.score:g}"
            )

    return "\n".join(lines)


# ── History ───────────────────────────────────────────────────────────────────


def format_history_table(entries: Iterable[HistoryEntry]) -> str:
    """Format history entries as an ASCII table.

    Example::

          ID  Date                  Score  Band       URL
        --------------------------------------------------------------
          12  Oct 19, 2026, 14:05      86  good       https://example.com
    """
    rows = list(entries)
    if not rows:
        return "  No analysis history found."

    lines = [
        f"  {'ID':>4}  {'Date':<20}  {'Score':>5}  {'Band':<9}  URL",
        "  " + "-" * 70,
    ]
    for e in rows:
        lines.append(
            f"  {e.id:>4}  {format_date(e.timestamp):<20}  {e.overall_score:>5}  "
            f"{score_class(e.overall_score):<9}  {e.url}"
        )
    return "\n".join(lines)


def format_settings(settings: UserSettings) -> str:
    lines = ["  User settings"]
    for key, value in settings.to_wire().items():
        lines.append(f"    {key:<20}  {value}")
    return "\n".join(lines)
