"""
Recommendation generation: inspects the audit, page and freshness signals
and emits zero or more prioritized, human-readable recommendations.

Rules (evaluated in this order; each emits exactly one recommendation or none)
-----------------------------------------------------------------------------
    1. performance   : performance score < 70         → high if < 50, else medium
    2. seo           : SEO score < 90                 → high
    3. content       : word count < 500               → medium
    4. accessibility : images > 0 and alt ratio < 0.8 → medium
    5. freshness     : date found and age > 180 days  → high if > 365, else medium
    6. mobile        : not mobile-friendly            → high

Each rule builds its ``details`` from its own sub-conditions; a detail line
is only included when its sub-condition holds, so an empty list is valid.

Performance metric thresholds are compared numerically after parsing the
Lighthouse display strings (see ``site_prospector.scoring.metrics``). A
metric whose display string cannot be parsed contributes no detail line.

Ordering
--------
The final list is stable-sorted by priority descending (high=3, medium=2,
low=1); recommendations with equal priority keep rule order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Optional

from site_prospector.models.analysis import Recommendation
from site_prospector.models.audit import PerformanceAudit
from site_prospector.models.freshness import FreshnessFound, FreshnessInfo
from site_prospector.models.site import SiteInfo
from site_prospector.scoring.metrics import parse_duration_ms, parse_ratio
from site_prospector.taxonomy.categories import Priority, RecommendationCategory

logger = logging.getLogger(__name__)

# ── Rule thresholds ───────────────────────────────────────────────────────────
PERFORMANCE_TRIGGER = 70.0
PERFORMANCE_HIGH_BELOW = 50.0
SEO_TRIGGER = 90.0
MIN_WORD_COUNT = 500
MIN_ALT_TEXT_RATIO = 0.8
STALE_AFTER_DAYS = 180
VERY_STALE_AFTER_DAYS = 365

# ── Performance metric thresholds ─────────────────────────────────────────────
LCP_MAX_MS = 2500.0
TBT_MAX_MS = 300.0
CLS_MAX = 0.1

Rule = Callable[[PerformanceAudit, SiteInfo, FreshnessInfo], Optional[Recommendation]]


def generate_recommendations(
    audit:     PerformanceAudit,
    site_info: SiteInfo,
    freshness: FreshnessInfo,
) -> list[Recommendation]:
    """Evaluate every rule and return the triggered recommendations, sorted.

    Pure and total: never raises for any valid input combination.

    Args:
        audit:     Performance audit for the page.
        site_info: Parsed page signals (use ``SiteInfo.empty()`` on failure).
        freshness: Last-updated detection result.

    Returns:
        Recommendations sorted by priority descending; possibly empty.
    """
    triggered = [
        rec
        for rule in RULES
        if (rec := rule(audit, site_info, freshness)) is not None
    ]
    logger.debug(
        "Recommendations generated | count=%d | categories=%s",
        len(triggered), [r.category.value for r in triggered],
    )
    return sort_by_priority(triggered)


def sort_by_priority(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    """Stable sort, highest priority first."""
    return sorted(recommendations, key=lambda r: r.priority.rank, reverse=True)


# ── Rules ─────────────────────────────────────────────────────────────────────

def performance_rule(
    audit: PerformanceAudit, site_info: SiteInfo, freshness: FreshnessInfo,
) -> Optional[Recommendation]:
    score = audit.scores.performance
    if score >= PERFORMANCE_TRIGGER:
        return None

    metrics = audit.metrics
    details: list[str] = []
    if _exceeds(parse_duration_ms(metrics.largest_contentful_paint), LCP_MAX_MS):
        details.append("Largest Contentful Paint is too slow (should be under 2.5s)")
    if _exceeds(parse_duration_ms(metrics.total_blocking_time), TBT_MAX_MS):
        details.append("Total Blocking Time is too high (should be under 300ms)")
    if _exceeds(parse_ratio(metrics.cumulative_layout_shift), CLS_MAX):
        details.append("Cumulative Layout Shift is too high (should be under 0.1)")

    return Recommendation(
        category=RecommendationCategory.PERFORMANCE,
        priority=Priority.HIGH if score < PERFORMANCE_HIGH_BELOW else Priority.MEDIUM,
        title="Improve website performance",
        description=(
            f"The site's performance score is {_format_score(score)}/100, which may "
            "lead to poor user experience and lower search rankings."
        ),
        details=tuple(details),
    )


def seo_rule(
    audit: PerformanceAudit, site_info: SiteInfo, freshness: FreshnessInfo,
) -> Optional[Recommendation]:
    if audit.scores.seo >= SEO_TRIGGER:
        return None

    seo = audit.seo_details
    details: list[str] = []
    if not seo.has_meta:
        details.append("Missing meta description")
    if not seo.has_title:
        details.append("Missing or inadequate page title")
    if not seo.has_viewport:
        details.append("Missing viewport meta tag")
    if not site_info.has_structured_data:
        details.append("No structured data/schema markup found")

    return Recommendation(
        category=RecommendationCategory.SEO,
        priority=Priority.HIGH,
        title="Improve SEO fundamentals",
        description=(
            "The site is missing important SEO elements that can improve "
            "search visibility."
        ),
        details=tuple(details),
    )


def content_rule(
    audit: PerformanceAudit, site_info: SiteInfo, freshness: FreshnessInfo,
) -> Optional[Recommendation]:
    if site_info.word_count >= MIN_WORD_COUNT:
        return None
    return Recommendation(
        category=RecommendationCategory.CONTENT,
        priority=Priority.MEDIUM,
        title="Enhance content depth",
        description=(
            "The site has limited content which may affect its authority and "
            "ranking potential."
        ),
        details=(
            f"Current word count is approximately {site_info.word_count} words",
            "Search engines typically favor comprehensive content "
            "(1000+ words for key pages)",
        ),
    )


def alt_text_rule(
    audit: PerformanceAudit, site_info: SiteInfo, freshness: FreshnessInfo,
) -> Optional[Recommendation]:
    if site_info.images == 0:
        return None
    if site_info.images_with_alt / site_info.images >= MIN_ALT_TEXT_RATIO:
        return None
    return Recommendation(
        category=RecommendationCategory.ACCESSIBILITY,
        priority=Priority.MEDIUM,
        title="Add alt text to images",
        description=(
            "Many images on the site lack alternative text, which affects "
            "accessibility and SEO."
        ),
        details=(
            f"{site_info.images_with_alt} out of {site_info.images} images have alt text",
            "Alt text helps search engines understand image content and improves "
            "accessibility for screen reader users",
        ),
    )


def freshness_rule(
    audit: PerformanceAudit, site_info: SiteInfo, freshness: FreshnessInfo,
) -> Optional[Recommendation]:
    if not isinstance(freshness, FreshnessFound):
        return None
    age = freshness.age_in_days
    if age <= STALE_AFTER_DAYS:
        return None
    return Recommendation(
        category=RecommendationCategory.FRESHNESS,
        priority=Priority.HIGH if age > VERY_STALE_AFTER_DAYS else Priority.MEDIUM,
        title="Update website content",
        description=(
            "The site content appears to be outdated, which may negatively impact "
            "user trust and search rankings."
        ),
        details=(
            f"Last content update was approximately {age} days ago",
            "Fresh content signals to search engines that the site is actively maintained",
            "Consider regular content updates or adding a blog section",
        ),
    )


def mobile_rule(
    audit: PerformanceAudit, site_info: SiteInfo, freshness: FreshnessInfo,
) -> Optional[Recommendation]:
    if audit.scores.mobile_friendly:
        return None
    return Recommendation(
        category=RecommendationCategory.MOBILE,
        priority=Priority.HIGH,
        title="Improve mobile experience",
        description=(
            "The site is not fully mobile-friendly, which can significantly impact "
            "rankings and user experience."
        ),
        details=(
            "Google primarily uses mobile-first indexing",
            "Ensure content is properly sized for mobile screens",
            "Implement responsive design principles",
        ),
    )


RULES: tuple[Rule, ...] = (
    performance_rule,
    seo_rule,
    content_rule,
    alt_text_rule,
    freshness_rule,
    mobile_rule,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _exceeds(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


def _format_score(score: float) -> str:
    return f"{score:g}"
