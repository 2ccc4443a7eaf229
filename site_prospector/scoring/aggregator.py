"""
Score aggregation: combines audit, page and freshness signals into a single
weighted 0–100 score with a per-category breakdown.

Score formula (weighted sum, rounded once)
------------------------------------------
    overall = round_half_up(
        performance      * 0.25
        + seo            * 0.25
        + content        * 0.15
        + freshness      * 0.20
        + mobileFriendly * 0.15
    )

Component explanations
----------------------
performance (0–100):
    Audit performance score, unmodified.

seo (0–100):
    Audit SEO score plus a bonus of up to 5 points: each of
    (structured data present, meta description present, title present)
    contributes 5 to a three-way average. Capped at 100.

content (0–100):
    Sum of four capped sub-scores, then capped at 100:
      words   : min(30, word_count / 500 * 30)
      alt     : images_with_alt / max(1, images) * 30   (no images → 0)
      links   : min(20, internal_links / 10 * 20)
      social  : platforms_present / 4 * 20

freshness (0–100):
    Step table on age in days (exclusive upper bounds, first match wins);
    50 when no date was found.

mobileFriendly:
    100 when the audit reports mobile-friendly, else 30.

Category scores are returned unrounded; only ``overall`` is rounded.
"""

from __future__ import annotations

import logging
import math

from site_prospector.models.analysis import CategoryScore, ScoreBreakdown
from site_prospector.models.audit import PerformanceAudit
from site_prospector.models.freshness import FreshnessFound, FreshnessInfo
from site_prospector.models.site import SiteInfo
from site_prospector.taxonomy.categories import ScoreCategory

logger = logging.getLogger(__name__)

CATEGORY_WEIGHTS: dict[ScoreCategory, float] = {
    ScoreCategory.PERFORMANCE:     0.25,
    ScoreCategory.SEO:             0.25,
    ScoreCategory.CONTENT:         0.15,
    ScoreCategory.FRESHNESS:       0.20,
    ScoreCategory.MOBILE_FRIENDLY: 0.15,
}

# ── SEO policy ────────────────────────────────────────────────────────────────
SEO_BONUS_POINTS = 5.0

# ── Content policy: (cap, full-credit threshold) ─────────────────────────────
WORDS_CAP, WORDS_TARGET = 30.0, 500
ALT_TEXT_CAP = 30.0
INTERNAL_LINKS_CAP, INTERNAL_LINKS_TARGET = 20.0, 10
SOCIAL_CAP = 20.0
SOCIAL_PLATFORMS = 4

# ── Freshness policy: (exclusive upper bound in days, score) ─────────────────
FRESHNESS_STEPS: tuple[tuple[int, float], ...] = (
    (7,   100.0),
    (30,   90.0),
    (90,   75.0),
    (180,  60.0),
    (365,  40.0),
)
FRESHNESS_STALE_SCORE = 20.0
FRESHNESS_UNKNOWN_SCORE = 50.0

# ── Mobile policy ─────────────────────────────────────────────────────────────
MOBILE_FRIENDLY_SCORE = 100.0
MOBILE_UNFRIENDLY_SCORE = 30.0


def compute_overall_score(
    audit:     PerformanceAudit,
    site_info: SiteInfo,
    freshness: FreshnessInfo,
) -> ScoreBreakdown:
    """Compute the weighted overall score and per-category breakdown.

    Pure and total: never raises for any valid input combination.

    Args:
        audit:     Performance audit for the page.
        site_info: Parsed page signals (use ``SiteInfo.empty()`` on failure).
        freshness: Last-updated detection result.

    Returns:
        ``ScoreBreakdown`` with the rounded overall score and unrounded
        category scores, in ``CATEGORY_WEIGHTS`` order.
    """
    scores: dict[ScoreCategory, float] = {
        ScoreCategory.PERFORMANCE:     performance_score(audit),
        ScoreCategory.SEO:             seo_score(audit, site_info),
        ScoreCategory.CONTENT:         content_score(site_info),
        ScoreCategory.FRESHNESS:       freshness_score(freshness),
        ScoreCategory.MOBILE_FRIENDLY: mobile_score(audit),
    }

    weighted = sum(scores[cat] * weight for cat, weight in CATEGORY_WEIGHTS.items())
    overall = _clamp(round_half_up(weighted), 0, 100)

    logger.debug(
        "Score computed | overall=%d | %s",
        overall,
        ", ".join(f"{cat}={val:.2f}" for cat, val in scores.items()),
    )

    return ScoreBreakdown(
        overall=overall,
        breakdown={
            cat: CategoryScore(score=scores[cat], weight=weight)
            for cat, weight in CATEGORY_WEIGHTS.items()
        },
    )


def performance_score(audit: PerformanceAudit) -> float:
    return audit.scores.performance


def seo_score(audit: PerformanceAudit, site_info: SiteInfo) -> float:
    """Audit SEO score plus the averaged structured-data / meta / title bonus."""
    indicators = (
        site_info.has_structured_data,
        audit.seo_details.has_meta,
        audit.seo_details.has_title,
    )
    bonus = SEO_BONUS_POINTS * sum(indicators) / len(indicators)
    return min(100.0, audit.scores.seo + bonus)


def content_score(site_info: SiteInfo) -> float:
    """Sum of the word, alt-text, internal-link and social sub-scores, capped at 100."""
    words = min(WORDS_CAP, site_info.word_count / WORDS_TARGET * WORDS_CAP)
    alt = site_info.images_with_alt / max(1, site_info.images) * ALT_TEXT_CAP
    links = min(
        INTERNAL_LINKS_CAP,
        site_info.internal_links / INTERNAL_LINKS_TARGET * INTERNAL_LINKS_CAP,
    )
    social = site_info.social_links.present_count / SOCIAL_PLATFORMS * SOCIAL_CAP
    return min(100.0, words + alt + links + social)


def freshness_score(freshness: FreshnessInfo) -> float:
    """Step-function score on content age; ``FRESHNESS_UNKNOWN_SCORE`` when not found."""
    if not isinstance(freshness, FreshnessFound):
        return FRESHNESS_UNKNOWN_SCORE
    for upper_days, score in FRESHNESS_STEPS:
        if freshness.age_in_days < upper_days:
            return score
    return FRESHNESS_STALE_SCORE


def mobile_score(audit: PerformanceAudit) -> float:
    if audit.scores.mobile_friendly:
        return MOBILE_FRIENDLY_SCORE
    return MOBILE_UNFRIENDLY_SCORE


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``round(86.5) == 87``).

    Python's built-in ``round`` uses banker's rounding, which would give 86.
    """
    return int(math.floor(value + 0.5))


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))
