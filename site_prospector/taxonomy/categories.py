"""
Scoring and recommendation taxonomy.

Four small vocabularies describe every analysis output:
  - ``ScoreCategory``          — the five weighted dimensions of the overall score.
  - ``RecommendationCategory`` — the area a recommendation addresses.
  - ``Priority``               — ordinal urgency tag, used for display ordering.
  - ``FreshnessSource``        — where a "last updated" date was detected.

Enum values are the exact strings used on the wire and in stored analyses,
so they must not be renamed.

This module has NO imports from any other ``site_prospector`` package.
"""

from enum import StrEnum


class ScoreCategory(StrEnum):
    """Weighted dimension of the overall score (``breakdown`` key)."""

    PERFORMANCE = "performance"
    SEO = "seo"
    CONTENT = "content"
    FRESHNESS = "freshness"
    MOBILE_FRIENDLY = "mobileFriendly"


class RecommendationCategory(StrEnum):
    """Area a recommendation addresses."""

    PERFORMANCE = "performance"
    SEO = "seo"
    CONTENT = "content"
    ACCESSIBILITY = "accessibility"
    FRESHNESS = "freshness"
    MOBILE = "mobile"


class Priority(StrEnum):
    """Urgency of a recommendation."""

    HIGH = "high"
    """Fix first; materially hurts rankings or user experience."""

    MEDIUM = "medium"
    """Worth scheduling; moderate impact."""

    LOW = "low"
    """Nice to have."""

    @property
    def rank(self) -> int:
        """Sort weight: high=3, medium=2, low=1."""
        return PRIORITY_RANK[self]


PRIORITY_RANK: dict[Priority, int] = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class FreshnessSource(StrEnum):
    """Signal that produced a detected last-updated date."""

    HTTP_HEADER = "HTTP headers"
    """``Last-Modified`` response header."""

    SITEMAP = "Sitemap"
    """``<lastmod>`` entry for the page in ``/sitemap.xml``."""

    CONTENT = "Content"
    """On-page ``<time>`` element or ``article:*_time`` meta tag."""
