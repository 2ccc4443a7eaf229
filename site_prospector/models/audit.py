"""
Performance audit model — the Lighthouse-style input to scoring.

``PerformanceAudit`` is produced by the audit collector
(``site_prospector.collectors.lighthouse``) and consumed by both the score
aggregator and the recommendation generator.

Three sub-records mirror the three groups extracted from a Lighthouse report:
  - ``AuditScores``  — 0–100 category scores plus the mobile-friendly flag.
  - ``AuditMetrics`` — human-readable ``displayValue`` strings (e.g. ``"2.7 s"``).
  - ``SeoDetails``   — pass/fail flags for individual SEO audits.

Python attributes are snake_case; the wire format is camelCase so stored
analyses stay readable by existing consumers.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

WIRE_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class AuditScores(BaseModel):
    """Lighthouse category scores, each in [0, 100].

    Attributes:
        performance: Performance category score.
        accessibility: Accessibility category score.
        best_practices: Best-practices category score (``bestPractices``).
        seo: SEO category score.
        mobile_friendly: ``True`` when the ``content-width`` audit passed.
    """

    model_config = WIRE_CONFIG

    performance: float
    accessibility: float = 0.0
    best_practices: float = 0.0
    seo: float
    mobile_friendly: bool

    @field_validator("performance", "accessibility", "best_practices", "seo")
    @classmethod
    def validate_score_range(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"Audit scores must be in [0, 100], got {v}.")
        return v


class AuditMetrics(BaseModel):
    """Display strings for the key lab metrics, exactly as Lighthouse renders them."""

    model_config = WIRE_CONFIG

    first_contentful_paint: str = ""
    largest_contentful_paint: str = ""
    total_blocking_time: str = ""
    cumulative_layout_shift: str = ""
    speed_index: str = ""


class SeoDetails(BaseModel):
    """Pass/fail flags for the SEO audits the recommendations inspect."""

    model_config = WIRE_CONFIG

    has_viewport: bool = False
    has_meta: bool = False
    has_title: bool = False
    has_hreflang: bool = False
    has_canonical: bool = False
    robots_txt: bool = False


class PerformanceAudit(BaseModel):
    """Complete audit result for one URL."""

    model_config = WIRE_CONFIG

    scores: AuditScores
    metrics: AuditMetrics = AuditMetrics()
    seo_details: SeoDetails = SeoDetails()
