"""
Analysis output models.

``ScoreBreakdown`` and ``Recommendation`` are produced by the scoring core;
``AnalysisResult`` bundles them with the four input records for one run and
is what gets persisted, exported and rendered.

``StoredAnalysis`` and ``HistoryEntry`` are the persistence-side views:
the full record with its DB id, and the lightweight row used by history
listings.

All models are frozen. Serialise with ``to_wire()`` (camelCase keys, JSON
types) to stay compatible with previously stored analyses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from site_prospector.models.audit import WIRE_CONFIG, PerformanceAudit
from site_prospector.models.competitor import CompetitorInfo
from site_prospector.models.freshness import FreshnessInfo
from site_prospector.models.site import SiteInfoResult
from site_prospector.taxonomy.categories import (
    Priority,
    RecommendationCategory,
    ScoreCategory,
)


class CategoryScore(BaseModel):
    """One category's unrounded score and its fixed weight."""

    model_config = WIRE_CONFIG

    score: float = Field(ge=0.0, le=100.0)
    weight: float = Field(ge=0.0, le=1.0)


class ScoreBreakdown(BaseModel):
    """Weighted overall score plus per-category detail.

    Attributes:
        overall: Rounded weighted sum, integer in [0, 100].
        breakdown: ``ScoreCategory`` value → ``CategoryScore``. Scores are
            NOT rounded; display code rounds each one independently.
    """

    model_config = WIRE_CONFIG

    overall: int = Field(ge=0, le=100)
    breakdown: dict[ScoreCategory, CategoryScore]

    def score_for(self, category: ScoreCategory) -> float:
        return self.breakdown[category].score


class Recommendation(BaseModel):
    """One actionable recommendation.

    Attributes:
        category: Area the recommendation addresses.
        priority: ``high`` / ``medium`` / ``low``.
        title: Short imperative headline.
        description: One-sentence explanation.
        details: Ordered supporting lines; may be empty.
    """

    model_config = WIRE_CONFIG

    category: RecommendationCategory
    priority: Priority
    title: str
    description: str
    details: tuple[str, ...] = ()

    @field_validator("title")
    @classmethod
    def validate_title_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be empty.")
        return v.strip()


class AnalysisResult(BaseModel):
    """Everything produced by one analysis run.

    Field names on the wire follow the stored-record layout:
    ``overallScore``, ``lighthouseResults``, ``siteInfo``, ``lastUpdated``,
    ``competitorInfo``, ``recommendations``, ``timestamp``.
    """

    model_config = WIRE_CONFIG

    url: str
    overall_score: ScoreBreakdown
    lighthouse_results: PerformanceAudit
    site_info: SiteInfoResult
    last_updated: FreshnessInfo
    competitor_info: Optional[CompetitorInfo] = None
    recommendations: tuple[Recommendation, ...] = ()
    timestamp: datetime

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible camelCase dict used for storage and APIs."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> "AnalysisResult":
        """Rebuild from a dict previously produced by ``to_wire()``."""
        return cls.model_validate(raw)


class HistoryEntry(BaseModel):
    """Lightweight history row: what a listing needs, without the payload."""

    model_config = WIRE_CONFIG

    id: int
    url: str
    overall_score: int
    timestamp: datetime


class StoredAnalysis(BaseModel):
    """A persisted ``AnalysisResult`` together with its DB id."""

    model_config = WIRE_CONFIG

    id: int
    url: str
    overall_score: int
    timestamp: datetime
    analysis: AnalysisResult

    def to_entry(self) -> HistoryEntry:
        return HistoryEntry(
            id=self.id,
            url=self.url,
            overall_score=self.overall_score,
            timestamp=self.timestamp,
        )
