"""
Competitor keyword / domain data.

Passthrough only: nothing in scoring reads these records. They are shown by
the presentation layer and stored with the analysis.

``is_placeholder`` is ``True`` while the data comes from the fixture-backed
stub client rather than a real keyword-intelligence provider.
"""

from __future__ import annotations

from pydantic import BaseModel

from site_prospector.models.audit import WIRE_CONFIG


class KeywordRanking(BaseModel):
    """Search position and monthly volume for one keyword."""

    model_config = WIRE_CONFIG

    keyword: str
    position: int
    volume: int


class CompetitorSummary(BaseModel):
    """A competing domain and its keyword overlap."""

    model_config = WIRE_CONFIG

    domain: str
    common_keywords: int
    score: float


class CompetitorInfo(BaseModel):
    """Keyword rankings and competing domains for the analysed site."""

    model_config = WIRE_CONFIG

    keywords: list[KeywordRanking] = []
    competitors: list[CompetitorSummary] = []
    is_placeholder: bool = False
