"""
Freshness (last-updated) detection result.

A tagged union on ``found``:
  - ``FreshnessFound``    — a date was detected; carries its age in whole days.
  - ``FreshnessNotFound`` — no usable date signal, with an optional reason.

``parse_freshness(raw)`` rebuilds the right variant from a stored dict.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from site_prospector.models.audit import WIRE_CONFIG
from site_prospector.taxonomy.categories import FreshnessSource


class FreshnessFound(BaseModel):
    """A detected last-updated date.

    Attributes:
        found: Always ``True`` (union tag).
        last_updated: Most recent date among all signals (UTC).
        age_in_days: Whole days between ``last_updated`` and detection time.
        source: Signal the date is attributed to.
    """

    model_config = WIRE_CONFIG

    found: Literal[True] = True
    last_updated: datetime
    age_in_days: int = Field(ge=0)
    source: FreshnessSource


class FreshnessNotFound(BaseModel):
    """No last-updated date could be determined."""

    model_config = WIRE_CONFIG

    found: Literal[False] = False
    reason: Optional[str] = None


FreshnessInfo = Union[FreshnessFound, FreshnessNotFound]

_FRESHNESS_ADAPTER: TypeAdapter[FreshnessInfo] = TypeAdapter(
    Union[FreshnessFound, FreshnessNotFound]
)


def parse_freshness(raw: dict[str, Any]) -> FreshnessInfo:
    """Validate a stored freshness dict into the matching variant.

    Raises:
        pydantic.ValidationError: If ``raw`` matches neither variant.
    """
    return _FRESHNESS_ADAPTER.validate_python(raw)
