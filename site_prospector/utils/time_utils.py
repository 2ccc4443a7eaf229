"""
Time and date utilities for freshness detection and history display.

Date signals arrive in several formats:
  - HTTP ``Last-Modified``: RFC 7231 ("Wed, 21 Oct 2015 07:28:00 GMT").
  - Sitemap ``<lastmod>``: W3C datetime / ISO 8601 ("2024-09-15" or with time).
  - On-page ``<time datetime>`` and ``article:*_time`` meta: ISO 8601.

``parse_timestamp()`` accepts all of them and always returns an aware UTC
datetime (naive inputs are assumed to be UTC), or ``None``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

SECONDS_PER_DAY = 86_400


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an HTTP-date or ISO-8601 string into an aware UTC datetime.

    Args:
        raw: Date string from a header, sitemap, or page element.

    Returns:
        Aware UTC datetime, or ``None`` if ``raw`` is empty or unparseable.
    """
    if not raw or not raw.strip():
        return None
    text = raw.strip()

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError, OverflowError):
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Offset pushes the instant outside datetime's year 1..9999 range.
        return None


def age_in_days(moment: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed between ``moment`` and ``now`` (floored, never negative).

    Dates in the future count as age 0.

    Args:
        moment: Aware datetime being measured.
        now: Reference time; defaults to ``utcnow()``.

    Returns:
        Non-negative integer day count.
    """
    reference = now or utcnow()
    seconds = (reference - moment).total_seconds()
    return max(0, int(seconds // SECONDS_PER_DAY))
