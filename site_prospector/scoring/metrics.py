"""
Numeric parsing of Lighthouse metric display strings.

Lighthouse reports lab metrics as formatted strings (``displayValue``):

    "2.7 s"      largest-contentful-paint
    "1,230 ms"   total-blocking-time
    "0.052"      cumulative-layout-shift (unitless)

Recommendation thresholds are compared against the parsed numbers, never
against the raw strings. Durations are normalised to milliseconds.

Every parser returns ``None`` for input it cannot read (empty, "N/A",
unknown unit) so callers can treat an unreadable metric as "no signal".
"""

from __future__ import annotations

import re
from typing import Optional

# Number with optional thousands separators, optional unit suffix.
_VALUE_RE = re.compile(
    r"^\s*(?P<num>\d{1,3}(?:[, ]\d{3})+(?:\.\d+)?|\d*\.?\d+)\s*(?P<unit>ms|s)?\s*$",
    re.IGNORECASE,
)

_UNIT_TO_MS: dict[str, float] = {
    "ms": 1.0,
    "s": 1000.0,
}


def _match(display: Optional[str]) -> Optional[re.Match[str]]:
    if not display:
        return None
    return _VALUE_RE.match(display)


def parse_duration_ms(display: Optional[str]) -> Optional[float]:
    """Parse a duration display string into milliseconds.

    A bare number without a unit is read as seconds, matching how
    Lighthouse formats paint timings.

    Examples::

        parse_duration_ms("2.7 s")     -> 2700.0
        parse_duration_ms("1,230 ms")  -> 1230.0
        parse_duration_ms("N/A")       -> None
    """
    m = _match(display)
    if m is None:
        return None
    value = float(m.group("num").replace(",", "").replace(" ", ""))
    unit = (m.group("unit") or "s").lower()
    return value * _UNIT_TO_MS[unit]


def parse_ratio(display: Optional[str]) -> Optional[float]:
    """Parse a unitless display string such as a layout-shift score.

    Returns ``None`` if the string carries a time unit or is unreadable.
    """
    m = _match(display)
    if m is None or m.group("unit"):
        return None
    return float(m.group("num").replace(",", "").replace(" ", ""))
