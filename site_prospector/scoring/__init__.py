"""
Scoring core: turns collected page signals into a weighted score and a
prioritized list of recommendations.

Modules
-------
aggregator  : compute_overall_score() + per-category policy tables
              — pure functions, no DB or I/O.
recommender : generate_recommendations() + the six recommendation rules
              + sort_by_priority().
metrics     : parse_duration_ms() / parse_ratio() for Lighthouse display strings.

Both entry points read the same inputs and never depend on each other's
output, so callers may run them in either order.
"""

from site_prospector.scoring.aggregator import compute_overall_score
from site_prospector.scoring.recommender import generate_recommendations

__all__ = ["compute_overall_score", "generate_recommendations"]
