"""
Competitor keyword intelligence client — typed stub with fixture data.

Intended providers: SEMrush (https://www.semrush.com/api/) or Ahrefs
(https://ahrefs.com/api). Neither is wired up yet, so every analysis receives
the same fixture records, flagged ``is_placeholder=True`` so the UI can say so.

When API access is available:
  1. Implement ``fetch_competitor_info()`` below by replacing the
     NotImplementedError body with real HTTP calls (httpx is already a
     dependency).
  2. Set ``[competitors] api_key`` (or ``SITE_PROSPECTOR_COMPETITOR_API_KEY``);
     the pipeline passes it here and the client switches to
     ``fetch_competitor_info()`` whenever a key is present.
"""

from __future__ import annotations

import logging
from typing import ClassVar, Optional
from urllib.parse import urlparse

from site_prospector.models.competitor import (
    CompetitorInfo,
    CompetitorSummary,
    KeywordRanking,
)

logger = logging.getLogger(__name__)


class StubCompetitorClient:
    """Stub client for competitor keyword / domain data.

    Usage (fixture mode — no API key required)::

        client = StubCompetitorClient()
        info = client.get_fixture_response("https://example.com")

    Attributes:
        api_key: Optional provider API key. ``None`` → stub mode.
    """

    FIXTURE_KEYWORDS: ClassVar[list[dict]] = [
        {"keyword": "sample keyword 1", "position": 4,  "volume": 1200},
        {"keyword": "sample keyword 2", "position": 8,  "volume": 800},
        {"keyword": "sample keyword 3", "position": 12, "volume": 500},
    ]

    FIXTURE_COMPETITORS: ClassVar[list[dict]] = [
        {"domain": "competitor1.com", "common_keywords": 45, "score": 85},
        {"domain": "competitor2.com", "common_keywords": 32, "score": 72},
        {"domain": "competitor3.com", "common_keywords": 28, "score": 68},
    ]

    def __init__(self, api_key: Optional[str] = None) -> None:
        self.api_key = api_key

    @property
    def is_stub(self) -> bool:
        return not self.api_key

    def get_competitor_info(self, url: str) -> CompetitorInfo:
        """Real data when a key is configured, fixture data otherwise."""
        if self.is_stub:
            return self.get_fixture_response(url)
        return self.fetch_competitor_info(url)

    def fetch_competitor_info(self, url: str) -> CompetitorInfo:
        """Fetch top keywords and overlapping domains for ``url``'s host.

        Raises:
            NotImplementedError: Always, until a provider is integrated.
        """
        raise NotImplementedError(
            "Competitor API not yet integrated. "
            "Use get_fixture_response() for testing."
        )

    def get_fixture_response(self, url: str) -> CompetitorInfo:
        """Return the fixture records for ``url`` (ignored beyond logging)."""
        domain = urlparse(url).hostname or url
        logger.debug(
            "Competitor stub: returning %d keywords / %d competitors for %s",
            len(self.FIXTURE_KEYWORDS), len(self.FIXTURE_COMPETITORS), domain,
        )
        return CompetitorInfo(
            keywords=[KeywordRanking(**r) for r in self.FIXTURE_KEYWORDS],
            competitors=[CompetitorSummary(**r) for r in self.FIXTURE_COMPETITORS],
            is_placeholder=True,
        )
