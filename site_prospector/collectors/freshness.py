"""
Last-updated (freshness) collector.

Date signals, gathered from two requests:
  1. The page response's ``Last-Modified`` header.
  2. ``<scheme>://<host>/sitemap.xml``: the ``<lastmod>`` of the ``<url>``
     entry whose ``<loc>`` equals the page URL exactly. A missing or broken
     sitemap is not an error.
  3. The page HTML: every ``<time datetime>`` value plus the
     ``article:published_time`` / ``article:modified_time`` meta tags.

The most recent parseable date wins. The reported ``source`` reflects which
signals were present, not which one won: "HTTP headers" if the header
yielded a date, else "Sitemap" if the sitemap did, else "Content".

This collector never raises: no usable date gives
``FreshnessNotFound(reason="no date signals found")`` and a failed page fetch
gives ``FreshnessNotFound(reason=<error text>)``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from site_prospector.collectors.site_info import http_get
from site_prospector.config import FetchConfig
from site_prospector.models.freshness import FreshnessFound, FreshnessInfo, FreshnessNotFound
from site_prospector.taxonomy.categories import FreshnessSource
from site_prospector.utils.time_utils import age_in_days, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

NO_SIGNALS_REASON = "no date signals found"

_ARTICLE_TIME_PROPERTIES = ("article:published_time", "article:modified_time")


# ── Pure signal extraction ─────────────────────────────────────────────────────

def sitemap_url_for(url: str) -> str:
    """Root sitemap location for the site hosting ``url``."""
    parts = urlparse(url)
    return f"{parts.scheme}://{parts.netloc}/sitemap.xml"


def find_sitemap_lastmod(sitemap_xml: str, url: str) -> Optional[str]:
    """Return the ``<lastmod>`` text for the entry whose ``<loc>`` is ``url``.

    The last matching entry wins if the sitemap lists the URL twice.
    """
    soup = BeautifulSoup(sitemap_xml, "html.parser")
    found: Optional[str] = None
    for entry in soup.find_all("url"):
        loc = entry.find("loc")
        if loc is None or loc.get_text().strip() != url:
            continue
        lastmod = entry.find("lastmod")
        if lastmod is not None:
            found = lastmod.get_text().strip()
    return found


def extract_content_dates(html: str) -> list[str]:
    """Collect raw date strings from ``<time datetime>`` and article meta tags."""
    soup = BeautifulSoup(html, "html.parser")
    dates = [
        str(tag["datetime"])
        for tag in soup.find_all("time")
        if tag.get("datetime")
    ]
    for prop in _ARTICLE_TIME_PROPERTIES:
        meta = soup.find("meta", attrs={"property": prop})
        if meta is not None and meta.get("content"):
            dates.append(str(meta["content"]))
    return dates


def resolve_freshness(
    header_date: Optional[str],
    sitemap_date: Optional[str],
    content_dates: Iterable[str],
    now: Optional[datetime] = None,
) -> FreshnessInfo:
    """Combine raw date signals into a ``FreshnessInfo``.

    Unparseable strings are ignored.

    Args:
        header_date: ``Last-Modified`` header value, if any.
        sitemap_date: Sitemap ``<lastmod>`` for the page, if any.
        content_dates: Date strings found in the page markup.
        now: Reference time for the age; defaults to ``utcnow()``.

    Returns:
        ``FreshnessFound`` for the most recent date, or ``FreshnessNotFound``.
    """
    header = parse_timestamp(header_date)
    sitemap = parse_timestamp(sitemap_date)
    content = [d for d in (parse_timestamp(raw) for raw in content_dates) if d is not None]

    candidates = [d for d in (header, sitemap, *content) if d is not None]
    if not candidates:
        return FreshnessNotFound(reason=NO_SIGNALS_REASON)

    most_recent = max(candidates)
    if header is not None:
        source = FreshnessSource.HTTP_HEADER
    elif sitemap is not None:
        source = FreshnessSource.SITEMAP
    else:
        source = FreshnessSource.CONTENT

    return FreshnessFound(
        last_updated=most_recent,
        age_in_days=age_in_days(most_recent, now),
        source=source,
    )


# ── Collector ──────────────────────────────────────────────────────────────────

async def detect_freshness(
    url: str,
    config: FetchConfig,
    client: Optional[httpx.AsyncClient] = None,
    now: Optional[datetime] = None,
) -> FreshnessInfo:
    """Fetch the page and its sitemap and resolve a last-updated date.

    Args:
        url: Absolute page URL.
        config: Fetch settings.
        client: Optional shared ``httpx.AsyncClient`` (injected in tests).
        now: Reference time for the age; defaults to ``utcnow()``.
    """
    try:
        resp = await http_get(url, config, client)
        resp.raise_for_status()
        html = resp.content[: config.max_html_bytes].decode(
            resp.encoding or "utf-8", errors="replace"
        )
        header_date = resp.headers.get("last-modified")
        content_dates = extract_content_dates(html)
    except Exception as exc:
        logger.warning("Freshness detection failed | url=%s | error=%s", url, exc)
        return FreshnessNotFound(reason=str(exc))

    sitemap_date = await _fetch_sitemap_lastmod(url, config, client)

    try:
        result = resolve_freshness(header_date, sitemap_date, content_dates, now or utcnow())
    except Exception as exc:
        logger.warning("Freshness resolution failed | url=%s | error=%s", url, exc)
        return FreshnessNotFound(reason=str(exc))

    if isinstance(result, FreshnessFound):
        logger.debug(
            "Freshness resolved | url=%s | age_days=%d | source=%s",
            url, result.age_in_days, result.source,
        )
    else:
        logger.debug("Freshness unknown | url=%s | reason=%s", url, result.reason)
    return result


async def _fetch_sitemap_lastmod(
    url: str,
    config: FetchConfig,
    client: Optional[httpx.AsyncClient],
) -> Optional[str]:
    sitemap_url = sitemap_url_for(url)
    try:
        resp = await http_get(sitemap_url, config, client)
        if resp.status_code != 200:
            logger.debug("No sitemap | url=%s | status=%d", sitemap_url, resp.status_code)
            return None
        return find_sitemap_lastmod(resp.text, url)
    except httpx.HTTPError as exc:
        logger.debug("Sitemap unavailable | url=%s | error=%s", sitemap_url, exc)
        return None
