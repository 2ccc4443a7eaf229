"""
On-page content collector.

Fetches the page HTML with httpx and extracts the signals ``SiteInfo`` holds.
Parsing is split out as the pure ``parse_site_info(html, url)`` so tests can
feed literal HTML without a network.

Link classification follows a simple rule: an ``href`` that does not start
with ``http`` (relative, fragment, ``mailto:``) or that contains the page's
hostname is internal; everything else is external. ``all_links`` counts every
``<a>`` element, including those without an ``href``.

Any failure (network, HTTP status, decode) yields
``SiteInfoError("Failed to get site info", details)``; this collector never
raises.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from site_prospector.config import FetchConfig
from site_prospector.models.site import SiteInfo, SiteInfoError, SiteInfoResult, SocialLinks

logger = logging.getLogger(__name__)

SITE_INFO_ERROR = "Failed to get site info"

# platform → href substrings that identify it
_SOCIAL_PATTERNS: dict[str, tuple[str, ...]] = {
    "facebook":  ("facebook.com",),
    "twitter":   ("twitter.com", "x.com"),
    "linkedin":  ("linkedin.com",),
    "instagram": ("instagram.com",),
}

_NON_CONTENT_TAGS = ("script", "style", "noscript", "template")


def parse_site_info(html: str, url: str) -> SiteInfo:
    """Extract content signals from a page's HTML.

    Args:
        html: Raw HTML document.
        url: The page URL; its hostname decides internal vs external links.

    Returns:
        Populated ``SiteInfo``.
    """
    soup = BeautifulSoup(html, "html.parser")
    domain = urlparse(url).hostname or ""

    title = soup.title.get_text().strip() if soup.title else ""
    description = _meta_content(soup, "description")
    keywords = _meta_content(soup, "keywords")

    images = soup.find_all("img")
    images_with_alt = sum(1 for img in images if img.has_attr("alt"))

    anchors = soup.find_all("a")
    hrefs = [a["href"] for a in anchors if a.has_attr("href")]
    internal = sum(
        1 for href in hrefs
        if not href.startswith("http") or (domain and domain in href)
    )

    has_structured_data = soup.find("script", attrs={"type": "application/ld+json"}) is not None

    social = SocialLinks(**{
        platform: any(p in href for href in hrefs for p in patterns)
        for platform, patterns in _SOCIAL_PATTERNS.items()
    })

    # Word count is taken last: stripping non-content tags mutates the tree.
    body = soup.body or soup
    for tag in body.find_all(_NON_CONTENT_TAGS):
        tag.decompose()
    word_count = len(body.get_text(" ").split())

    return SiteInfo(
        title=title,
        description=description,
        keywords=keywords,
        images=len(images),
        images_with_alt=images_with_alt,
        all_links=len(anchors),
        internal_links=internal,
        external_links=len(hrefs) - internal,
        word_count=word_count,
        has_structured_data=has_structured_data,
        social_links=social,
    )


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return ""
    return str(tag.get("content") or "").strip()


async def fetch_site_info(
    url: str,
    config: FetchConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> SiteInfoResult:
    """Fetch ``url`` and parse it into ``SiteInfo``.

    Args:
        url: Absolute page URL.
        config: Fetch settings (user agent, timeout, body size cap).
        client: Optional shared ``httpx.AsyncClient`` (injected in tests).

    Returns:
        ``SiteInfo`` on success, ``SiteInfoError`` on any failure.
    """
    try:
        html = await fetch_html(url, config, client)
        info = parse_site_info(html, url)
    except Exception as exc:
        logger.warning("Site info collection failed | url=%s | error=%s", url, exc)
        return SiteInfoError(error=SITE_INFO_ERROR, details=str(exc))

    logger.debug(
        "Site info collected | url=%s | words=%d | images=%d | links=%d",
        url, info.word_count, info.images, info.all_links,
    )
    return info


async def fetch_html(
    url: str,
    config: FetchConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """GET ``url`` and return the decoded body, truncated to ``max_html_bytes``.

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx status.
    """
    resp = await http_get(url, config, client)
    resp.raise_for_status()
    return resp.content[: config.max_html_bytes].decode(resp.encoding or "utf-8", errors="replace")


async def http_get(
    url: str,
    config: FetchConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> httpx.Response:
    """GET with the configured user agent and timeout, following redirects."""
    headers = {"User-Agent": config.user_agent}
    if client is not None:
        return await client.get(
            url, headers=headers, timeout=config.timeout_seconds, follow_redirects=True
        )
    async with httpx.AsyncClient(follow_redirects=True) as own_client:
        return await own_client.get(url, headers=headers, timeout=config.timeout_seconds)
