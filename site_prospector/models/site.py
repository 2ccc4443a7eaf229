"""
On-page content signals for a single URL.

``SiteInfo`` is the successful result of fetching and parsing a page's HTML.
``SiteInfoError`` is the failure variant stored instead when the fetch or
parse failed. Scoring never branches on the error variant: the analysis
pipeline substitutes ``SiteInfo.empty()`` before calling the core.
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, model_validator

from site_prospector.models.audit import WIRE_CONFIG


class SocialLinks(BaseModel):
    """Whether the page links to each tracked social platform."""

    model_config = WIRE_CONFIG

    facebook: bool = False
    twitter: bool = False
    linkedin: bool = False
    instagram: bool = False

    @property
    def present_count(self) -> int:
        """Number of platforms with at least one link."""
        return sum((self.facebook, self.twitter, self.linkedin, self.instagram))


class SiteInfo(BaseModel):
    """Parsed page metadata and content counts.

    Attributes:
        title: Text of the ``<title>`` element.
        description: ``meta[name=description]`` content, or ``""``.
        keywords: ``meta[name=keywords]`` content, or ``""``.
        images: Number of ``<img>`` elements.
        images_with_alt: Number of ``<img>`` elements carrying an ``alt`` attribute.
        all_links: Number of ``<a>`` elements.
        internal_links: Links that are relative or point at the same host.
        external_links: Links that point at another host.
        word_count: Whitespace-delimited words in the body text.
        has_structured_data: ``True`` if a JSON-LD script block is present.
        social_links: Social platform presence flags.
    """

    model_config = WIRE_CONFIG

    title: str = ""
    description: str = ""
    keywords: str = ""
    images: int = 0
    images_with_alt: int = 0
    all_links: int = 0
    internal_links: int = 0
    external_links: int = 0
    word_count: int = 0
    has_structured_data: bool = False
    social_links: SocialLinks = SocialLinks()

    @model_validator(mode="after")
    def validate_counts(self) -> "SiteInfo":
        for name in (
            "images", "images_with_alt", "all_links",
            "internal_links", "external_links", "word_count",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative.")
        if self.images_with_alt > self.images:
            raise ValueError(
                f"images_with_alt ({self.images_with_alt}) must be <= "
                f"images ({self.images})."
            )
        return self

    @classmethod
    def empty(cls) -> "SiteInfo":
        """Zeroed record used for scoring when page collection failed."""
        return cls()


class SiteInfoError(BaseModel):
    """Failure variant recorded when the page could not be fetched or parsed."""

    model_config = WIRE_CONFIG

    error: str
    details: str = ""


# Error variant first: every SiteInfo field has a default, so order decides.
SiteInfoResult = Union[SiteInfoError, SiteInfo]
