"""
Tests for the weighted score aggregator.

What we test
------------
1. Worked example: the sample inputs score 86 overall with the expected
   per-category values; ageing the content to 10 days drops it to 84.
2. Weights: five categories, summing to 1.0, carried through to the breakdown.
3. SEO bonus: averaged over three indicators, capped at 100.
4. Content: each sub-score cap, the zero-image policy, overall cap and
   monotonicity in word count, alt-text coverage, internal links and
   social platforms.
5. Freshness: step boundaries (exclusive upper bounds) and the NotFound default.
6. Mobile: 100 / 30.
7. round_half_up: halves go up, unlike built-in round().
8. Totality: the empty SiteInfo and NotFound freshness still produce a score.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from site_prospector.models.audit import AuditScores, PerformanceAudit, SeoDetails
from site_prospector.models.freshness import FreshnessFound, FreshnessNotFound
from site_prospector.models.site import SiteInfo, SocialLinks
from site_prospector.scoring.aggregator import (
    CATEGORY_WEIGHTS,
    FRESHNESS_UNKNOWN_SCORE,
    compute_overall_score,
    content_score,
    freshness_score,
    mobile_score,
    round_half_up,
    seo_score,
)
from site_prospector.taxonomy.categories import FreshnessSource, ScoreCategory


# ── Helpers ───────────────────────────────────────────────────────────────────

def _audit(
    performance: float = 80,
    seo: float = 80,
    mobile: bool = True,
    has_meta: bool = False,
    has_title: bool = False,
) -> PerformanceAudit:
    return PerformanceAudit(
        scores=AuditScores(performance=performance, seo=seo, mobile_friendly=mobile),
        seo_details=SeoDetails(has_meta=has_meta, has_title=has_title),
    )


def _found(age: int) -> FreshnessFound:
    return FreshnessFound(
        last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
        age_in_days=age,
        source=FreshnessSource.SITEMAP,
    )


# ── Worked example ────────────────────────────────────────────────────────────

class TestWorkedExample:
    def test_overall_is_86(self, sample_audit, sample_site_info, sample_freshness):
        result = compute_overall_score(sample_audit, sample_site_info, sample_freshness)
        assert result.overall == 86

    def test_category_scores(self, sample_audit, sample_site_info, sample_freshness):
        result = compute_overall_score(sample_audit, sample_site_info, sample_freshness)
        assert result.score_for(ScoreCategory.PERFORMANCE) == pytest.approx(45.0)
        assert result.score_for(ScoreCategory.SEO) == pytest.approx(100.0)
        assert result.score_for(ScoreCategory.CONTENT) == pytest.approx(97.0)
        assert result.score_for(ScoreCategory.FRESHNESS) == pytest.approx(100.0)
        assert result.score_for(ScoreCategory.MOBILE_FRIENDLY) == pytest.approx(100.0)

    def test_ten_day_old_content_scores_84(self, sample_audit, sample_site_info):
        result = compute_overall_score(sample_audit, sample_site_info, _found(10))
        assert result.score_for(ScoreCategory.FRESHNESS) == pytest.approx(90.0)
        assert result.overall == 84

    def test_category_scores_are_not_rounded(self, sample_audit, sample_freshness):
        site = SiteInfo(word_count=100)  # 100/500 * 30 = 6.0
        site_two_thirds = SiteInfo(word_count=111)
        result = compute_overall_score(sample_audit, site_two_thirds, sample_freshness)
        assert result.score_for(ScoreCategory.CONTENT) == pytest.approx(111 / 500 * 30)
        assert content_score(site) == pytest.approx(6.0)


# ── Weights ───────────────────────────────────────────────────────────────────

class TestWeights:
    def test_weights_sum_to_one(self):
        assert sum(CATEGORY_WEIGHTS.values()) == pytest.approx(1.0)

    def test_every_category_weighted(self):
        assert set(CATEGORY_WEIGHTS) == set(ScoreCategory)

    def test_breakdown_carries_weights(self, sample_audit, sample_site_info, sample_freshness):
        result = compute_overall_score(sample_audit, sample_site_info, sample_freshness)
        assert result.breakdown[ScoreCategory.PERFORMANCE].weight == pytest.approx(0.25)
        assert result.breakdown[ScoreCategory.SEO].weight == pytest.approx(0.25)
        assert result.breakdown[ScoreCategory.CONTENT].weight == pytest.approx(0.15)
        assert result.breakdown[ScoreCategory.FRESHNESS].weight == pytest.approx(0.20)
        assert result.breakdown[ScoreCategory.MOBILE_FRIENDLY].weight == pytest.approx(0.15)

    def test_wire_keys_are_camel_case(self, sample_audit, sample_site_info, sample_freshness):
        dumped = compute_overall_score(
            sample_audit, sample_site_info, sample_freshness
        ).model_dump(mode="json", by_alias=True)
        assert set(dumped["breakdown"]) == {
            "performance", "seo", "content", "freshness", "mobileFriendly",
        }


# ── SEO ───────────────────────────────────────────────────────────────────────

class TestSeoScore:
    def test_no_indicators_no_bonus(self):
        assert seo_score(_audit(seo=80), SiteInfo()) == pytest.approx(80.0)

    def test_bonus_is_averaged(self):
        audit = _audit(seo=80, has_meta=True)
        assert seo_score(audit, SiteInfo()) == pytest.approx(80 + 5 / 3)

    def test_all_indicators_add_five(self):
        audit = _audit(seo=80, has_meta=True, has_title=True)
        assert seo_score(audit, SiteInfo(has_structured_data=True)) == pytest.approx(85.0)

    def test_capped_at_100(self):
        audit = _audit(seo=99, has_meta=True, has_title=True)
        assert seo_score(audit, SiteInfo(has_structured_data=True)) == pytest.approx(100.0)


# ── Content ───────────────────────────────────────────────────────────────────

class TestContentScore:
    def test_empty_site_scores_zero(self):
        assert content_score(SiteInfo.empty()) == 0.0

    def test_word_count_caps_at_30(self):
        assert content_score(SiteInfo(word_count=500)) == pytest.approx(30.0)
        assert content_score(SiteInfo(word_count=5000)) == pytest.approx(30.0)

    def test_word_count_linear_ramp(self):
        assert content_score(SiteInfo(word_count=250)) == pytest.approx(15.0)

    def test_zero_images_score_zero_alt_text(self):
        assert content_score(SiteInfo(images=0, images_with_alt=0)) == 0.0

    def test_alt_text_ratio(self):
        assert content_score(SiteInfo(images=4, images_with_alt=2)) == pytest.approx(15.0)

    def test_internal_links_cap(self):
        assert content_score(SiteInfo(internal_links=5)) == pytest.approx(10.0)
        assert content_score(SiteInfo(internal_links=50)) == pytest.approx(20.0)

    def test_social_presence(self):
        social = SocialLinks(facebook=True, linkedin=True)
        assert content_score(SiteInfo(social_links=social)) == pytest.approx(10.0)

    def test_total_capped_at_100(self):
        site = SiteInfo(
            word_count=2000,
            images=3,
            images_with_alt=3,
            internal_links=40,
            social_links=SocialLinks(facebook=True, twitter=True, linkedin=True, instagram=True),
        )
        assert content_score(site) == pytest.approx(100.0)

    def test_monotonic_in_word_count(self):
        scores = [content_score(SiteInfo(word_count=n)) for n in range(0, 1200, 37)]
        assert scores == sorted(scores)

    def test_monotonic_in_internal_links(self):
        scores = [content_score(SiteInfo(internal_links=n)) for n in range(0, 30)]
        assert scores == sorted(scores)

    def test_monotonic_in_images_with_alt(self):
        scores = [
            content_score(SiteInfo(images=10, images_with_alt=n)) for n in range(0, 11)
        ]
        assert scores == sorted(scores)
        assert scores[0] < scores[-1]

    def test_monotonic_in_social_flags(self):
        platforms = ("facebook", "twitter", "linkedin", "instagram")
        scores = [
            content_score(SiteInfo(
                social_links=SocialLinks(**{name: True for name in platforms[:n]})
            ))
            for n in range(0, len(platforms) + 1)
        ]
        assert scores == sorted(scores)
        assert scores[0] < scores[-1]


# ── Freshness ─────────────────────────────────────────────────────────────────

class TestFreshnessScore:
    @pytest.mark.parametrize(
        "age,expected",
        [
            (0, 100), (6, 100), (7, 90), (29, 90), (30, 75), (89, 75),
            (90, 60), (179, 60), (180, 40), (364, 40), (365, 20), (4000, 20),
        ],
    )
    def test_step_boundaries(self, age, expected):
        assert freshness_score(_found(age)) == expected

    def test_not_found_defaults_to_50(self):
        assert freshness_score(FreshnessNotFound()) == FRESHNESS_UNKNOWN_SCORE == 50

    def test_non_increasing(self):
        scores = [freshness_score(_found(age)) for age in range(0, 400)]
        assert scores == sorted(scores, reverse=True)


# ── Mobile ────────────────────────────────────────────────────────────────────

class TestMobileScore:
    def test_mobile_friendly(self):
        assert mobile_score(_audit(mobile=True)) == 100

    def test_not_mobile_friendly(self):
        assert mobile_score(_audit(mobile=False)) == 30


# ── Rounding and totality ─────────────────────────────────────────────────────

class TestRounding:
    def test_half_rounds_up(self):
        assert round_half_up(86.5) == 87
        assert round_half_up(0.5) == 1

    def test_below_half_rounds_down(self):
        assert round_half_up(86.49) == 86

    def test_differs_from_bankers_rounding(self):
        assert round(86.5) == 86
        assert round_half_up(86.5) == 87


class TestTotality:
    def test_empty_inputs_still_score(self):
        result = compute_overall_score(
            _audit(performance=0, seo=0, mobile=False),
            SiteInfo.empty(),
            FreshnessNotFound(reason="no date signals found"),
        )
        # 0 + 0 + 0 + 50*0.20 + 30*0.15 = 14.5
        assert result.overall == 15

    def test_perfect_inputs_score_100(self, sample_site_info):
        site = sample_site_info.model_copy(
            update={"images_with_alt": 10}
        )
        audit = _audit(performance=100, seo=100, has_meta=True, has_title=True)
        assert compute_overall_score(audit, site, _found(0)).overall == 100
