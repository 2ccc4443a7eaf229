"""
Dashboard data shaping.

Turns ``site_prospector`` models into ``pandas`` DataFrames for Streamlit
tables and charts. Pure functions: no Streamlit calls and no I/O, so the
dashboard module owns all session state and rendering.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from site_prospector.models.analysis import AnalysisResult, HistoryEntry
from site_prospector.models.site import SiteInfo
from site_prospector.reporting.formatters import (
    CATEGORY_LABELS,
    format_date,
    format_metric_name,
    score_class,
)


def history_frame(entries: Iterable[HistoryEntry]) -> pd.DataFrame:
    """One row per history entry: id, date, score, band, url."""
    rows = [
        {
            "id": e.id,
            "date": format_date(e.timestamp),
            "score": e.overall_score,
            "band": score_class(e.overall_score),
            "url": e.url,
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=["id", "date", "score", "band", "url"])


def breakdown_frame(result: AnalysisResult) -> pd.DataFrame:
    """Category, score, weight and weighted contribution, in display order."""
    rows = []
    for category, label in CATEGORY_LABELS.items():
        cat = result.overall_score.breakdown.get(category)
        if cat is None:
            continue
        rows.append(
            {
                "category": label,
                "score": round(cat.score, 1),
                "weight": cat.weight,
                "contribution": round(cat.score * cat.weight, 2),
            }
        )
    return pd.DataFrame(rows).set_index("category") if rows else pd.DataFrame()


def metrics_frame(result: AnalysisResult) -> pd.DataFrame:
    metrics = result.lighthouse_results.metrics.model_dump(by_alias=True)
    return pd.DataFrame(
        [{"metric": format_metric_name(k), "value": v or "N/A"} for k, v in metrics.items()]
    )


def site_info_rows(result: AnalysisResult) -> list[tuple[str, str]]:
    """Label/value pairs for the site-info panel (empty on a collection error)."""
    site = result.site_info
    if not isinstance(site, SiteInfo):
        return []
    return [
        ("Title", site.title or "(none)"),
        ("Word count", str(site.word_count)),
        ("Images with alt text", f"{site.images_with_alt}/{site.images}"),
        ("Internal links", str(site.internal_links)),
        ("External links", str(site.external_links)),
        ("Structured data", "yes" if site.has_structured_data else "no"),
        ("Social platforms linked", f"{site.social_links.present_count}/4"),
    ]
