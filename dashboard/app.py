"""
Site Prospector — Streamlit Dashboard
=====================================

Optional local UI over the same pipeline, history database and settings file
the CLI uses.

Why optional?
-------------
- Streamlit and pandas are heavy and not needed for the CLI or the API.
- Everything shown here is also available via ``site-prospector`` commands.

Views (sidebar)
---------------
  1. Analyze   — run an analysis, show score breakdown, recommendations,
                 metrics, site info and freshness; download the HTML report.
  2. History   — search / sort stored analyses, open or delete one, clear all,
                 export history + settings as JSON.
  3. Settings  — user preferences persisted to ``reports.settings_file``.

All session state lives on one ``AppState`` held in ``st.session_state``.

Usage
-----
    pip install -e ".[dashboard]"
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

# ── Ensure project root is importable ────────────────────────────────────────
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import streamlit as st

# ── Must be the first Streamlit call ─────────────────────────────────────────
st.set_page_config(
    page_title="Site Prospector",
    layout="wide",
    initial_sidebar_state="expanded",
)

from dashboard.data_loader import (
    breakdown_frame,
    history_frame,
    metrics_frame,
    site_info_rows,
)
from site_prospector.config import load_config
from site_prospector.models.freshness import FreshnessFound
from site_prospector.pipeline.analyze import AnalysisError, AnalysisPipeline
from site_prospector.reporting.export import (
    build_export_payload,
    export_filename,
    report_filename,
)
from site_prospector.reporting.formatters import score_class, share_text
from site_prospector.reporting.html_report import generate_report_html
from site_prospector.state import AppState, HistorySort, ReportDetail, View
from site_prospector.utils.logging import configure_logging

_BAND_COLOURS = {
    "excellent": "green",
    "good": "green",
    "average": "orange",
    "poor": "orange",
    "bad": "red",
}


def _get_state() -> AppState:
    if "app_state" not in st.session_state:
        config = load_config()
        configure_logging(config.logging)
        st.session_state["app_state"] = AppState.load(config)
    return st.session_state["app_state"]


state = _get_state()


# ── Sidebar ───────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("Site Prospector")
    st.caption("Website analysis, scoring and recommendations")
    st.divider()

    labels = {View.ANALYZE: "Analyze", View.HISTORY: "History", View.SETTINGS: "Settings"}
    views = list(labels)
    chosen = st.radio(
        "View",
        options=views,
        index=views.index(state.view),
        format_func=lambda v: labels[v],
    )
    if chosen != state.view:
        state.switch_view(chosen)

    st.divider()
    st.caption(f"{len(state.history)} stored analyses")


# ── Analysis rendering ────────────────────────────────────────────────────────

def _render_result() -> None:
    result = state.current
    if result is None:
        return

    overall = result.overall_score.overall
    band = score_class(overall)
    st.subheader(result.url)
    st.markdown(f"### Overall score: :{_BAND_COLOURS[band]}[{overall}/100] ({band})")

    frame = breakdown_frame(result)
    if not frame.empty:
        st.bar_chart(frame["score"])
        if not state.settings.compact_view:
            st.dataframe(frame, use_container_width=True)

    st.markdown(f"#### Recommendations ({len(result.recommendations)})")
    if not result.recommendations:
        st.success("No recommendations: every check passed.")
    for rec in result.recommendations:
        with st.expander(f"[{rec.priority.upper()}] {rec.title}", expanded=rec.priority == "high"):
            st.write(rec.description)
            for detail in rec.details:
                st.markdown(f"- {detail}")

    if not state.settings.compact_view:
        left, right = st.columns(2)
        with left:
            st.markdown("#### Metrics")
            st.dataframe(metrics_frame(result), hide_index=True, use_container_width=True)
        with right:
            st.markdown("#### Site info")
            rows = site_info_rows(result)
            if rows:
                for label, value in rows:
                    st.write(f"**{label}:** {value}")
            else:
                st.warning(f"{result.site_info.error}: {result.site_info.details}")

    fresh = result.last_updated
    if isinstance(fresh, FreshnessFound):
        st.info(f"Last updated {fresh.age_in_days} days ago (via {fresh.source}).")
    else:
        st.info("Last updated: unknown.")

    info = result.competitor_info
    if info is not None and info.competitors:
        st.markdown("#### Competitors")
        if info.is_placeholder:
            st.caption("Placeholder data: no competitor intelligence provider is configured.")
        st.table([c.model_dump(by_alias=True) for c in info.competitors])

    st.download_button(
        "Download HTML report",
        data=generate_report_html(result, state.settings.report_detail),
        file_name=report_filename(result.url),
        mime="text/html",
    )
    st.code(share_text(result), language=None)


# ══════════════════════════════════════════════════════════════════════════════
# Analyze
# ══════════════════════════════════════════════════════════════════════════════

if state.view is View.ANALYZE:
    st.header("Analyze a website")
    with st.form("analyze"):
        url = st.text_input("Website URL", placeholder="example.com")
        save = st.checkbox("Save to history", value=state.settings.auto_save)
        submitted = st.form_submit_button("Analyze")

    if submitted and url.strip():
        pipeline = AnalysisPipeline(state.config)
        with st.spinner(f"Analyzing {url} ..."):
            try:
                run = pipeline.run(
                    url,
                    include_competitors=state.settings.competitor_analysis,
                    save=False,
                )
            except (ValueError, AnalysisError) as exc:
                details = getattr(exc, "details", "")
                st.error(f"{exc}{': ' + details if details else ''}")
            else:
                state.record_analysis(run.result, save=save)

    _render_result()


# ══════════════════════════════════════════════════════════════════════════════
# History
# ══════════════════════════════════════════════════════════════════════════════

elif state.view is View.HISTORY:
    st.header("Analysis history")

    col_search, col_sort = st.columns([3, 1])
    with col_search:
        search = st.text_input("Search URLs")
    with col_sort:
        sort = st.selectbox("Sort", options=[s.value for s in HistorySort])

    entries = state.visible_history(search, sort)
    if not entries:
        st.info("No analysis history found.")
    else:
        st.dataframe(history_frame(entries), hide_index=True, use_container_width=True)

        ids = [e.id for e in entries]
        selected = st.selectbox("Analysis", options=ids,
                                format_func=lambda i: next(e.url for e in entries if e.id == i))
        col_view, col_delete = st.columns(2)
        if col_view.button("View"):
            state.select_history_item(selected)
            st.rerun()
        if col_delete.button("Delete"):
            state.delete_history_item(selected)
            st.rerun()

    st.divider()
    col_export, col_clear = st.columns(2)
    with col_export:
        payload = build_export_payload(state.stored_analyses(), state.settings)
        st.download_button(
            "Export data",
            data=json.dumps(payload, indent=2),
            file_name=export_filename(),
            mime="application/json",
        )
    with col_clear:
        confirm = st.checkbox("I understand this cannot be undone")
        if st.button("Clear history", disabled=not confirm):
            state.clear_history()
            st.rerun()


# ══════════════════════════════════════════════════════════════════════════════
# Settings
# ══════════════════════════════════════════════════════════════════════════════

else:
    st.header("Settings")
    current = state.settings
    with st.form("settings"):
        dark_mode = st.toggle("Dark mode", value=current.dark_mode)
        compact_view = st.toggle("Compact view", value=current.compact_view)
        auto_save = st.toggle("Auto-save analyses", value=current.auto_save)
        competitor_analysis = st.toggle(
            "Include competitor analysis", value=current.competitor_analysis
        )
        details = [d.value for d in ReportDetail]
        report_detail = st.selectbox(
            "Report detail", options=details, index=details.index(current.report_detail)
        )
        if st.form_submit_button("Save settings"):
            state.update_settings(
                dark_mode=dark_mode,
                compact_view=compact_view,
                auto_save=auto_save,
                competitor_analysis=competitor_analysis,
                report_detail=report_detail,
            )
            st.success("Settings saved.")
