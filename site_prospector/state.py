"""
Application state for interactive front ends (dashboard, CLI).

Everything a UI session mutates lives on one ``AppState`` instance that the
caller creates and passes around; there is no module-level state. Mutation
goes through its methods only:

  record_analysis      — show a new result and, if saving, store it
  select_history_item  — load a stored analysis and switch to the analyze view
  delete_history_item  — remove one stored analysis
  clear_history        — remove all stored analyses
  update_settings      — validate, apply and persist user settings
  switch_view          — change the active view (history view refreshes)

User settings persist as camelCase JSON at ``config.reports.settings_file``.
History persists in the SQLite ``analyses`` table; ``AppState.history`` is a
cache refreshed after every write.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from site_prospector.config import AppConfig
from site_prospector.db.connection import connect_from_config
from site_prospector.db.migrations import init_database
from site_prospector.db.repositories.analysis_repo import AnalysisRepository
from site_prospector.models.analysis import AnalysisResult, HistoryEntry, StoredAnalysis
from site_prospector.models.audit import WIRE_CONFIG

logger = logging.getLogger(__name__)


class View(StrEnum):
    ANALYZE = "analyze"
    HISTORY = "history"
    SETTINGS = "settings"


class HistorySort(StrEnum):
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    SCORE_DESC = "score-desc"
    SCORE_ASC = "score-asc"


class ReportDetail(StrEnum):
    BASIC = "basic"
    STANDARD = "standard"
    DETAILED = "detailed"


# ── Settings ───────────────────────────────────────────────────────────────────

class UserSettings(BaseModel):
    """Per-user display and behaviour preferences.

    Attributes:
        dark_mode: Dark colour theme in the dashboard.
        compact_view: Denser result layout.
        auto_save: Store every analysis in history without being asked.
        competitor_analysis: Request competitor data with each analysis.
        report_detail: How much the HTML report includes.
    """

    model_config = WIRE_CONFIG

    dark_mode: bool = False
    compact_view: bool = False
    auto_save: bool = True
    competitor_analysis: bool = True
    report_detail: ReportDetail = ReportDetail.STANDARD

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def setting_field_name(key: str) -> str:
    """Resolve a snake_case or camelCase settings key to its field name.

    Raises:
        KeyError: If ``key`` names no setting.
    """
    for name, info in UserSettings.model_fields.items():
        if key in (name, info.alias):
            return name
    raise KeyError(key)


def load_settings(path: Path) -> UserSettings:
    """Read settings from ``path``; missing keys take their defaults.

    A missing or unreadable file yields the defaults (logged, not raised), so
    a corrupt settings file never blocks the UI.
    """
    path = Path(path)
    if not path.exists():
        return UserSettings()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return UserSettings.model_validate(raw)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return UserSettings()


def save_settings(settings: UserSettings, path: Path) -> Path:
    """Write ``settings`` to ``path`` as camelCase JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_wire(), indent=2), encoding="utf-8")
    logger.debug("Settings saved to %s", path)
    return path


# ── History filtering ──────────────────────────────────────────────────────────

def filter_and_sort_history(
    entries: Iterable[HistoryEntry],
    search: str = "",
    sort: HistorySort | str = HistorySort.DATE_DESC,
) -> list[HistoryEntry]:
    """Case-insensitive URL substring filter followed by a stable sort.

    Args:
        entries: History entries in any order.
        search: Substring to look for in ``url``; blank keeps everything.
        sort: One of ``date-desc``, ``date-asc``, ``score-desc``, ``score-asc``.

    Raises:
        ValueError: If ``sort`` is not a known option.
    """
    order = HistorySort(sort)
    term = search.strip().lower()
    selected = [e for e in entries if term in e.url.lower()] if term else list(entries)

    if order in (HistorySort.DATE_DESC, HistorySort.DATE_ASC):
        key = lambda e: e.timestamp  # noqa: E731
    else:
        key = lambda e: e.overall_score  # noqa: E731
    reverse = order in (HistorySort.DATE_DESC, HistorySort.SCORE_DESC)
    return sorted(selected, key=key, reverse=reverse)


# ── App state ──────────────────────────────────────────────────────────────────

@dataclass
class AppState:
    """Mutable session state for one UI session.

    Attributes:
        config: Application configuration.
        settings: Current user settings.
        view: Active view.
        current: Analysis being displayed, if any.
        current_id: History id of ``current`` when it is stored.
        history: Cached history listing, newest first.
    """

    config: AppConfig
    settings: UserSettings = field(default_factory=UserSettings)
    view: View = View.ANALYZE
    current: Optional[AnalysisResult] = None
    current_id: Optional[int] = None
    history: list[HistoryEntry] = field(default_factory=list)

    @classmethod
    def load(cls, config: AppConfig) -> "AppState":
        """Build state from the settings file and the history database."""
        state = cls(config=config, settings=load_settings(cls._settings_path(config)))
        state.refresh_history()
        return state

    @staticmethod
    def _settings_path(config: AppConfig) -> Path:
        return Path(config.reports.settings_file)

    @contextmanager
    def _repository(self) -> Iterator[AnalysisRepository]:
        with connect_from_config(self.config.database) as conn:
            init_database(conn)
            yield AnalysisRepository(conn)

    def refresh_history(self) -> list[HistoryEntry]:
        with self._repository() as repo:
            self.history = repo.list_history(limit=self.config.history.limit)
        return self.history

    def stored_analyses(self) -> list[StoredAnalysis]:
        """Every stored analysis with its payload, newest first (for export)."""
        with self._repository() as repo:
            return repo.list_stored(limit=max(repo.count(), 1))

    def record_analysis(
        self,
        result: AnalysisResult,
        save: bool = False,
    ) -> Optional[int]:
        """Make ``result`` current and store it if asked or if auto-save is on.

        Returns:
            The new history id, or ``None`` when not stored.
        """
        self.current = result
        self.current_id = None
        if not (save or self.settings.auto_save):
            return None

        with self._repository() as repo:
            self.current_id = repo.insert(result)
        self.refresh_history()
        logger.info("Recorded analysis id=%d url=%s", self.current_id, result.url)
        return self.current_id

    def select_history_item(self, analysis_id: int) -> AnalysisResult:
        """Load a stored analysis, make it current and switch to the analyze view.

        Raises:
            KeyError: If no analysis has ``analysis_id``.
        """
        with self._repository() as repo:
            stored = repo.get_by_id(analysis_id)
        if stored is None:
            raise KeyError(analysis_id)
        self.current = stored.analysis
        self.current_id = stored.id
        self.switch_view(View.ANALYZE)
        return stored.analysis

    def delete_history_item(self, analysis_id: int) -> bool:
        with self._repository() as repo:
            deleted = repo.delete(analysis_id)
        if deleted and self.current_id == analysis_id:
            self.current_id = None
        self.refresh_history()
        return deleted

    def clear_history(self) -> int:
        with self._repository() as repo:
            removed = repo.clear()
        self.current_id = None
        self.history = []
        return removed

    def update_settings(self, **changes: Any) -> UserSettings:
        """Apply ``changes`` (snake or camel keys), validate, and persist.

        Raises:
            KeyError: For an unknown settings key.
            pydantic.ValidationError: For a value of the wrong type.
        """
        merged = self.settings.model_dump()
        for key, value in changes.items():
            merged[setting_field_name(key)] = value
        self.settings = UserSettings.model_validate(merged)
        save_settings(self.settings, self._settings_path(self.config))
        return self.settings

    def switch_view(self, view: View | str) -> None:
        self.view = View(view)
        if self.view is View.HISTORY:
            self.refresh_history()

    def visible_history(
        self,
        search: str = "",
        sort: HistorySort | str = HistorySort.DATE_DESC,
    ) -> list[HistoryEntry]:
        return filter_and_sort_history(self.history, search, sort)
