"""
Export helpers.

All writers create parent directories and return the written ``Path``.

The history export is a single JSON document::

  {
    "history":    [ {id, url, overallScore, timestamp, analysis}, ... ],
    "settings":   { darkMode, compactView, autoSave, competitorAnalysis, reportDetail },
    "exportDate": "2026-10-19T14:05:00+00:00"
  }

named ``site-prospector-export-YYYY-MM-DD.json``.
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

from site_prospector.models.analysis import StoredAnalysis
from site_prospector.state import UserSettings
from site_prospector.utils.time_utils import utcnow

EXPORT_PREFIX = "site-prospector-export"
REPORT_PREFIX = "site-prospector-report"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed UTF-8 JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def build_export_payload(
    history: Iterable[StoredAnalysis],
    settings: UserSettings,
    exported_at: Optional[datetime] = None,
) -> dict:
    """Assemble the ``{history, settings, exportDate}`` export document."""
    return {
        "history": [item.model_dump(mode="json", by_alias=True) for item in history],
        "settings": settings.to_wire(),
        "exportDate": (exported_at or utcnow()).isoformat(),
    }


def export_filename(on: Optional[date] = None) -> str:
    """``site-prospector-export-YYYY-MM-DD.json`` for ``on`` (default: today, UTC)."""
    day = on or utcnow().date()
    return f"{EXPORT_PREFIX}-{day.isoformat()}.json"


def report_filename(url: str) -> str:
    """Report file name with every non-alphanumeric URL character replaced by ``-``."""
    return f"{REPORT_PREFIX}-{_UNSAFE_FILENAME_CHARS.sub('-', url)}.html"
