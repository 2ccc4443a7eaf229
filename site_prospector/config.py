"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``SITE_PROSPECTOR_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The CLI, HTTP server, dashboard and analysis pipeline all receive an
``AppConfig`` instance, built and validated once at startup. Nothing reads
environment variables after that point.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/site_prospector.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class ServerConfig(BaseModel):
    """HTTP API bind address."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 3000

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"port must be in [1, 65535], got {v}.")
        return v


class AuditConfig(BaseModel):
    """How performance audits are executed.

    ``backend = "lighthouse"`` runs the local Lighthouse CLI against headless
    Chrome; ``backend = "pagespeed"`` calls the PageSpeed Insights API, which
    returns the same Lighthouse report structure.
    """

    model_config = ConfigDict(frozen=True)

    backend: Literal["lighthouse", "pagespeed"] = "lighthouse"
    lighthouse_bin: str = "lighthouse"
    chrome_flags: str = "--headless --disable-gpu --no-sandbox"
    pagespeed_api_key: str = ""
    strategy: Literal["mobile", "desktop"] = "mobile"
    timeout_seconds: float = 120.0

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}.")
        return v


class FetchConfig(BaseModel):
    """HTTP fetch settings for page, header and sitemap collection."""

    model_config = ConfigDict(frozen=True)

    user_agent: str = "SiteProspector/0.1 (+https://github.com/site-prospector)"
    timeout_seconds: float = 20.0
    max_html_bytes: int = 2_097_152


class CompetitorsConfig(BaseModel):
    """Competitor keyword provider settings.

    With no ``api_key`` the stub client serves placeholder fixture data.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str = ""


class HistoryConfig(BaseModel):
    """History listing limits."""

    model_config = ConfigDict(frozen=True)

    limit: int = 50

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"history limit must be >= 1, got {v}.")
        return v


class ReportsConfig(BaseModel):
    """Output locations for exports, HTML reports and user settings."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/reports"
    settings_file: str = "data/settings.json"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/site_prospector.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    server: ServerConfig = ServerConfig()
    audit: AuditConfig = AuditConfig()
    fetch: FetchConfig = FetchConfig()
    competitors: CompetitorsConfig = CompetitorsConfig()
    history: HistoryConfig = HistoryConfig()
    reports: ReportsConfig = ReportsConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply SITE_PROSPECTOR_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SITE_PROSPECTOR_* env vars to the raw config dict.

    Supported overrides:
      SITE_PROSPECTOR_DB_PATH            → raw["database"]["db_path"]
      SITE_PROSPECTOR_LOG_LEVEL          → raw["logging"]["level"]
      SITE_PROSPECTOR_PORT               → raw["server"]["port"]
      SITE_PROSPECTOR_PAGESPEED_API_KEY  → raw["audit"]["pagespeed_api_key"]
      SITE_PROSPECTOR_COMPETITOR_API_KEY → raw["competitors"]["api_key"]
      SITE_PROSPECTOR_DEBUG              → raw["debug"]
    """
    if db_path := os.environ.get("SITE_PROSPECTOR_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("SITE_PROSPECTOR_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if port := os.environ.get("SITE_PROSPECTOR_PORT"):
        raw.setdefault("server", {})["port"] = port

    if api_key := os.environ.get("SITE_PROSPECTOR_PAGESPEED_API_KEY"):
        raw.setdefault("audit", {})["pagespeed_api_key"] = api_key

    if competitor_key := os.environ.get("SITE_PROSPECTOR_COMPETITOR_API_KEY"):
        raw.setdefault("competitors", {})["api_key"] = competitor_key

    if debug := os.environ.get("SITE_PROSPECTOR_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        server=ServerConfig(**raw.get("server", {})),
        audit=AuditConfig(**raw.get("audit", {})),
        fetch=FetchConfig(**raw.get("fetch", {})),
        competitors=CompetitorsConfig(**raw.get("competitors", {})),
        history=HistoryConfig(**raw.get("history", {})),
        reports=ReportsConfig(**raw.get("reports", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
