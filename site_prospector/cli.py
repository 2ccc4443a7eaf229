"""
Site Prospector — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (analysis, history query, export, server).
  5. Report result to stdout.

Install and run::

    pip install -e .
    site-prospector --help
    site-prospector init-db
    site-prospector analyze example.com
    site-prospector history --sort score-desc
    site-prospector report 12
    site-prospector serve
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="site-prospector",
    help="Site Prospector — website analysis, scoring and recommendations.",
    add_completion=False,
)

_CONFIG_HELP = "Path to TOML config file (default: config/default.toml)."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from site_prospector.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from site_prospector.utils.logging import configure_logging
    configure_logging(config.logging)


def _open_repository(config):
    """Context manager yielding an ``AnalysisRepository`` on an initialized DB."""
    from contextlib import contextmanager

    from site_prospector.db.connection import connect_from_config
    from site_prospector.db.migrations import init_database
    from site_prospector.db.repositories.analysis_repo import AnalysisRepository

    @contextmanager
    def _repo():
        with connect_from_config(config.database) as conn:
            init_database(conn)
            yield AnalysisRepository(conn)

    return _repo()


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Initialize the history database and apply pending migrations.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    """
    from site_prospector.db.connection import get_connection
    from site_prospector.db.migrations import run_migrations
    from site_prospector.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:   {config.database.db_path}")
    typer.echo(f"  Audit backend:   {config.audit.backend} ({config.audit.strategy})")
    typer.echo(f"  PageSpeed key:   {'set' if config.audit.pagespeed_api_key else 'not set'}")
    typer.echo(f"  Competitor key:  {'set' if config.competitors.api_key else 'not set (placeholder data)'}")
    typer.echo(f"  Server:          {config.server.host}:{config.server.port}")
    typer.echo(f"  History limit:   {config.history.limit}")
    typer.echo(f"  Log level:       {config.logging.level}")
    typer.echo(f"  Debug mode:      {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        dumped = config.model_dump()
        if dumped["audit"]["pagespeed_api_key"]:
            dumped["audit"]["pagespeed_api_key"] = "***"
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("analyze")
def analyze(
    url: str = typer.Argument(..., help="Website URL; https:// is assumed when omitted."),
    no_competitors: bool = typer.Option(
        False, "--no-competitors", help="Skip competitor data."
    ),
    no_save: bool = typer.Option(
        False, "--no-save", help="Do not store the result in history."
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the full analysis as JSON."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Analyze a website and print its score and recommendations."""
    from site_prospector.pipeline.analyze import AnalysisError, AnalysisPipeline
    from site_prospector.reporting.formatters import format_analysis
    from site_prospector.state import load_settings

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    settings = load_settings(Path(config.reports.settings_file))

    include_competitors = settings.competitor_analysis and not no_competitors
    save = settings.auto_save and not no_save

    if not as_json:
        typer.echo(f"Analyzing {url} ...")
    try:
        run = AnalysisPipeline(config).run(
            url, include_competitors=include_competitors, save=save
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except AnalysisError as exc:
        typer.echo(f"[ERROR] {exc}: {exc.details}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        payload = run.result.to_wire()
        if run.analysis_id is not None:
            payload["id"] = run.analysis_id
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(format_analysis(run.result, compact=settings.compact_view))
    typer.echo("")
    if run.analysis_id is not None:
        typer.echo(f"[OK] Saved to history as #{run.analysis_id}.")
    else:
        typer.echo("[OK] Analysis complete (not saved).")


@app.command("history")
def history(
    search: str = typer.Option("", "--search", "-s", help="Filter by URL substring."),
    sort: str = typer.Option(
        "date-desc",
        "--sort",
        help="date-desc | date-asc | score-desc | score-asc",
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", help="Max entries (default: history.limit from config)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """List stored analyses."""
    from site_prospector.reporting.formatters import format_history_table
    from site_prospector.state import HistorySort, filter_and_sort_history

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        order = HistorySort(sort)
    except ValueError:
        valid = ", ".join(s.value for s in HistorySort)
        typer.echo(f"[ERROR] Unknown sort '{sort}'. Valid: {valid}", err=True)
        raise typer.Exit(code=1)

    with _open_repository(config) as repo:
        entries = repo.list_history(limit=limit or config.history.limit, search=search or None)

    typer.echo(format_history_table(filter_and_sort_history(entries, search, order)))


@app.command("show")
def show(
    analysis_id: int = typer.Argument(..., help="History id."),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Show one stored analysis."""
    from site_prospector.reporting.formatters import format_analysis

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_repository(config) as repo:
        stored = repo.get_by_id(analysis_id)

    if stored is None:
        typer.echo(f"[ERROR] No analysis with id {analysis_id}.", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(stored.model_dump(mode="json", by_alias=True), indent=2))
    else:
        typer.echo(format_analysis(stored.analysis))


@app.command("delete")
def delete(
    analysis_id: int = typer.Argument(..., help="History id."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Delete one stored analysis."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_repository(config) as repo:
        deleted = repo.delete(analysis_id)

    if not deleted:
        typer.echo(f"[ERROR] No analysis with id {analysis_id}.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] Deleted analysis #{analysis_id}.")


@app.command("clear-history")
def clear_history(
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Confirm; required because this cannot be undone."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Delete all stored analyses."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if not yes:
        typer.echo(
            "[ERROR] This deletes all analysis history and cannot be undone. "
            "Re-run with --yes to confirm.",
            err=True,
        )
        raise typer.Exit(code=1)

    with _open_repository(config) as repo:
        removed = repo.clear()
    typer.echo(f"[OK] Cleared {removed} analyses.")


@app.command("export")
def export(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Destination file (default: <reports.output_dir>/site-prospector-export-<date>.json).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Export all history and user settings to a JSON file."""
    from site_prospector.reporting.export import (
        build_export_payload,
        export_filename,
        export_to_json,
    )
    from site_prospector.state import load_settings

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _open_repository(config) as repo:
        stored = repo.list_stored(limit=max(repo.count(), 1))

    payload = build_export_payload(stored, load_settings(Path(config.reports.settings_file)))
    path = Path(output) if output else Path(config.reports.output_dir) / export_filename()
    export_to_json(payload, path)

    typer.echo(f"[OK] Exported {len(stored)} analyses to {path}")


@app.command("report")
def report(
    analysis_id: int = typer.Argument(..., help="History id."),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Destination HTML file."
    ),
    detail: Optional[str] = typer.Option(
        None, "--detail", help="basic | standard | detailed (default: from settings)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Write a standalone HTML report for a stored analysis."""
    from site_prospector.reporting.html_report import write_report
    from site_prospector.state import ReportDetail, load_settings

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        level = ReportDetail(detail) if detail else load_settings(
            Path(config.reports.settings_file)
        ).report_detail
    except ValueError:
        typer.echo(f"[ERROR] Unknown detail level '{detail}'.", err=True)
        raise typer.Exit(code=1)

    with _open_repository(config) as repo:
        stored = repo.get_by_id(analysis_id)
    if stored is None:
        typer.echo(f"[ERROR] No analysis with id {analysis_id}.", err=True)
        raise typer.Exit(code=1)

    if output:
        out = Path(output)
        path = write_report(stored.analysis, out.parent, level, filename=out.name)
    else:
        path = write_report(stored.analysis, Path(config.reports.output_dir), level)
    typer.echo(f"[OK] Report written to {path}")


@app.command("settings")
def settings(
    assignments: Optional[list[str]] = typer.Option(
        None,
        "--set",
        help="key=value, repeatable (e.g. --set darkMode=true --set reportDetail=detailed).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Show or change user settings."""
    from pydantic import ValidationError

    from site_prospector.reporting.formatters import format_settings
    from site_prospector.state import (
        UserSettings,
        load_settings,
        save_settings,
        setting_field_name,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    path = Path(config.reports.settings_file)
    current = load_settings(path)

    if assignments:
        merged = current.model_dump()
        for assignment in assignments:
            key, sep, value = assignment.partition("=")
            if not sep:
                typer.echo(f"[ERROR] Expected key=value, got '{assignment}'.", err=True)
                raise typer.Exit(code=1)
            try:
                merged[setting_field_name(key.strip())] = value.strip()
            except KeyError:
                typer.echo(f"[ERROR] Unknown setting '{key}'.", err=True)
                raise typer.Exit(code=1)
        try:
            current = UserSettings.model_validate(merged)
        except ValidationError as exc:
            typer.echo(f"[ERROR] Invalid setting value: {exc}", err=True)
            raise typer.Exit(code=1)
        save_settings(current, path)
        typer.echo(f"[OK] Settings saved to {path}")

    typer.echo(format_settings(current))


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: server.host)."),
    port: Optional[int] = typer.Option(None, "--port", help="Port (default: server.port)."),
    config_path: Optional[str] = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from site_prospector.server import create_app

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    typer.echo(f"Serving Site Prospector API on http://{bind_host}:{bind_port}")
    uvicorn.run(create_app(config), host=bind_host, port=bind_port, log_config=None)


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
