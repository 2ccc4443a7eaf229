"""
site_prospector.reporting — terminal formatting, HTML reports, and export.

Modules:
  formatters  — ASCII terminal formatters for Typer CLI commands, plus the
                shared score banding (``score_class``) and display helpers.
  html_report — Self-contained HTML report rendered with Jinja2.
  export      — JSON export of history + settings, file naming helpers.
"""
