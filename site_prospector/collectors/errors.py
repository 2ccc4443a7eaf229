"""Collector exception types."""

from __future__ import annotations


class CollectorError(Exception):
    """A collector could not produce its record (network, process or parse failure)."""
