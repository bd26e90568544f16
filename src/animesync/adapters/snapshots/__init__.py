"""Public interface for the catalog snapshot adapter."""

from __future__ import annotations

from .client import SnapshotDownloader, SnapshotUnavailableError
from .translator import (
    parse_begin_date,
    parse_site_url,
    translate_source_item,
    translate_target_item,
)

__all__ = [
    "SnapshotDownloader",
    "SnapshotUnavailableError",
    "parse_begin_date",
    "parse_site_url",
    "translate_source_item",
    "translate_target_item",
]
