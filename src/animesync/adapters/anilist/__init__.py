"""Public interface for the AniList adapter."""

from __future__ import annotations

from .client import AniListAPIError, AniListClient
from .translator import media_to_search_hit, parse_media_list_entry

__all__ = [
    "AniListAPIError",
    "AniListClient",
    "media_to_search_hit",
    "parse_media_list_entry",
]
