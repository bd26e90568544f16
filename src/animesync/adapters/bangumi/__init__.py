"""Public interface for the Bangumi adapter."""

from __future__ import annotations

from .client import BangumiAPIError, BangumiClient
from .schema import SubjectPayload, UserCollectionPayload
from .translator import parse_collection_entry, subject_to_catalog_entry

__all__ = [
    "BangumiAPIError",
    "BangumiClient",
    "SubjectPayload",
    "UserCollectionPayload",
    "parse_collection_entry",
    "subject_to_catalog_entry",
]
