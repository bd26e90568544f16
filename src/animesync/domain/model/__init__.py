"""Public domain model surface."""

from __future__ import annotations

from animesync.domain.model.catalog import SourceCatalogEntry, TargetCatalogEntry, TargetSeason
from animesync.domain.model.collection import ChangeInstruction, WatchStateEntry
from animesync.domain.model.enums import (
    Platform,
    SeasonQuarter,
    SourceKind,
    TargetKind,
    WatchStatus,
)
from animesync.domain.model.primitives import (
    PLATFORM_SITE,
    SOURCE_SITE,
    TARGET_SITE,
    LanguageTag,
    NativeId,
    SiteName,
    SiteRef,
)
from animesync.domain.model.relations import RelationEntry

__all__ = [  # noqa: RUF022
    # catalogs
    "SourceCatalogEntry",
    "TargetCatalogEntry",
    "TargetSeason",
    "SiteRef",
    # collections
    "WatchStateEntry",
    "ChangeInstruction",
    "RelationEntry",
    # enums
    "Platform",
    "SeasonQuarter",
    "SourceKind",
    "TargetKind",
    "WatchStatus",
    # primitives
    "LanguageTag",
    "NativeId",
    "SiteName",
    "PLATFORM_SITE",
    "SOURCE_SITE",
    "TARGET_SITE",
]
