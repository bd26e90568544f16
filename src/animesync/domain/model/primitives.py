"""Scalar aliases and small value objects shared by the catalog model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

NativeId: TypeAlias = str
SiteName: TypeAlias = str
LanguageTag: TypeAlias = str

SOURCE_SITE: SiteName = "bangumi"
TARGET_SITE: SiteName = "MyAnimeList"
PLATFORM_SITE: SiteName = "AniList"


@dataclass(frozen=True, slots=True)
class SiteRef:
    """One (site, native id) pair attached to a catalog entry."""

    site: SiteName
    native_id: NativeId
