"""Catalog entries for the two metadata databases being reconciled."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import SeasonQuarter, TargetKind
from .primitives import SOURCE_SITE, TARGET_SITE

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from datetime import date

    from .enums import SourceKind
    from .primitives import LanguageTag, NativeId, SiteName, SiteRef


@dataclass(frozen=True, slots=True)
class SourceCatalogEntry:
    """A source-catalog record.

    ``start_date`` drives season inference and is only ever ``None`` on
    ``relaxed`` entries built from an incomplete remote record; ``kind`` may be
    ``None`` for the same reason. ``episodes`` of ``None`` means unknown.
    """

    title: str
    kind: SourceKind | None
    start_date: date | None
    sites: tuple[SiteRef, ...]
    translations: Mapping[LanguageTag, tuple[str, ...]] = field(default_factory=dict)
    episodes: int | None = None
    relaxed: bool = False

    @property
    def native_id(self) -> NativeId | None:
        return self.site_id(SOURCE_SITE)

    def site_id(self, site: SiteName) -> NativeId | None:
        for ref in self.sites:
            if ref.site == site:
                return ref.native_id
        return None

    def titles(self) -> Iterator[str]:
        yield self.title
        for names in self.translations.values():
            yield from names


@dataclass(frozen=True, slots=True)
class TargetSeason:
    year: int | None = None
    quarter: SeasonQuarter = SeasonQuarter.UNDEFINED


@dataclass(frozen=True, slots=True)
class TargetCatalogEntry:
    """A target-catalog record; ``episodes`` of 0 means unknown."""

    title: str
    synonyms: tuple[str, ...] = ()
    kind: TargetKind = TargetKind.UNKNOWN
    episodes: int = 0
    season: TargetSeason = field(default_factory=TargetSeason)
    sites: Mapping[SiteName, NativeId] = field(default_factory=dict)

    @property
    def native_id(self) -> NativeId | None:
        return self.sites.get(TARGET_SITE)

    def titles(self) -> Iterator[str]:
        yield self.title
        yield from self.synonyms
