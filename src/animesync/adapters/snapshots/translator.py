"""Turn bulk catalog dumps into domain catalog entries."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone
from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import (
    PLATFORM_SITE,
    TARGET_SITE,
    SeasonQuarter,
    SiteRef,
    SourceCatalogEntry,
    SourceKind,
    TargetCatalogEntry,
    TargetKind,
    TargetSeason,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from .schema import BangumiDataItem, OfflineAnimePayload

log = getLogger(__name__)

# bangumi-data stores broadcast starts in UTC; seasons follow the Japanese calendar
JST = timezone(timedelta(hours=9), "JST")

SITE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("AniDB", re.compile(r"anidb\.net/anime/(\d+)$")),
    (PLATFORM_SITE, re.compile(r"anilist\.co/anime/(\d+)$")),
    ("AnimeCountdown", re.compile(r"animecountdown\.com/(\d+)$")),
    ("AnimeNewsNetwork", re.compile(r"animenewsnetwork\.com/encyclopedia/anime\.php\?id=(\d+)$")),
    ("AnimePlanet", re.compile(r"anime-planet\.com/anime/(.+)$")),
    ("AniSearch", re.compile(r"anisearch\.com/anime/(\d+)$")),
    ("Kitsu", re.compile(r"kitsu\.(?:app|io)/anime/(\d+)$")),
    ("LiveChart", re.compile(r"livechart\.me/anime/(\d+)$")),
    (TARGET_SITE, re.compile(r"myanimelist\.net/anime/(\d+)$")),
    ("NotifyMoe", re.compile(r"notify\.moe/anime/(.+)$")),
    ("Simkl", re.compile(r"simkl\.com/anime/(\d+)$")),
)


def parse_begin_date(value: str) -> date | None:
    """Broadcast start as a JST calendar date; ``None`` when blank or unparsable."""

    if not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        log.debug("Unparsable begin date %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(JST).date()


def translate_source_item(item: BangumiDataItem) -> SourceCatalogEntry | None:
    try:
        kind = SourceKind(item.type)
    except ValueError:
        log.warning("Unknown type %s when processing %s", item.type, item.title)
        return None
    start_date = parse_begin_date(item.begin)
    translations = {
        language: tuple(name for name in names if name)
        for language, names in item.title_translate.items()
        if names
    }
    return SourceCatalogEntry(
        title=item.title,
        kind=kind,
        start_date=start_date,
        sites=tuple(SiteRef(site.site, site.id) for site in item.sites if site.id),
        translations=translations,
        relaxed=start_date is None,
    )


def translate_source_items(items: Iterable[BangumiDataItem]) -> list[SourceCatalogEntry]:
    entries: list[SourceCatalogEntry] = []
    for item in items:
        entry = translate_source_item(item)
        if entry is not None:
            entries.append(entry)
    return entries


def parse_site_url(url: str) -> tuple[str, str] | None:
    for site, pattern in SITE_PATTERNS:
        match = pattern.search(url)
        if match:
            return site, match.group(1)
    return None


def translate_target_item(item: OfflineAnimePayload) -> TargetCatalogEntry:
    sites: dict[str, str] = {}
    for url in item.sources:
        parsed = parse_site_url(url)
        if parsed is None:
            log.debug("Cannot parse %s when processing %s", url, item.title)
            continue
        site, native_id = parsed
        sites.setdefault(site, native_id)
    try:
        kind = TargetKind(item.type)
    except ValueError:
        kind = TargetKind.UNKNOWN
    try:
        quarter = SeasonQuarter(item.anime_season.season)
    except ValueError:
        quarter = SeasonQuarter.UNDEFINED
    return TargetCatalogEntry(
        title=item.title,
        synonyms=tuple(item.synonyms),
        kind=kind,
        episodes=item.episodes,
        season=TargetSeason(year=item.anime_season.year, quarter=quarter),
        sites=sites,
    )


def translate_target_items(items: Iterable[OfflineAnimePayload]) -> list[TargetCatalogEntry]:
    return [translate_target_item(item) for item in items]
