"""Remote single-record lookups backing the catalog snapshots."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

import httpx

from animesync.domain.reconciliation import RemoteLookupFailure

from .anilist import AniListAPIError, media_to_search_hit
from .bangumi import BangumiAPIError, subject_to_catalog_entry

if TYPE_CHECKING:
    from animesync.domain.model import NativeId, SourceCatalogEntry
    from animesync.domain.ports import TargetSearchHit

    from .anilist.schema import MediaPayload
    from .bangumi.schema import SubjectPayload

log = getLogger(__name__)

ANIME_SUBJECT_TYPE = 2


class SubjectLookupClient(Protocol):
    async def fetch_subject(self, subject_id: str) -> SubjectPayload | None: ...


class MediaSearchClient(Protocol):
    async def search_media(self, title: str) -> list[MediaPayload]: ...


class HttpCatalogFetcher:
    """Bangumi subject lookups and AniList title search.

    Transport failures that survive the clients' own retries surface as
    ``RemoteLookupFailure``.
    """

    def __init__(self, bangumi: SubjectLookupClient, anilist: MediaSearchClient) -> None:
        self.bangumi = bangumi
        self.anilist = anilist

    async def _subject(self, source_id: NativeId) -> SubjectPayload | None:
        try:
            subject = await self.bangumi.fetch_subject(source_id)
        except (httpx.HTTPError, BangumiAPIError) as exc:
            raise RemoteLookupFailure(f"Bangumi subject {source_id}: {exc}") from exc
        if subject is None:
            return None
        if subject.type != ANIME_SUBJECT_TYPE:
            log.debug("Bangumi subject %s is not an anime (type %s)", source_id, subject.type)
            return None
        return subject

    async def fetch_source_entry_by_id(
        self, source_id: NativeId, *, relaxed: bool = False
    ) -> SourceCatalogEntry | None:
        subject = await self._subject(source_id)
        if subject is None:
            return None
        entry = subject_to_catalog_entry(subject)
        if entry.relaxed and not relaxed:
            log.debug("Bangumi subject %s lacks air date or format", source_id)
            return None
        return entry

    async def search_target_by_title(self, title: str) -> list[TargetSearchHit]:
        try:
            media = await self.anilist.search_media(title)
        except (httpx.HTTPError, AniListAPIError) as exc:
            raise RemoteLookupFailure(f"AniList search for {title!r}: {exc}") from exc
        return [media_to_search_hit(item) for item in media]

    async def fetch_target_episode_total(self, source_id: NativeId) -> int | None:
        subject = await self._subject(source_id)
        return subject.episode_total if subject is not None else None
