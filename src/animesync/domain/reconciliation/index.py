"""In-memory lookups over both catalog snapshots."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import PLATFORM_SITE

if TYPE_CHECKING:
    from collections.abc import Iterable

    from animesync.domain.model import (
        NativeId,
        SiteName,
        SourceCatalogEntry,
        TargetCatalogEntry,
    )
    from animesync.domain.ports import RemoteCatalogFetcher

log = getLogger(__name__)


class CatalogIndex:
    """Native-id indices built in one pass over each snapshot.

    The first entry in snapshot order wins on duplicate ids. Source misses may
    be backfilled through ``fetcher``; the target snapshot is treated as
    complete and never backfilled.
    """

    def __init__(
        self,
        source_entries: Iterable[SourceCatalogEntry],
        target_entries: Iterable[TargetCatalogEntry],
        *,
        fetcher: RemoteCatalogFetcher | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.source_entries: tuple[SourceCatalogEntry, ...] = tuple(source_entries)
        self.target_entries: tuple[TargetCatalogEntry, ...] = tuple(target_entries)
        self._sources: dict[NativeId, SourceCatalogEntry] = {}
        self._targets: dict[NativeId, TargetCatalogEntry] = {}
        self._target_sites: dict[tuple[SiteName, NativeId], TargetCatalogEntry] = {}
        self._platform_ids: dict[NativeId, NativeId] = {}

        for source in self.source_entries:
            source_id = source.native_id
            if source_id is not None:
                self._sources.setdefault(source_id, source)
        for target in self.target_entries:
            target_id = target.native_id
            if target_id is not None:
                self._targets.setdefault(target_id, target)
            for site, native_id in target.sites.items():
                self._target_sites.setdefault((site, native_id), target)
            platform_id = target.sites.get(PLATFORM_SITE)
            if target_id is not None and platform_id is not None:
                self._platform_ids.setdefault(target_id, platform_id)

        log.debug(
            "Indexed %s source and %s target entries",
            len(self._sources),
            len(self._targets),
        )

    def by_source_id(self, source_id: NativeId) -> SourceCatalogEntry | None:
        return self._sources.get(source_id)

    def by_target_id(self, target_id: NativeId) -> TargetCatalogEntry | None:
        return self._targets.get(target_id)

    def platform_id_for(self, target_id: NativeId) -> NativeId | None:
        """AniList id of the first entry carrying ``target_id`` that has one."""

        return self._platform_ids.get(target_id)

    def by_target_site(self, site: SiteName, native_id: NativeId) -> TargetCatalogEntry | None:
        return self._target_sites.get((site, native_id))

    async def fetch_source(
        self, source_id: NativeId, *, relaxed: bool = False
    ) -> SourceCatalogEntry | None:
        """Look ``source_id`` up locally, then through the remote fetcher.

        Without ``relaxed`` a remote record lacking a start date is treated as
        not found. With it, such records come back flagged ``relaxed`` so the
        compatibility check can refuse them in strict mode.
        """

        entry = self._sources.get(source_id)
        if entry is not None:
            return entry
        if self.fetcher is None:
            return None

        log.debug("Source id %s not in snapshot, fetching it remotely", source_id)
        fetched = await self.fetcher.fetch_source_entry_by_id(source_id, relaxed=relaxed)
        if fetched is None:
            return None
        complete = fetched.start_date is not None and fetched.kind is not None
        if complete and not fetched.relaxed:
            return fetched
        if not relaxed:
            return None
        return fetched if fetched.relaxed else replace(fetched, relaxed=True)
