"""Fill missing cross-catalog ids on watch-state collections.

One job per entry runs on the scheduler; each writes exactly one result slot
addressed by the entry's position, so ids are filled in input order no matter
how the jobs interleave. Remote lookup failures are confined to their slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import PLATFORM_SITE

from .errors import CacheWriteFailure, RemoteLookupFailure
from .scheduler import ConcurrencyScheduler

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from animesync.domain.model import (
        NativeId,
        TargetCatalogEntry,
        WatchStateEntry,
    )

    from .matcher import EntityMatcher
    from .scheduler import Job


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolutionReport:
    processed: int
    resolved: int
    unresolved: int
    skipped: int = 0


def _raise_cache_failures(scheduler: ConcurrencyScheduler) -> None:
    for error in scheduler.errors:
        if isinstance(error, CacheWriteFailure):
            raise error


async def resolve_source_collection(
    entries: Sequence[WatchStateEntry],
    *,
    matcher: EntityMatcher,
    scheduler: ConcurrencyScheduler | None = None,
    manual_relations: Mapping[NativeId, NativeId] | None = None,
    search_fallback: bool = True,
) -> ResolutionReport:
    """Give every source-collection entry a ``target_id`` and ``platform_id``.

    ``manual_relations`` maps source ids to AniList ids and takes precedence
    over matching. Entries that already carry a cross-catalog id are skipped.
    Raises ``CacheWriteFailure`` after the pool drains if any job hit one.
    """

    index = matcher.index
    manual = manual_relations or {}
    pool = scheduler or ConcurrencyScheduler()
    slots: list[TargetCatalogEntry | None] = [None] * len(entries)
    skipped: set[int] = set()

    def make_job(position: int, entry: WatchStateEntry) -> Job:
        async def job() -> None:
            source_id = entry.source_id
            if source_id is None:
                log.warning("Entry %r has no source id", entry.title)
                return

            manual_id = manual.get(source_id)
            if manual_id is not None:
                target = index.by_target_site(PLATFORM_SITE, manual_id)
                if target is not None:
                    slots[position] = target
                    return

            try:
                source = await index.fetch_source(source_id)
                if source is None:
                    log.warning("Cannot build a catalog entry for source id %s", source_id)
                    return
                if entry.title is None:
                    entry.title = source.title
                target = await matcher.match_source_to_target(source)
                if target is None and search_fallback:
                    target = await matcher.match_by_search(source)
            except RemoteLookupFailure as exc:
                log.warning("Remote lookup for source id %s failed: %s", source_id, exc)
                return

            if target is None:
                log.warning("Cannot match %r (%s) to a target entry", source.title, source_id)
            slots[position] = target

        return job

    for position, entry in enumerate(entries):
        if entry.has_cross_catalog_id():
            skipped.add(position)
            continue
        pool.push(make_job(position, entry))
    await pool.wait()
    _raise_cache_failures(pool)

    unresolved = 0
    for position, (entry, target) in enumerate(zip(entries, slots, strict=True)):
        if position in skipped:
            continue
        if target is None:
            unresolved += 1
            continue
        entry.target_id = target.native_id
        manual_id = manual.get(entry.source_id) if entry.source_id is not None else None
        if manual_id is not None:
            entry.platform_id = manual_id
        elif entry.target_id is not None:
            entry.platform_id = index.platform_id_for(entry.target_id)
        else:
            entry.platform_id = target.sites.get(PLATFORM_SITE)

    processed = len(entries) - len(skipped)
    log.info("%s/%s entries cannot be matched", unresolved, processed)
    return ResolutionReport(
        processed=processed,
        resolved=processed - unresolved,
        unresolved=unresolved,
        skipped=len(skipped),
    )


async def resolve_target_collection(
    entries: Sequence[WatchStateEntry],
    *,
    matcher: EntityMatcher,
    scheduler: ConcurrencyScheduler | None = None,
    manual_relations: Mapping[NativeId, NativeId] | None = None,
) -> ResolutionReport:
    """Give every target-collection entry a ``source_id``.

    Used by the bidirectional sync; ``manual_relations`` has the same
    source id -> AniList id shape as for :func:`resolve_source_collection`.
    """

    index = matcher.index
    by_platform = {
        platform_id: source_id for source_id, platform_id in (manual_relations or {}).items()
    }
    pool = scheduler or ConcurrencyScheduler()
    slots: list[NativeId | None] = [None] * len(entries)
    skipped: set[int] = set()

    def lookup_target(entry: WatchStateEntry) -> TargetCatalogEntry | None:
        if entry.target_id is not None:
            target = index.by_target_id(entry.target_id)
            if target is not None:
                return target
        if entry.platform_id is not None:
            return index.by_target_site(PLATFORM_SITE, entry.platform_id)
        return None

    def make_job(position: int, entry: WatchStateEntry) -> Job:
        async def job() -> None:
            if entry.platform_id is not None and entry.platform_id in by_platform:
                slots[position] = by_platform[entry.platform_id]
                return
            target = lookup_target(entry)
            if target is None:
                log.warning("Entry %r is not in the target catalog", entry.title)
                return
            try:
                source = await matcher.match_target_to_source(target)
            except RemoteLookupFailure as exc:
                log.warning("Remote lookup for %r failed: %s", target.title, exc)
                return
            if source is None:
                log.warning("Cannot match %r to a source entry", target.title)
                return
            slots[position] = source.native_id

        return job

    for position, entry in enumerate(entries):
        if entry.source_id is not None:
            skipped.add(position)
            continue
        pool.push(make_job(position, entry))
    await pool.wait()
    _raise_cache_failures(pool)

    unresolved = 0
    for position, (entry, source_id) in enumerate(zip(entries, slots, strict=True)):
        if position in skipped:
            continue
        if source_id is None:
            unresolved += 1
            continue
        entry.source_id = source_id

    processed = len(entries) - len(skipped)
    log.info("%s/%s target entries cannot be matched", unresolved, processed)
    return ResolutionReport(
        processed=processed,
        resolved=processed - unresolved,
        unresolved=unresolved,
        skipped=len(skipped),
    )
