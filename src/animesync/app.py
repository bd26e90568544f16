"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, TypeAlias

from animesync.adapters.anilist import AniListClient
from animesync.adapters.bangumi import BangumiClient
from animesync.adapters.catalog_fetcher import HttpCatalogFetcher
from animesync.adapters.json_relations import JsonRelationStore
from animesync.adapters.snapshots import SnapshotDownloader
from animesync.config import (
    Overrides,
    get_anilist_config,
    get_bangumi_config,
    get_snapshot_config,
    get_storage_config,
    get_sync_config,
    load_overrides,
)
from animesync.domain.model import ChangeInstruction, Platform
from animesync.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    from animesync.config import StorageConfig, SyncConfig
    from animesync.domain.model import WatchStateEntry
    from animesync.domain.ports import RemoteCollectionClient

ConfirmChanges: TypeAlias = Callable[[Sequence[ChangeInstruction]], bool]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncReport:
    processed: int
    unresolved: int
    instructions: list[ChangeInstruction]
    applied: dict[Platform, int] = field(default_factory=dict)
    dry_run: bool = False


def drop_ignored_source(
    entries: Sequence[WatchStateEntry], overrides: Overrides
) -> list[WatchStateEntry]:
    return [entry for entry in entries if entry.source_id not in overrides.ignored_bangumi]


def drop_ignored_target(
    entries: Sequence[WatchStateEntry], overrides: Overrides
) -> list[WatchStateEntry]:
    return [
        entry
        for entry in entries
        if entry.platform_id not in overrides.ignored_anilist
        and entry.target_id not in overrides.ignored_mal
    ]


def _is_ignored(instruction: ChangeInstruction, overrides: Overrides) -> bool:
    entry = instruction.after
    return (
        entry.source_id in overrides.ignored_bangumi
        or entry.platform_id in overrides.ignored_anilist
        or entry.target_id in overrides.ignored_mal
    )


async def run_sync(
    *,
    source_client: RemoteCollectionClient,
    target_client: RemoteCollectionClient,
    engine: ReconciliationEngine,
    sync_config: SyncConfig,
    overrides: Overrides | None = None,
    dry_run: bool = False,
    confirm: ConfirmChanges | None = None,
) -> SyncReport:
    """Fetch both collections, reconcile them and apply the resulting changes.

    ``confirm`` sees the full instruction list before anything is written and
    can veto the whole batch.
    """

    overrides = overrides or Overrides()
    source_collection, target_collection = await asyncio.gather(
        source_client.fetch_collection(), target_client.fetch_collection()
    )
    source_collection = drop_ignored_source(source_collection, overrides)
    target_collection = drop_ignored_target(target_collection, overrides)

    result = await engine.reconcile(
        source_collection,
        target_collection,
        bidirectional=sync_config.bidirectional,
        sync_comments=sync_config.sync_comments,
        manual_relations=overrides.manual_relations,
    )
    # resolution may attach an ignored id to an entry that carried none before
    instructions = [item for item in result.instructions if not _is_ignored(item, overrides)]
    report = SyncReport(
        processed=result.source_report.processed,
        unresolved=result.unresolved,
        instructions=instructions,
        dry_run=dry_run,
    )
    if dry_run or not instructions:
        return report
    if confirm is not None and not confirm(instructions):
        log.info("Changes declined, nothing written")
        return report

    for platform, client in ((Platform.TARGET, target_client), (Platform.SOURCE, source_client)):
        batch = [item for item in instructions if item.platform is platform]
        if not batch:
            continue
        report.applied[platform] = await client.apply_changes(
            batch, sync_comments=sync_config.sync_comments
        )
        if report.applied[platform] < len(batch):
            log.warning(
                "Applied %s of %s changes to the %s platform",
                report.applied[platform],
                len(batch),
                platform.value,
            )
    return report


async def _sync_watch_states_async(
    *,
    storage: StorageConfig,
    sync_config: SyncConfig,
    dry_run: bool,
    confirm: ConfirmChanges | None,
) -> SyncReport:
    # credentials first so a missing token fails before any download
    bangumi_config = get_bangumi_config()
    anilist_config = get_anilist_config()
    overrides = load_overrides(storage)

    downloader = SnapshotDownloader(get_snapshot_config(), storage)
    source_entries, target_entries = await downloader.load()

    async with BangumiClient(bangumi_config) as bangumi, AniListClient(anilist_config) as anilist:
        engine = ReconciliationEngine.build(
            source_entries=source_entries,
            target_entries=target_entries,
            store=JsonRelationStore(storage.relations_path()),
            fetcher=HttpCatalogFetcher(bangumi, anilist),
            threshold=sync_config.title_threshold,
            concurrency=sync_config.match_concurrency,
        )
        return await run_sync(
            source_client=bangumi,
            target_client=anilist,
            engine=engine,
            sync_config=sync_config,
            overrides=overrides,
            dry_run=dry_run,
            confirm=confirm,
        )


def sync_watch_states(
    *,
    sync_config: SyncConfig | None = None,
    storage: StorageConfig | None = None,
    dry_run: bool = False,
    confirm: ConfirmChanges | None = None,
) -> SyncReport:
    """Synchronise Bangumi and AniList watch states using the configured adapters."""

    effective_config = sync_config or get_sync_config()
    effective_storage = storage or get_storage_config()
    log.info(
        "Starting sync: bidirectional=%s, sync_comments=%s, dry_run=%s",
        effective_config.bidirectional,
        effective_config.sync_comments,
        dry_run,
    )
    report = asyncio.run(
        _sync_watch_states_async(
            storage=effective_storage,
            sync_config=effective_config,
            dry_run=dry_run,
            confirm=confirm,
        )
    )
    log.info(
        "Finished sync: processed=%s, unresolved=%s, changes=%s, applied=%s",
        report.processed,
        report.unresolved,
        len(report.instructions),
        {platform.value: count for platform, count in report.applied.items()},
    )
    return report
