"""Owned context tying the reconciliation components together for one run."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .changelog import ChangelogGenerator
from .index import CatalogIndex
from .matcher import DEFAULT_TITLE_THRESHOLD, EntityMatcher
from .relations import RelationCache
from .resolve import ResolutionReport, resolve_source_collection, resolve_target_collection
from .scheduler import DEFAULT_MATCH_CONCURRENCY, ConcurrencyScheduler
from .similarity import DEFAULT_SCORER

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from animesync.domain.model import (
        ChangeInstruction,
        NativeId,
        SourceCatalogEntry,
        TargetCatalogEntry,
        WatchStateEntry,
    )
    from animesync.domain.ports import RelationStore, RemoteCatalogFetcher

    from .similarity import TitleScorer

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    instructions: list[ChangeInstruction]
    source_report: ResolutionReport
    target_report: ResolutionReport | None = None

    @property
    def unresolved(self) -> int:
        """Source entries that could not be resolved to any target entry."""

        return self.source_report.unresolved


@dataclass(slots=True)
class ReconciliationEngine:
    """Lives for one run: build, resolve and diff, then discard."""

    index: CatalogIndex
    relations: RelationCache
    matcher: EntityMatcher
    changelog: ChangelogGenerator
    concurrency: int = DEFAULT_MATCH_CONCURRENCY
    scheduler: ConcurrencyScheduler = field(init=False)

    def __post_init__(self) -> None:
        self.scheduler = ConcurrencyScheduler(self.concurrency)

    @classmethod
    def build(
        cls,
        *,
        source_entries: Iterable[SourceCatalogEntry],
        target_entries: Iterable[TargetCatalogEntry],
        store: RelationStore,
        fetcher: RemoteCatalogFetcher | None = None,
        threshold: float = DEFAULT_TITLE_THRESHOLD,
        concurrency: int = DEFAULT_MATCH_CONCURRENCY,
        scorer: TitleScorer = DEFAULT_SCORER,
    ) -> ReconciliationEngine:
        index = CatalogIndex(source_entries, target_entries, fetcher=fetcher)
        relations = RelationCache.load(store)
        matcher = EntityMatcher(index, relations, scorer=scorer, threshold=threshold)
        return cls(
            index=index,
            relations=relations,
            matcher=matcher,
            changelog=ChangelogGenerator(index),
            concurrency=concurrency,
        )

    async def reconcile(
        self,
        source_collection: Sequence[WatchStateEntry],
        target_collection: Sequence[WatchStateEntry],
        *,
        bidirectional: bool = False,
        sync_comments: bool = False,
        manual_relations: Mapping[NativeId, NativeId] | None = None,
        search_fallback: bool = True,
    ) -> ReconciliationResult:
        source_report = await resolve_source_collection(
            source_collection,
            matcher=self.matcher,
            scheduler=self.scheduler,
            manual_relations=manual_relations,
            search_fallback=search_fallback,
        )
        target_report: ResolutionReport | None = None
        if bidirectional:
            target_report = await resolve_target_collection(
                target_collection,
                matcher=self.matcher,
                scheduler=self.scheduler,
                manual_relations=manual_relations,
            )
            instructions = self.changelog.generate_bidirectional(
                source_collection, target_collection, sync_comments=sync_comments
            )
        else:
            instructions = self.changelog.generate(
                source_collection, target_collection, sync_comments=sync_comments
            )

        log.info(
            "%s changes from %s source entries (%s unresolved)",
            len(instructions),
            source_report.processed,
            source_report.unresolved,
        )
        return ReconciliationResult(
            instructions=instructions,
            source_report=source_report,
            target_report=target_report,
        )
