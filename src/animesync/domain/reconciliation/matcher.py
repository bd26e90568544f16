"""Cross-catalog entity matching.

The matcher resolves one catalog entry to its counterpart in the other catalog:

1. a known relation for the entry's own id resolves through the index with no
   fuzzy work at all;
2. otherwise every entry of the other catalog is scored by its best title
   similarity and candidates at or above the threshold are walked in
   descending score order;
3. with no candidate above the threshold the single best-scoring entry is tried
   in strict mode;
4. the first candidate passing the compatibility check is recorded in the
   relation cache and returned. ``None`` means unmatched; it is never raised.
"""

from __future__ import annotations

from functools import cached_property
from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import PLATFORM_SITE, RelationEntry

from .compatibility import CompatibilityChecker
from .similarity import DEFAULT_SCORER, TitleIndex, title_similarity

if TYPE_CHECKING:
    from animesync.domain.model import SourceCatalogEntry, TargetCatalogEntry
    from animesync.domain.ports import RemoteCatalogFetcher, TargetSearchHit

    from .index import CatalogIndex
    from .relations import RelationCache
    from .similarity import TitleScorer

log = getLogger(__name__)

DEFAULT_TITLE_THRESHOLD = 0.75


class EntityMatcher:
    def __init__(
        self,
        index: CatalogIndex,
        relations: RelationCache,
        *,
        fetcher: RemoteCatalogFetcher | None = None,
        checker: CompatibilityChecker | None = None,
        scorer: TitleScorer = DEFAULT_SCORER,
        threshold: float = DEFAULT_TITLE_THRESHOLD,
    ) -> None:
        self.index = index
        self.relations = relations
        self.fetcher = fetcher if fetcher is not None else index.fetcher
        self.checker = checker or CompatibilityChecker(self.fetcher)
        self.scorer = scorer
        self.threshold = threshold
        # one per title sweep over a catalog; stays at zero on relation cache hits
        self.fuzzy_comparisons = 0

    @cached_property
    def _target_titles(self) -> TitleIndex:
        return TitleIndex(target.titles() for target in self.index.target_entries)

    @cached_property
    def _source_titles(self) -> TitleIndex:
        return TitleIndex(source.titles() for source in self.index.source_entries)

    async def match_source_to_target(
        self, entry: SourceCatalogEntry, threshold: float | None = None
    ) -> TargetCatalogEntry | None:
        source_id = entry.native_id
        if source_id is None:
            log.warning("No source id for %r, cannot match it", entry.title)
            return None

        known_target = self.relations.target_for(source_id)
        if known_target is not None:
            log.debug("Known relation for %r: %s -> %s", entry.title, source_id, known_target)
            return self.index.by_target_id(known_target)

        queries = list(entry.titles())
        self.fuzzy_comparisons += len(queries)
        scored = self._target_titles.score(
            queries,
            threshold=self.threshold if threshold is None else threshold,
            scorer=self.scorer,
        )
        candidates = list(scored.above_threshold)
        strict = False
        if not candidates and scored.best is not None:
            candidates = [scored.best]
            strict = True

        for position, score in candidates:
            target = self.index.target_entries[position]
            target_id = target.native_id
            if target_id is None:
                continue
            if not await self.checker.compatible(entry, target, strict=strict):
                continue
            await self.relations.append(RelationEntry(source_id, target_id, entry.title))
            log.info(
                "score=%.3f%s, %r matched to %r",
                score,
                " (strict)" if strict else "",
                entry.title,
                target.title,
            )
            return target
        return None

    async def match_target_to_source(
        self, entry: TargetCatalogEntry, threshold: float | None = None
    ) -> SourceCatalogEntry | None:
        target_id = entry.native_id
        if target_id is None:
            log.warning("No target id for %r, cannot match it", entry.title)
            return None

        known_source = self.relations.source_for(target_id)
        if known_source is not None:
            log.debug("Known relation for %r: %s -> %s", entry.title, target_id, known_source)
            return await self.index.fetch_source(known_source)

        queries = list(entry.titles())
        self.fuzzy_comparisons += len(queries)
        scored = self._source_titles.score(
            queries,
            threshold=self.threshold if threshold is None else threshold,
            scorer=self.scorer,
        )
        candidates = list(scored.above_threshold)
        strict = False
        if not candidates and scored.best is not None:
            candidates = [scored.best]
            strict = True

        for position, score in candidates:
            source = self.index.source_entries[position]
            source_id = source.native_id
            if source_id is None:
                continue
            if not await self.checker.compatible(source, entry, strict=strict):
                continue
            await self.relations.append(RelationEntry(source_id, target_id, entry.title))
            log.info(
                "score=%.3f%s, %r matched to %r",
                score,
                " (strict)" if strict else "",
                entry.title,
                source.title,
            )
            return source
        return None

    async def match_by_search(self, entry: SourceCatalogEntry) -> TargetCatalogEntry | None:
        """Fall back to the remote title search for entries the snapshot misses.

        Each hit is mapped back onto the target catalog; weak title agreement
        puts the compatibility check in strict mode.
        """

        source_id = entry.native_id
        if self.fetcher is None or source_id is None:
            return None

        hits = await self.fetcher.search_target_by_title(entry.title)
        for hit in hits:
            target = self._target_for_hit(hit)
            if target is None or target.native_id is None:
                continue
            self.fuzzy_comparisons += 1
            score = title_similarity(entry.titles(), target.titles(), scorer=self.scorer)
            strict = score < self.threshold
            if not await self.checker.compatible(entry, target, strict=strict):
                continue
            await self.relations.append(RelationEntry(source_id, target.native_id, entry.title))
            log.info(
                "search score=%.3f%s, %r matched to %r",
                score,
                " (strict)" if strict else "",
                entry.title,
                target.title,
            )
            return target
        return None

    def _target_for_hit(self, hit: TargetSearchHit) -> TargetCatalogEntry | None:
        if hit.target_id is not None:
            target = self.index.by_target_id(hit.target_id)
            if target is not None:
                return target
        return self.index.by_target_site(PLATFORM_SITE, hit.platform_id)
