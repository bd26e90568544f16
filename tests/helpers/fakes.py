"""In-memory stand-ins for the domain ports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from animesync.domain.reconciliation import RemoteLookupFailure

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from animesync.domain.model import (
        ChangeInstruction,
        RelationEntry,
        SourceCatalogEntry,
        WatchStateEntry,
    )
    from animesync.domain.ports import TargetSearchHit


class FakeRelationStore:
    """Keeps saved snapshots; ``fail_saves`` makes that many saves raise ``OSError``."""

    def __init__(self, initial: Iterable[RelationEntry] = (), *, fail_saves: int = 0) -> None:
        self.initial = list(initial)
        self.saved: list[list[RelationEntry]] = []
        self.fail_saves = fail_saves
        self.attempts = 0

    def load(self) -> list[RelationEntry]:
        return list(self.initial)

    def save(self, entries: Sequence[RelationEntry]) -> None:
        self.attempts += 1
        if self.fail_saves > 0:
            self.fail_saves -= 1
            raise OSError("disk full")
        self.saved.append(list(entries))

    @property
    def last_saved(self) -> list[RelationEntry]:
        return self.saved[-1] if self.saved else []


class FakeCatalogFetcher:
    def __init__(
        self,
        *,
        sources: Mapping[str, SourceCatalogEntry] | None = None,
        hits: Mapping[str, list[TargetSearchHit]] | None = None,
        episode_totals: Mapping[str, int] | None = None,
        failing: Iterable[str] = (),
    ) -> None:
        self.sources = dict(sources or {})
        self.hits = dict(hits or {})
        self.episode_totals = dict(episode_totals or {})
        self.failing = set(failing)
        self.calls: list[tuple[str, str]] = []

    def _check(self, key: str) -> None:
        if key in self.failing:
            raise RemoteLookupFailure(f"lookup for {key} exhausted its retries")

    async def fetch_source_entry_by_id(
        self, source_id: str, *, relaxed: bool = False
    ) -> SourceCatalogEntry | None:
        self.calls.append(("source", source_id))
        self._check(source_id)
        entry = self.sources.get(source_id)
        if entry is not None and entry.relaxed and not relaxed:
            return None
        return entry

    async def search_target_by_title(self, title: str) -> list[TargetSearchHit]:
        self.calls.append(("search", title))
        self._check(title)
        return list(self.hits.get(title, []))

    async def fetch_target_episode_total(self, source_id: str) -> int | None:
        self.calls.append(("episodes", source_id))
        self._check(source_id)
        return self.episode_totals.get(source_id)


class FakeCollectionClient:
    def __init__(self, entries: Iterable[WatchStateEntry] = (), *, fail_writes: int = 0) -> None:
        self.entries = list(entries)
        self.applied: list[ChangeInstruction] = []
        self.sync_comments: bool | None = None
        self.fail_writes = fail_writes

    async def fetch_collection(self) -> list[WatchStateEntry]:
        return list(self.entries)

    async def apply_changes(
        self, instructions: Sequence[ChangeInstruction], *, sync_comments: bool = False
    ) -> int:
        self.sync_comments = sync_comments
        self.applied.extend(instructions)
        return max(0, len(instructions) - self.fail_writes)


def scorer_table(table: Mapping[tuple[str, str], float]):
    """Scorer returning fixed 0..100 scores for (query, choice) pairs, symmetric."""

    def scorer(query: str, choice: str, **_kwargs: object) -> float:
        if (query, choice) in table:
            return table[(query, choice)]
        return table.get((choice, query), 0.0)

    return scorer
