from __future__ import annotations

import asyncio

import pytest

from animesync.domain.model import RelationEntry, WatchStatus
from animesync.domain.ports import TargetSearchHit
from animesync.domain.reconciliation import (
    CacheWriteFailure,
    CatalogIndex,
    ConcurrencyScheduler,
    EntityMatcher,
    RelationCache,
    resolve_source_collection,
    resolve_target_collection,
)
from tests.helpers.catalog import make_source, make_state, make_target
from tests.helpers.fakes import FakeCatalogFetcher, FakeRelationStore, scorer_table


def _matcher(sources, targets, *, store=None, fetcher=None, **kwargs) -> EntityMatcher:
    index = CatalogIndex(sources, targets, fetcher=fetcher)
    return EntityMatcher(index, RelationCache.load(store or FakeRelationStore()), **kwargs)


def test_source_entries_get_target_and_platform_ids() -> None:
    matcher = _matcher(
        [make_source("1", "Frieren"), make_source("2", "Dungeon Meshi")],
        [
            make_target("10", "Frieren", platform_id="100"),
            make_target("20", "Dungeon Meshi", platform_id="200"),
        ],
    )
    entries = [make_state(source_id="1"), make_state(source_id="2"), make_state(source_id="3")]

    report = asyncio.run(
        resolve_source_collection(entries, matcher=matcher, scheduler=ConcurrencyScheduler(2))
    )

    assert [(e.target_id, e.platform_id) for e in entries] == [
        ("10", "100"),
        ("20", "200"),
        (None, None),
    ]
    assert entries[0].title == "Frieren"
    assert report.processed == 3
    assert report.resolved == 2
    assert report.unresolved == 1


def test_manual_relation_wins_over_matching() -> None:
    matcher = _matcher(
        [make_source("1", "Title")],
        [
            make_target("10", "Title", platform_id="100"),
            make_target("11", "Other", platform_id="555"),
        ],
    )
    entry = make_state(source_id="1")

    asyncio.run(resolve_source_collection([entry], matcher=matcher, manual_relations={"1": "555"}))

    assert entry.target_id == "11"
    assert entry.platform_id == "555"
    assert matcher.fuzzy_comparisons == 0


def test_entries_with_ids_are_skipped() -> None:
    matcher = _matcher([], [])
    entry = make_state(source_id="1", platform_id="100")

    report = asyncio.run(resolve_source_collection([entry], matcher=matcher))

    assert report.skipped == 1
    assert report.processed == 0


def test_remote_failure_is_confined_to_its_entry() -> None:
    fetcher = FakeCatalogFetcher(failing=["2"])
    matcher = _matcher(
        [make_source("1", "Title")],
        [make_target("10", "Title", platform_id="100")],
        fetcher=fetcher,
    )
    entries = [make_state(source_id="1"), make_state(source_id="2")]

    report = asyncio.run(resolve_source_collection(entries, matcher=matcher))

    assert entries[0].platform_id == "100"
    assert entries[1].platform_id is None
    assert report.unresolved == 1


def test_search_fallback_resolves_what_the_title_sweep_misses() -> None:
    fetcher = FakeCatalogFetcher(
        sources={"2": make_source("2", "q")},
        hits={"q": [TargetSearchHit(platform_id="200", target_id="20")]},
    )
    matcher = _matcher(
        [],
        [make_target("30", "decoy", year=2019), make_target("20", "real", platform_id="200")],
        fetcher=fetcher,
        scorer=scorer_table({("q", "decoy"): 40, ("q", "real"): 30}),
    )

    without_search = make_state(source_id="2")
    asyncio.run(
        resolve_source_collection([without_search], matcher=matcher, search_fallback=False)
    )
    assert without_search.platform_id is None

    with_search = make_state(source_id="2")
    asyncio.run(resolve_source_collection([with_search], matcher=matcher))
    assert (with_search.target_id, with_search.platform_id) == ("20", "200")
    assert ("search", "q") in fetcher.calls


def test_cache_write_failures_abort_after_the_pool_drains() -> None:
    matcher = _matcher(
        [make_source("1", "Alpha"), make_source("2", "Beta")],
        [
            make_target("10", "Alpha", platform_id="100"),
            make_target("20", "Beta", platform_id="200"),
        ],
        store=FakeRelationStore(fail_saves=10),
    )
    entries = [make_state(source_id="1"), make_state(source_id="2")]

    with pytest.raises(CacheWriteFailure):
        asyncio.run(
            resolve_source_collection(entries, matcher=matcher, scheduler=ConcurrencyScheduler(1))
        )


def test_target_entries_get_source_ids() -> None:
    matcher = _matcher(
        [make_source("1", "Frieren")],
        [
            make_target("10", "Frieren", platform_id="100"),
            make_target("20", "Unknown", year=2015),
        ],
        store=FakeRelationStore([RelationEntry("1", "10")]),
    )
    entries = [
        make_state(WatchStatus.COMPLETED, platform_id="100", target_id="10"),
        make_state(platform_id="200", target_id="20"),
        make_state(platform_id="300"),
    ]

    report = asyncio.run(resolve_target_collection(entries, matcher=matcher))

    assert [entry.source_id for entry in entries] == ["1", None, None]
    assert report.unresolved == 2


def test_target_resolution_uses_inverse_manual_relations() -> None:
    matcher = _matcher([], [])
    entry = make_state(platform_id="555")

    asyncio.run(resolve_target_collection([entry], matcher=matcher, manual_relations={"7": "555"}))

    assert entry.source_id == "7"
