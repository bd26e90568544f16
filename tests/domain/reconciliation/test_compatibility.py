from __future__ import annotations

import asyncio
from datetime import date

import pytest

from animesync.domain.model import SeasonQuarter, SourceKind, TargetKind
from animesync.domain.reconciliation import (
    CompatibilityChecker,
    format_compatible,
    season_compatible,
)
from tests.helpers.catalog import make_source, make_target
from tests.helpers.fakes import FakeCatalogFetcher

W, SP, SU, F = (
    SeasonQuarter.WINTER,
    SeasonQuarter.SPRING,
    SeasonQuarter.SUMMER,
    SeasonQuarter.FALL,
)

# month -> quarters accepted outside strict mode; the first one is the only strict match
EXPECTED_SEASONS: dict[int, tuple[SeasonQuarter, ...]] = {
    1: (W,),
    2: (W,),
    3: (W, SP),
    4: (SP,),
    5: (SP,),
    6: (SP, SU),
    7: (SU,),
    8: (SU,),
    9: (SU, F),
    10: (F,),
    11: (F,),
    12: (F, W),
}


@pytest.mark.parametrize("month", range(1, 13))
@pytest.mark.parametrize("strict", [True, False])
def test_season_table_covers_every_month(month: int, strict: bool) -> None:
    accepted = EXPECTED_SEASONS[month][:1] if strict else EXPECTED_SEASONS[month]

    for quarter in (W, SP, SU, F):
        assert season_compatible(month, quarter, strict=strict) is (quarter in accepted)


@pytest.mark.parametrize("strict", [True, False])
def test_undefined_season_never_rejects(strict: bool) -> None:
    assert season_compatible(7, SeasonQuarter.UNDEFINED, strict=strict)


@pytest.mark.parametrize(
    ("source_kind", "target_kind", "expected"),
    [
        (SourceKind.TV, TargetKind.TV, True),
        (SourceKind.TV, TargetKind.ONA, False),
        (SourceKind.WEB, TargetKind.ONA, True),
        (SourceKind.OVA, TargetKind.OVA, True),
        (SourceKind.OVA, TargetKind.SPECIAL, True),
        (SourceKind.MOVIE, TargetKind.MOVIE, True),
        (SourceKind.MOVIE, TargetKind.TV, False),
        (SourceKind.MOVIE, TargetKind.UNKNOWN, True),
        (None, TargetKind.SPECIAL, True),
    ],
)
def test_format_matrix(
    source_kind: SourceKind | None, target_kind: TargetKind, expected: bool
) -> None:
    assert format_compatible(source_kind, target_kind) is expected


def test_year_mismatch_is_incompatible() -> None:
    checker = CompatibilityChecker()
    source = make_source("1", "a", start_date=date(2019, 4, 1))
    target = make_target("10", "a", year=2020)

    assert not asyncio.run(checker.compatible(source, target, strict=False))


def test_boundary_month_passes_only_outside_strict_mode() -> None:
    checker = CompatibilityChecker()
    source = make_source("1", "a", start_date=date(2020, 3, 28))
    target = make_target("10", "a", quarter=SeasonQuarter.SPRING)

    assert asyncio.run(checker.compatible(source, target, strict=False))
    assert not asyncio.run(checker.compatible(source, target, strict=True))


def test_relaxed_source_fails_strict_check() -> None:
    checker = CompatibilityChecker()
    source = make_source("1", "a", kind=None, relaxed=True)
    target = make_target("10", "a")

    assert not asyncio.run(checker.compatible(source, target, strict=True))
    assert asyncio.run(checker.compatible(source, target, strict=False))


def test_missing_start_date_is_incompatible() -> None:
    checker = CompatibilityChecker()
    source = make_source("1", "a", start_date=None, relaxed=True)

    assert not asyncio.run(checker.compatible(source, make_target("10", "a"), strict=False))


def test_format_mismatch_falls_back_to_episode_totals() -> None:
    fetcher = FakeCatalogFetcher(episode_totals={"1": 12, "2": 13})
    checker = CompatibilityChecker(fetcher)
    target = make_target("10", "a", kind=TargetKind.ONA, episodes=12)

    assert asyncio.run(checker.compatible(make_source("1", "a"), target, strict=False))
    assert not asyncio.run(checker.compatible(make_source("2", "a"), target, strict=False))
    assert ("episodes", "1") in fetcher.calls


def test_episode_fallback_prefers_known_source_total() -> None:
    fetcher = FakeCatalogFetcher()
    checker = CompatibilityChecker(fetcher)
    source = make_source("1", "a", episodes=12)
    target = make_target("10", "a", kind=TargetKind.ONA, episodes=12)

    assert asyncio.run(checker.compatible(source, target, strict=False))
    assert fetcher.calls == []


def test_episode_fallback_is_skipped_in_strict_mode() -> None:
    fetcher = FakeCatalogFetcher(episode_totals={"1": 12})
    checker = CompatibilityChecker(fetcher)
    target = make_target("10", "a", kind=TargetKind.ONA, episodes=12)

    assert not asyncio.run(checker.compatible(make_source("1", "a"), target, strict=True))
    assert fetcher.calls == []


def test_failed_episode_lookup_counts_as_mismatch() -> None:
    checker = CompatibilityChecker(FakeCatalogFetcher(failing=["1"]))
    target = make_target("10", "a", kind=TargetKind.ONA, episodes=12)

    assert not asyncio.run(checker.compatible(make_source("1", "a"), target, strict=False))
