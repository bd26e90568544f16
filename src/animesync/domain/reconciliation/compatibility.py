"""Metadata corroboration between a source and a target catalog entry.

Neither title similarity nor any single metadata field is reliable across the
two catalogs, so a pair needs agreeing air date and format. Strict mode, used
when the title evidence is weak, drops every tolerance.
"""

from __future__ import annotations

from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from animesync.domain.model import SeasonQuarter, SourceKind, TargetKind

from .errors import RemoteLookupFailure

if TYPE_CHECKING:
    from collections.abc import Mapping

    from animesync.domain.model import SourceCatalogEntry, TargetCatalogEntry
    from animesync.domain.ports import RemoteCatalogFetcher

log = getLogger(__name__)

_WINTER = SeasonQuarter.WINTER
_SPRING = SeasonQuarter.SPRING
_SUMMER = SeasonQuarter.SUMMER
_FALL = SeasonQuarter.FALL

# month -> (canonical quarter, quarters accepted outside strict mode)
SEASON_TABLE: Mapping[int, tuple[SeasonQuarter, frozenset[SeasonQuarter]]] = MappingProxyType(
    {
        1: (_WINTER, frozenset({_WINTER})),
        2: (_WINTER, frozenset({_WINTER})),
        3: (_WINTER, frozenset({_WINTER, _SPRING})),
        4: (_SPRING, frozenset({_SPRING})),
        5: (_SPRING, frozenset({_SPRING})),
        6: (_SPRING, frozenset({_SPRING, _SUMMER})),
        7: (_SUMMER, frozenset({_SUMMER})),
        8: (_SUMMER, frozenset({_SUMMER})),
        9: (_SUMMER, frozenset({_SUMMER, _FALL})),
        10: (_FALL, frozenset({_FALL})),
        11: (_FALL, frozenset({_FALL})),
        12: (_FALL, frozenset({_FALL, _WINTER})),
    }
)

FORMAT_MATRIX: Mapping[SourceKind, frozenset[TargetKind]] = MappingProxyType(
    {
        SourceKind.TV: frozenset({TargetKind.TV}),
        SourceKind.WEB: frozenset({TargetKind.ONA}),
        SourceKind.OVA: frozenset({TargetKind.OVA, TargetKind.SPECIAL}),
        SourceKind.MOVIE: frozenset({TargetKind.MOVIE}),
    }
)


def season_compatible(month: int, quarter: SeasonQuarter, *, strict: bool) -> bool:
    if quarter is SeasonQuarter.UNDEFINED:
        return True
    canonical, tolerated = SEASON_TABLE[month]
    if strict:
        return quarter is canonical
    return quarter in tolerated


def format_compatible(source_kind: SourceKind | None, target_kind: TargetKind) -> bool:
    if target_kind is TargetKind.UNKNOWN or source_kind is None:
        return True
    return target_kind in FORMAT_MATRIX[source_kind]


class CompatibilityChecker:
    """``compatible(source, target, strict)`` with the episode-count fallback.

    The fallback asks ``fetcher`` for the source record's own episode total;
    without a fetcher a format mismatch is final.
    """

    def __init__(self, fetcher: RemoteCatalogFetcher | None = None) -> None:
        self.fetcher = fetcher

    async def compatible(
        self,
        source: SourceCatalogEntry,
        target: TargetCatalogEntry,
        *,
        strict: bool,
    ) -> bool:
        if source.relaxed and strict:
            return False
        if source.start_date is None:
            return False
        if source.start_date.year != target.season.year:
            return False
        if not season_compatible(source.start_date.month, target.season.quarter, strict=strict):
            return False
        if format_compatible(source.kind, target.kind):
            return True
        if strict:
            return False
        return await self._episode_totals_agree(source, target)

    async def _episode_totals_agree(
        self, source: SourceCatalogEntry, target: TargetCatalogEntry
    ) -> bool:
        total = source.episodes
        source_id = source.native_id
        if total is None and self.fetcher is not None and source_id is not None:
            try:
                total = await self.fetcher.fetch_target_episode_total(source_id)
            except RemoteLookupFailure:
                log.warning(
                    "Episode total for %s unavailable, treating format as mismatch", source_id
                )
                return False
        return total is not None and total == target.episodes
