"""Cross-catalog reconciliation engine.

Flow for one run:
1) index both catalog snapshots and load the known relations
2) resolve missing cross-catalog ids on the collections, many matches at once
   on a bounded worker pool
3) diff the resolved collections into change instructions
"""

from __future__ import annotations

from .changelog import ChangelogGenerator, render_diff
from .compatibility import CompatibilityChecker, format_compatible, season_compatible
from .engine import ReconciliationEngine, ReconciliationResult
from .errors import (
    CacheWriteFailure,
    MalformedCacheData,
    ReconciliationError,
    RemoteLookupFailure,
)
from .index import CatalogIndex
from .matcher import DEFAULT_TITLE_THRESHOLD, EntityMatcher
from .relations import RelationCache
from .resolve import ResolutionReport, resolve_source_collection, resolve_target_collection
from .scheduler import DEFAULT_MATCH_CONCURRENCY, ConcurrencyScheduler
from .similarity import TitleIndex, title_similarity

__all__ = [
    "DEFAULT_MATCH_CONCURRENCY",
    "DEFAULT_TITLE_THRESHOLD",
    "CacheWriteFailure",
    "CatalogIndex",
    "ChangelogGenerator",
    "CompatibilityChecker",
    "ConcurrencyScheduler",
    "EntityMatcher",
    "MalformedCacheData",
    "ReconciliationEngine",
    "ReconciliationError",
    "ReconciliationResult",
    "RelationCache",
    "RemoteLookupFailure",
    "ResolutionReport",
    "TitleIndex",
    "format_compatible",
    "render_diff",
    "resolve_source_collection",
    "resolve_target_collection",
    "season_compatible",
    "title_similarity",
]
