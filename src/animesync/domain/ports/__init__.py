"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import RemoteCatalogFetcher, TargetSearchHit
from .persistence import RelationStore
from .watch_states import RemoteCollectionClient

__all__ = [
    "RelationStore",
    "RemoteCatalogFetcher",
    "RemoteCollectionClient",
    "TargetSearchHit",
]
