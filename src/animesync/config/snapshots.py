"""Bulk catalog snapshot locations."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

DEFAULT_SOURCE_SNAPSHOT_URL = "https://unpkg.com/bangumi-data@0.3/dist/data.json"
DEFAULT_TARGET_SNAPSHOT_URL = (
    "https://github.com/manami-project/anime-offline-database/releases/latest/download/"
    "anime-offline-database-minified.json"
)


def _snapshot_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="snapshots",
        timeout_seconds=180.0,
        retry=RetryPolicy(total=3, backoff_factor=2.0),
        cache=CacheConfig(backend="sqlite"),
    )


@dataclass(frozen=True, slots=True)
class SnapshotConfig:
    source_url: str = DEFAULT_SOURCE_SNAPSHOT_URL
    target_url: str = DEFAULT_TARGET_SNAPSHOT_URL
    resilience: ResilienceConfig = field(default_factory=_snapshot_resilience)


def get_snapshot_config() -> SnapshotConfig:
    return SnapshotConfig(
        source_url=os.getenv("ANIMESYNC_SOURCE_SNAPSHOT_URL") or DEFAULT_SOURCE_SNAPSHOT_URL,
        target_url=os.getenv("ANIMESYNC_TARGET_SNAPSHOT_URL") or DEFAULT_TARGET_SNAPSHOT_URL,
    )
