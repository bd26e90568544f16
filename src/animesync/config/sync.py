"""Synchronization defaults for reconciliation runs."""

from __future__ import annotations

from dataclasses import dataclass

from animesync.domain.reconciliation.matcher import DEFAULT_TITLE_THRESHOLD
from animesync.domain.reconciliation.scheduler import DEFAULT_MATCH_CONCURRENCY

from .env import env_flag, env_float, env_int
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class SyncConfig:
    match_concurrency: int = DEFAULT_MATCH_CONCURRENCY
    title_threshold: float = DEFAULT_TITLE_THRESHOLD
    sync_comments: bool = False
    bidirectional: bool = False
    manual_confirm: bool = True

    def __post_init__(self) -> None:
        if self.match_concurrency < 1:
            raise ConfigurationError("Match concurrency must be at least 1")
        if not 0.0 <= self.title_threshold <= 1.0:
            raise ConfigurationError("Title threshold must be between 0 and 1")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        match_concurrency=env_int(
            "ANIMESYNC_MATCH_CONCURRENCY", default=DEFAULT_MATCH_CONCURRENCY
        ),
        title_threshold=env_float("ANIMESYNC_TITLE_THRESHOLD", default=DEFAULT_TITLE_THRESHOLD),
        sync_comments=env_flag("ANIMESYNC_SYNC_COMMENTS", default=False),
        bidirectional=env_flag("ANIMESYNC_BIDIRECTIONAL", default=False),
        manual_confirm=env_flag("ANIMESYNC_MANUAL_CONFIRM", default=True),
    )
