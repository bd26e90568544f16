"""Per-user watch state and the instructions derived from it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import Platform, WatchStatus
    from .primitives import NativeId


@dataclass(slots=True)
class WatchStateEntry:
    """One title in a user's collection on either platform.

    Built fresh on every run and filled in place: the resolver adds missing
    cross-catalog ids, the changelog generator clamps progress and back-fills
    ids and titles. ``platform_id`` is the AniList media id.
    """

    status: WatchStatus
    watched_episodes: int = 0
    score: float = 0
    source_id: NativeId | None = None
    target_id: NativeId | None = None
    platform_id: NativeId | None = None
    title: str | None = None
    comment: str | None = None
    updated_at: datetime | None = None

    def has_cross_catalog_id(self) -> bool:
        return self.target_id is not None or self.platform_id is not None


@dataclass(frozen=True, slots=True)
class ChangeInstruction:
    """Write ``after`` to ``platform``; ``before`` is ``None`` for a create."""

    after: WatchStateEntry
    platform: Platform
    before: WatchStateEntry | None = None

    @property
    def is_create(self) -> bool:
        return self.before is None
