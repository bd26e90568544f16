"""Diff two identity-resolved watch-state collections into change instructions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import PLATFORM_SITE, ChangeInstruction, Platform, WatchStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from animesync.domain.model import NativeId, WatchStateEntry

    from .index import CatalogIndex

log = getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_BACKFILLED = ("source_id", "target_id", "platform_id", "title")


@dataclass(frozen=True, slots=True)
class _Direction:
    """Which collection is written and which ids locate the counterpart."""

    platform: Platform
    lookup_keys: tuple[str, ...]


FORWARD = _Direction(Platform.TARGET, ("platform_id", "target_id"))
REVERSE = _Direction(Platform.SOURCE, ("source_id",))


def _timestamp(entry: WatchStateEntry) -> datetime:
    if entry.updated_at is None:
        return _EPOCH
    if entry.updated_at.tzinfo is None:
        return entry.updated_at.replace(tzinfo=UTC)
    return entry.updated_at


def _same_comment(left: WatchStateEntry, right: WatchStateEntry) -> bool:
    return (left.comment or "") == (right.comment or "")


def _title_key(entry: WatchStateEntry) -> tuple[str, NativeId] | None:
    for name in ("source_id", "target_id", "platform_id"):
        value = getattr(entry, name)
        if value is not None:
            return (name, value)
    return None


class ChangelogGenerator:
    """Produces the ordered list of writes that brings one side up to date.

    Episode totals come from the target catalog; pass ``episode_total`` to
    supply them some other way. A total of 0 means unknown and disables
    clamping for that entry.
    """

    def __init__(
        self,
        index: CatalogIndex | None = None,
        *,
        episode_total: Callable[[WatchStateEntry], int] | None = None,
    ) -> None:
        self.index = index
        self._episode_total = episode_total or self._catalog_episode_total

    def generate(
        self,
        source_collection: Sequence[WatchStateEntry],
        target_collection: Sequence[WatchStateEntry],
        *,
        sync_comments: bool = False,
    ) -> list[ChangeInstruction]:
        """One-way diff: every instruction writes to the target platform."""

        for entry in source_collection:
            if entry.has_cross_catalog_id():
                self.clamp(entry)
        return self._diff(source_collection, target_collection, FORWARD, sync_comments)

    def generate_bidirectional(
        self,
        source_collection: Sequence[WatchStateEntry],
        target_collection: Sequence[WatchStateEntry],
        *,
        sync_comments: bool = False,
    ) -> list[ChangeInstruction]:
        """Diff both ways and keep the most recently updated side per title.

        Equal or missing timestamps (missing counts as the epoch) keep the
        source -> target instruction. Titles only one direction produced an
        instruction for keep it; reverse-only instructions follow the forward
        ones in target-collection order.
        """

        for entry in source_collection:
            if entry.has_cross_catalog_id():
                self.clamp(entry)
        for entry in target_collection:
            if entry.source_id is not None or entry.has_cross_catalog_id():
                self.clamp(entry)

        forward = self._diff(source_collection, target_collection, FORWARD, sync_comments)
        reverse = self._diff(target_collection, source_collection, REVERSE, sync_comments)

        reverse_by_title: dict[tuple[str, NativeId], ChangeInstruction] = {}
        for instruction in reverse:
            key = _title_key(instruction.after)
            if key is not None:
                reverse_by_title.setdefault(key, instruction)

        consumed: set[int] = set()
        merged: list[ChangeInstruction] = []
        for instruction in forward:
            key = _title_key(instruction.after)
            rival = reverse_by_title.get(key) if key is not None else None
            if rival is None or id(rival) in consumed:
                merged.append(instruction)
                continue
            consumed.add(id(rival))
            if _timestamp(rival.after) > _timestamp(instruction.after):
                log.debug("Newer change on the target side wins for %r", rival.after.title)
                merged.append(rival)
            else:
                merged.append(instruction)
        merged.extend(instruction for instruction in reverse if id(instruction) not in consumed)
        return merged

    def clamp(self, entry: WatchStateEntry) -> None:
        """Cap progress at the catalog total; completed entries get exactly the total."""

        total = self._episode_total(entry)
        if total <= 0:
            return
        if entry.status is WatchStatus.COMPLETED or entry.watched_episodes > total:
            entry.watched_episodes = total

    def _catalog_episode_total(self, entry: WatchStateEntry) -> int:
        if self.index is None:
            return 0
        target = None
        if entry.target_id is not None:
            target = self.index.by_target_id(entry.target_id)
        if target is None and entry.platform_id is not None:
            target = self.index.by_target_site(PLATFORM_SITE, entry.platform_id)
        return target.episodes if target is not None else 0

    def _diff(
        self,
        origin: Sequence[WatchStateEntry],
        counterparts: Sequence[WatchStateEntry],
        direction: _Direction,
        sync_comments: bool,
    ) -> list[ChangeInstruction]:
        lookup: dict[tuple[str, NativeId], WatchStateEntry] = {}
        for counterpart in counterparts:
            for name in direction.lookup_keys:
                value = getattr(counterpart, name)
                if value is not None:
                    lookup.setdefault((name, value), counterpart)

        instructions: list[ChangeInstruction] = []
        for entry in origin:
            key = next(
                (
                    (name, getattr(entry, name))
                    for name in direction.lookup_keys
                    if getattr(entry, name) is not None
                ),
                None,
            )
            if key is None:
                continue

            counterpart = lookup.get(key)
            if counterpart is None:
                instructions.append(ChangeInstruction(after=entry, platform=direction.platform))
                continue

            _backfill(entry, counterpart)
            if _differs(entry, counterpart, sync_comments=sync_comments):
                instructions.append(
                    ChangeInstruction(after=entry, platform=direction.platform, before=counterpart)
                )
        return instructions


def _backfill(left: WatchStateEntry, right: WatchStateEntry) -> None:
    for name in _BACKFILLED:
        left_value = getattr(left, name)
        right_value = getattr(right, name)
        if left_value is None and right_value is not None:
            setattr(left, name, right_value)
        elif right_value is None and left_value is not None:
            setattr(right, name, left_value)


def _differs(after: WatchStateEntry, before: WatchStateEntry, *, sync_comments: bool) -> bool:
    if (
        after.score != before.score
        or after.status is not before.status
        or after.watched_episodes != before.watched_episodes
    ):
        return True
    return sync_comments and not _same_comment(after, before)


def render_diff(
    before: WatchStateEntry | None,
    after: WatchStateEntry,
    *,
    include_comment: bool = False,
    separator: str = "\n",
) -> str:
    """Operator-facing summary of the fields an instruction changes."""

    lines: list[str] = []
    if before is None or before.score != after.score:
        lines.append(f"Score: {_shown(before, 'score')} -> {_format_score(after.score)}")
    if before is None or before.status is not after.status:
        lines.append(f"Status: {_shown(before, 'status')} -> {after.status.value}")
    if before is None or before.watched_episodes != after.watched_episodes:
        lines.append(
            f"Watched episodes: {_shown(before, 'watched_episodes')} -> {after.watched_episodes}"
        )
    if include_comment and (before is None or not _same_comment(before, after)) and after.comment:
        lines.append(f"Comment: {_shown(before, 'comment')} -> {after.comment}")
    return separator.join(lines)


def _format_score(score: float) -> str:
    return f"{score:g}"


def _shown(entry: WatchStateEntry | None, name: str) -> str:
    if entry is None:
        return "NA"
    value = getattr(entry, name)
    if name == "score":
        return _format_score(value)
    if isinstance(value, WatchStatus):
        return value.value
    return "NA" if value is None else str(value)
