"""Ports for persisting resolved relations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from animesync.domain.model import RelationEntry


@runtime_checkable
class RelationStore(Protocol):
    """Flat relation file, rewritten in full on every save.

    ``load`` raises ``MalformedCacheData`` for content it cannot parse and
    returns an empty list when nothing has been stored yet. ``save`` raises
    ``OSError`` when the write does not land.
    """

    def load(self) -> list[RelationEntry]: ...

    def save(self, entries: Sequence[RelationEntry]) -> None: ...


__all__ = ["RelationStore"]
