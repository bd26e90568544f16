"""Ports for the per-platform watch-state services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from animesync.domain.model import ChangeInstruction, WatchStateEntry


@runtime_checkable
class RemoteCollectionClient(Protocol):
    """Reads one user's collection and applies change instructions to it."""

    async def fetch_collection(self) -> list[WatchStateEntry]: ...

    async def apply_changes(
        self, instructions: Sequence[ChangeInstruction], *, sync_comments: bool = False
    ) -> int:
        """Apply the instructions and return how many succeeded."""
        ...


__all__ = ["RemoteCollectionClient"]
