"""Ports for looking up single catalog records on the remote services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from animesync.domain.model import NativeId, SourceCatalogEntry


@dataclass(frozen=True, slots=True)
class TargetSearchHit:
    """A title-search result; ``target_id`` maps it back onto the target catalog."""

    platform_id: NativeId
    target_id: NativeId | None
    titles: tuple[str, ...] = ()


@runtime_checkable
class RemoteCatalogFetcher(Protocol):
    """Single-record lookups backing the bulk catalog snapshots.

    Implementations retry and rate-limit internally. ``None`` and empty results
    mean "not found"; exhausted retries raise ``RemoteLookupFailure``.
    """

    async def fetch_source_entry_by_id(
        self, source_id: NativeId, *, relaxed: bool = False
    ) -> SourceCatalogEntry | None: ...

    async def search_target_by_title(self, title: str) -> list[TargetSearchHit]: ...

    async def fetch_target_episode_total(self, source_id: NativeId) -> int | None: ...


__all__ = ["RemoteCatalogFetcher", "TargetSearchHit"]
