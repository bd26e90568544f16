"""Download and load the bulk catalog snapshots."""

from __future__ import annotations

import contextlib
import os
import tempfile
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from animesync.adapters.http_resilience import ResilienceConfig, ResilientClient

from .schema import BangumiDataDump, OfflineDatabaseDump
from .translator import translate_source_items, translate_target_items

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from animesync.config import SnapshotConfig, StorageConfig
    from animesync.domain.model import SourceCatalogEntry, TargetCatalogEntry

log = getLogger(__name__)

SOURCE_SNAPSHOT = "source"
TARGET_SNAPSHOT = "target"
SNAPSHOT_FILENAMES: dict[str, str] = {
    SOURCE_SNAPSHOT: "bangumi_data.json",
    TARGET_SNAPSHOT: "anime_offline_database.json",
}


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class SnapshotUnavailableError(RuntimeError):
    """Raised when a snapshot is neither downloadable nor present locally."""


class SnapshotDownloader:
    """Keeps local copies of both dumps fresh.

    Downloads go through the persistent HTTP cache, which revalidates the
    stored dump by its ``ETag``; the local copy is only rewritten when the
    body changed or the file is gone. A failed download leaves the previous
    copy in place; only a missing copy is fatal, and only once something
    tries to load it.
    """

    def __init__(
        self,
        config: SnapshotConfig,
        storage: StorageConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self.storage = storage
        self.client_factory = client_factory

    def path_for(self, name: str) -> Path:
        return self.storage.snapshot_dir() / SNAPSHOT_FILENAMES[name]

    def _urls(self) -> dict[str, str]:
        return {SOURCE_SNAPSHOT: self.config.source_url, TARGET_SNAPSHOT: self.config.target_url}

    async def refresh(self) -> dict[str, bool]:
        """Fetch every snapshot; returns which local copies were replaced."""

        updated: dict[str, bool] = {}
        async with self.client_factory(self.config.resilience) as client:
            for name, url in self._urls().items():
                updated[name] = await self._refresh_one(client, name, url)
        return updated

    async def _refresh_one(self, client: ResilientClient, name: str, url: str) -> bool:
        path = self.path_for(name)
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.error("Unable to download %s snapshot: %s", name, exc)
            return False
        content = response.content
        if path.exists() and path.read_bytes() == content:
            log.debug("%s snapshot unchanged", name)
            return False

        log.info("Updating %s snapshot from %s", name, url)
        _write_atomic(path, content)
        return True

    def _read(self, name: str) -> bytes:
        path = self.path_for(name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise SnapshotUnavailableError(f"No local {name} snapshot at {path}") from None

    def load_source_entries(self) -> list[SourceCatalogEntry]:
        try:
            dump = BangumiDataDump.model_validate_json(self._read(SOURCE_SNAPSHOT))
        except ValidationError as exc:
            raise SnapshotUnavailableError(f"Malformed {SOURCE_SNAPSHOT} snapshot") from exc
        return translate_source_items(dump.items)

    def load_target_entries(self) -> list[TargetCatalogEntry]:
        try:
            dump = OfflineDatabaseDump.model_validate_json(self._read(TARGET_SNAPSHOT))
        except ValidationError as exc:
            raise SnapshotUnavailableError(f"Malformed {TARGET_SNAPSHOT} snapshot") from exc
        return translate_target_items(dump.data)

    async def load(self) -> tuple[list[SourceCatalogEntry], list[TargetCatalogEntry]]:
        await self.refresh()
        sources = self.load_source_entries()
        targets = self.load_target_entries()
        log.info("Loaded %s source and %s target catalog entries", len(sources), len(targets))
        return sources, targets


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except OSError:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise
