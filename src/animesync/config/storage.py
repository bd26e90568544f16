"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "animesync"
RELATIONS_FILENAME: Final[str] = "known_relations.json"
SNAPSHOT_DIRNAME: Final[str] = "snapshots"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"
MANUAL_RELATIONS_FILENAME: Final[str] = "manual_relations.json"
IGNORE_ENTRIES_FILENAME: Final[str] = "ignore_entries.json"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Locations of everything the sync keeps between runs.

    Only the relation cache, the catalog snapshots and the HTTP cache are
    written by the application; the override files are maintained by hand.
    """

    data_dir: Path
    config_dir: Path | None = None

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def _in_data_dir(self, name: str, *, ensure: bool) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / name

    def relations_path(self, *, ensure: bool = True) -> Path:
        return self._in_data_dir(RELATIONS_FILENAME, ensure=ensure)

    def snapshot_dir(self, *, ensure: bool = True) -> Path:
        path = self._in_data_dir(SNAPSHOT_DIRNAME, ensure=ensure)
        if ensure:
            path.mkdir(parents=True, exist_ok=True)
        return path

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._in_data_dir(HTTP_CACHE_FILENAME, ensure=ensure)

    def resolve_config_dir(self) -> Path:
        if self.config_dir is None:
            return self.resolve_data_dir()
        return self.config_dir.expanduser().resolve()

    def manual_relations_path(self) -> Path:
        return self.resolve_config_dir() / MANUAL_RELATIONS_FILENAME

    def ignore_entries_path(self) -> Path:
        return self.resolve_config_dir() / IGNORE_ENTRIES_FILENAME


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("ANIMESYNC_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    env_config_dir = os.getenv("ANIMESYNC_CONFIG_DIR")
    config_dir = Path(env_config_dir) if env_config_dir else None
    return StorageConfig(data_dir=data_dir, config_dir=config_dir)



def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
