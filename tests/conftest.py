from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from animesync.config import StorageConfig


@pytest.fixture(autouse=True)
def _isolated_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    # nothing a test runs may touch the real relation cache or snapshots
    monkeypatch.setenv("ANIMESYNC_DATA_DIR", str(tmp_path_factory.mktemp("animesync-data")))
    monkeypatch.delenv("ANIMESYNC_CONFIG_DIR", raising=False)


@pytest.fixture
def storage(tmp_path: Path) -> StorageConfig:
    return StorageConfig(data_dir=tmp_path)
