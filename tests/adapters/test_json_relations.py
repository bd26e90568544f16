from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from animesync.adapters.json_relations import JsonRelationStore
from animesync.domain.model import RelationEntry
from animesync.domain.reconciliation import MalformedCacheData

if TYPE_CHECKING:
    from pathlib import Path


def test_missing_or_empty_file_loads_nothing(tmp_path: Path) -> None:
    path = tmp_path / "relations.json"
    store = JsonRelationStore(path)

    assert store.load() == []
    path.write_text("  \n")
    assert store.load() == []


def test_save_writes_legacy_layout(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "relations.json"
    store = JsonRelationStore(path)

    store.save([RelationEntry("400602", "52991", "葬送のフリーレン")])

    text = path.read_text(encoding="utf-8")
    assert json.loads(text) == [
        {"title": "葬送のフリーレン", "bgm_id": "400602", "mal_id": "52991"}
    ]
    assert '\n    {\n        "title"' in text
    assert store.load() == [RelationEntry("400602", "52991", "葬送のフリーレン")]
    assert list(path.parent.iterdir()) == [path]


def test_integer_ids_and_null_titles_are_accepted(tmp_path: Path) -> None:
    path = tmp_path / "relations.json"
    path.write_text(json.dumps([{"title": None, "bgm_id": 1, "mal_id": 2, "extra": True}]))

    assert JsonRelationStore(path).load() == [RelationEntry("1", "2", "")]


@pytest.mark.parametrize("content", ["{", '{"bgm_id": 1}', '[{"bgm_id": 1}]'])
def test_malformed_content_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "relations.json"
    path.write_text(content)

    with pytest.raises(MalformedCacheData):
        JsonRelationStore(path).load()
