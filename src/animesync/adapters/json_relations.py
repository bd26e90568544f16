"""Known relations stored as one flat JSON file.

The layout is a list of ``{"title", "bgm_id", "mal_id"}`` objects indented by
four spaces, so caches written by earlier Bangumi sync tools load unchanged.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from animesync.domain.model import RelationEntry
from animesync.domain.reconciliation.errors import MalformedCacheData

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

log = getLogger(__name__)


class RelationRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""
    bgm_id: str
    mal_id: str

    @field_validator("bgm_id", "mal_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _null_title(cls, value: object) -> object:
        return "" if value is None else value


_RECORDS = TypeAdapter(list[RelationRecord])


class JsonRelationStore:
    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[RelationEntry]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        if not raw.strip():
            return []
        try:
            records = _RECORDS.validate_json(raw)
        except ValidationError as exc:
            raise MalformedCacheData(f"Cannot parse relation cache {self.path}") from exc
        return [
            RelationEntry(source_id=record.bgm_id, target_id=record.mal_id, title=record.title)
            for record in records
        ]

    def save(self, entries: Sequence[RelationEntry]) -> None:
        payload = [
            {"title": entry.title, "bgm_id": entry.source_id, "mal_id": entry.target_id}
            for entry in entries
        ]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        handle, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as tmp:
                json.dump(payload, tmp, ensure_ascii=False, indent=4)
            os.replace(tmp_name, self.path)
        except OSError:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
        log.debug("Wrote %s relations to %s", len(payload), self.path)
