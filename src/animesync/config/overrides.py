"""Hand-maintained relation overrides and ignore lists."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from .errors import MalformedOverridesError

if TYPE_CHECKING:
    from pathlib import Path

    from .storage import StorageConfig

log = getLogger(__name__)

_MANUAL_RELATIONS = TypeAdapter(list[tuple[int, int]])


class IgnoreEntriesFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bangumi: list[int] = []
    anilist: list[int] = []
    mal: list[int] = []


@dataclass(frozen=True, slots=True)
class Overrides:
    """Manual Bangumi -> AniList relations plus ids to leave alone.

    Ids are kept as strings because that is how every watch-state entry
    carries them.
    """

    manual_relations: dict[str, str] = field(default_factory=dict)
    ignored_bangumi: frozenset[str] = frozenset()
    ignored_anilist: frozenset[str] = frozenset()
    ignored_mal: frozenset[str] = frozenset()

    def manual_platform_id(self, source_id: str | None) -> str | None:
        if source_id is None:
            return None
        return self.manual_relations.get(source_id)


def _read(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def load_overrides(storage: StorageConfig) -> Overrides:
    """Read both override files; either may be absent."""

    relations: dict[str, str] = {}
    relations_path = storage.manual_relations_path()
    raw = _read(relations_path)
    if raw is not None:
        try:
            pairs = _MANUAL_RELATIONS.validate_json(raw)
        except ValidationError as exc:
            raise MalformedOverridesError(relations_path, "manual relations") from exc
        for bangumi_id, anilist_id in pairs:
            # first pair for a subject wins
            relations.setdefault(str(bangumi_id), str(anilist_id))

    ignored = IgnoreEntriesFile()
    ignore_path = storage.ignore_entries_path()
    raw = _read(ignore_path)
    if raw is not None:
        try:
            ignored = IgnoreEntriesFile.model_validate_json(raw)
        except ValidationError as exc:
            raise MalformedOverridesError(ignore_path, "ignore entries") from exc

    overrides = Overrides(
        manual_relations=relations,
        ignored_bangumi=frozenset(str(item) for item in ignored.bangumi),
        ignored_anilist=frozenset(str(item) for item in ignored.anilist),
        ignored_mal=frozenset(str(item) for item in ignored.mal),
    )
    log.debug(
        "Loaded overrides: %s manual relations, %s ignored ids",
        len(overrides.manual_relations),
        len(overrides.ignored_bangumi)
        + len(overrides.ignored_anilist)
        + len(overrides.ignored_mal),
    )
    return overrides
