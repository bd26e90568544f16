"""Resolved cross-catalog identity pairs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .primitives import NativeId


@dataclass(frozen=True, slots=True)
class RelationEntry:
    source_id: NativeId
    target_id: NativeId
    title: str = ""

    @property
    def key(self) -> tuple[NativeId, NativeId]:
        return (self.source_id, self.target_id)
