"""Pydantic models for the two bulk catalog dumps."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SnapshotBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _null_to_empty_list(value: object) -> object:
    return [] if value is None else value


# bangumi-data dist/data.json


class BangumiDataSite(SnapshotBaseModel):
    site: str
    id: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if value is None:
            return ""
        return str(value) if isinstance(value, int) else value


class BangumiDataItem(SnapshotBaseModel):
    title: str
    title_translate: dict[str, list[str]] = Field(default_factory=dict, alias="titleTranslate")
    type: str
    begin: str = ""
    sites: list[BangumiDataSite] = Field(default_factory=list)

    @field_validator("title_translate", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return {} if value is None else value

    _normalize_sites = field_validator("sites", mode="before")(_null_to_empty_list)


class BangumiDataDump(SnapshotBaseModel):
    items: list[BangumiDataItem]


# anime-offline-database


class AnimeSeasonPayload(SnapshotBaseModel):
    season: str = "UNDEFINED"
    year: int | None = None


class OfflineAnimePayload(SnapshotBaseModel):
    sources: list[str] = Field(default_factory=list)
    title: str
    type: str = "UNKNOWN"
    episodes: int = 0
    anime_season: AnimeSeasonPayload = Field(
        default_factory=AnimeSeasonPayload, alias="animeSeason"
    )
    synonyms: list[str] = Field(default_factory=list)

    _normalize_lists = field_validator("sources", "synonyms", mode="before")(_null_to_empty_list)

    @field_validator("episodes", mode="before")
    @classmethod
    def _null_to_zero(cls, value: object) -> object:
        return 0 if value is None else value


class OfflineDatabaseDump(SnapshotBaseModel):
    data: list[OfflineAnimePayload]
