"""Pydantic models for the slices of the AniList GraphQL schema we query."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AniListBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MediaTitle(AniListBaseModel):
    romaji: str | None = None
    english: str | None = None
    native: str | None = None

    def all(self) -> tuple[str, ...]:
        return tuple(title for title in (self.romaji, self.english, self.native) if title)


class MediaPayload(AniListBaseModel):
    id: int
    id_mal: int | None = Field(default=None, alias="idMal")
    title: MediaTitle = Field(default_factory=MediaTitle)
    synonyms: list[str] = Field(default_factory=list)
    episodes: int | None = None

    @field_validator("synonyms", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class FuzzyDate(AniListBaseModel):
    year: int | None = None
    month: int | None = None
    day: int | None = None


class MediaListPayload(AniListBaseModel):
    media_id: int = Field(alias="mediaId")
    status: str
    score: float = 0
    progress: int = 0
    notes: str | None = None
    updated_at: int | None = Field(default=None, alias="updatedAt")
    completed_at: FuzzyDate | None = Field(default=None, alias="completedAt")
    media: MediaPayload | None = None

    @field_validator("score", "progress", mode="before")
    @classmethod
    def _null_to_zero(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value


class PageInfo(AniListBaseModel):
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    current_page: int = Field(default=1, alias="currentPage")


class MediaListPage(AniListBaseModel):
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")
    media_list: list[MediaListPayload] = Field(default_factory=list, alias="mediaList")


class MediaPage(AniListBaseModel):
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")
    media: list[MediaPayload] = Field(default_factory=list)


class Viewer(AniListBaseModel):
    id: int
    name: str = ""


class GraphQLError(AniListBaseModel):
    message: str
    status: int | None = None


class GraphQLResponse(AniListBaseModel):
    data: dict[str, object] | None = None
    errors: list[GraphQLError] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value
