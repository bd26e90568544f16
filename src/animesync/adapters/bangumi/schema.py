"""Pydantic models describing the Bangumi v0 API payloads."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class BangumiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SubjectPayload(BangumiBaseModel):
    id: int
    type: int
    name: str
    name_cn: str = ""
    date: dt.date | None = None
    platform: str = ""
    eps: int = 0
    total_episodes: int = 0

    _normalize_date = field_validator("date", mode="before")(_blank_to_none)

    @field_validator("name_cn", "platform", mode="before")
    @classmethod
    def _null_to_blank(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def episode_total(self) -> int | None:
        total = self.total_episodes or self.eps
        return total or None


class SlimSubjectPayload(BangumiBaseModel):
    id: int
    name: str = ""
    name_cn: str = ""
    eps: int = 0


class UserCollectionPayload(BangumiBaseModel):
    subject_id: int
    subject_type: int
    rate: int = 0
    type: int
    comment: str | None = None
    ep_status: int = 0
    updated_at: dt.datetime | None = None
    private: bool = False
    subject: SlimSubjectPayload | None = None

    _normalize_comment = field_validator("comment", mode="before")(_blank_to_none)


class PagedCollectionPayload(BangumiBaseModel):
    total: int
    limit: int
    offset: int
    data: list[UserCollectionPayload]


class UserPayload(BangumiBaseModel):
    id: int
    username: str
    nickname: str = ""


class ErrorPayload(BangumiBaseModel):
    title: str = ""
    description: str = ""
