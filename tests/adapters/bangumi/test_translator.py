from __future__ import annotations

from datetime import date

from animesync.adapters.bangumi import (
    SubjectPayload,
    UserCollectionPayload,
    parse_collection_entry,
    subject_to_catalog_entry,
)
from animesync.domain.model import SourceKind, WatchStatus


def test_subject_becomes_catalog_entry() -> None:
    subject = SubjectPayload.model_validate(
        {
            "id": 400602,
            "type": 2,
            "name": "葬送のフリーレン",
            "name_cn": "葬送的芙莉莲",
            "date": "2023-09-29",
            "platform": "TV",
            "eps": 28,
        }
    )

    entry = subject_to_catalog_entry(subject)

    assert entry.native_id == "400602"
    assert entry.kind is SourceKind.TV
    assert entry.start_date == date(2023, 9, 29)
    assert entry.episodes == 28
    assert entry.translations == {"zh-Hans": ("葬送的芙莉莲",)}
    assert not entry.relaxed


def test_incomplete_subject_is_relaxed() -> None:
    subject = SubjectPayload.model_validate(
        {"id": 1, "type": 2, "name": "x", "date": "", "platform": "其他", "name_cn": None}
    )

    entry = subject_to_catalog_entry(subject)

    assert entry.relaxed
    assert entry.kind is None
    assert entry.start_date is None
    assert entry.episodes is None


def test_movie_platform_maps_to_movie() -> None:
    subject = SubjectPayload.model_validate(
        {"id": 1, "type": 2, "name": "x", "date": "2020-01-01", "platform": "剧场版"}
    )

    assert subject_to_catalog_entry(subject).kind is SourceKind.MOVIE


def test_collection_entry_translation() -> None:
    payload = UserCollectionPayload.model_validate(
        {
            "subject_id": 5,
            "subject_type": 2,
            "type": 4,
            "rate": 6,
            "ep_status": 2,
            "comment": "  ",
            "subject": {"id": 5, "name": "", "name_cn": "中文名"},
        }
    )

    entry = parse_collection_entry(payload)

    assert entry is not None
    assert entry.status is WatchStatus.ON_HOLD
    assert entry.source_id == "5"
    assert entry.title == "中文名"
    assert entry.comment is None
    assert entry.score == 6
