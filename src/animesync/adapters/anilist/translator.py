"""Translate AniList payloads into domain entities."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import WatchStateEntry, WatchStatus
from animesync.domain.ports import TargetSearchHit

if TYPE_CHECKING:
    from .schema import FuzzyDate, MediaListPayload, MediaPayload

log = getLogger(__name__)

# REPEATING collapses onto COMPLETED; writes always send COMPLETED
LIST_STATUS: dict[str, WatchStatus] = {
    "CURRENT": WatchStatus.WATCHING,
    "COMPLETED": WatchStatus.COMPLETED,
    "REPEATING": WatchStatus.COMPLETED,
    "PAUSED": WatchStatus.ON_HOLD,
    "DROPPED": WatchStatus.DROPPED,
    "PLANNING": WatchStatus.PLAN_TO_WATCH,
}
STATUS_NAME: dict[WatchStatus, str] = {
    WatchStatus.WATCHING: "CURRENT",
    WatchStatus.COMPLETED: "COMPLETED",
    WatchStatus.ON_HOLD: "PAUSED",
    WatchStatus.DROPPED: "DROPPED",
    WatchStatus.PLAN_TO_WATCH: "PLANNING",
}


def _fuzzy_to_datetime(value: FuzzyDate | None) -> datetime | None:
    if value is None or value.year is None or value.month is None or value.day is None:
        return None
    try:
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    except ValueError:
        return None


def _updated_at(payload: MediaListPayload) -> datetime | None:
    if payload.updated_at:
        return datetime.fromtimestamp(payload.updated_at, tz=UTC)
    return _fuzzy_to_datetime(payload.completed_at)


def parse_media_list_entry(payload: MediaListPayload) -> WatchStateEntry | None:
    status = LIST_STATUS.get(payload.status)
    if status is None:
        log.warning("Unknown AniList list status %s for media %s", payload.status, payload.media_id)
        return None
    media = payload.media
    target_id = str(media.id_mal) if media is not None and media.id_mal else None
    title = None
    if media is not None:
        title = media.title.native or media.title.romaji or media.title.english
    return WatchStateEntry(
        platform_id=str(payload.media_id),
        target_id=target_id,
        title=title,
        status=status,
        watched_episodes=payload.progress,
        score=payload.score,
        comment=payload.notes,
        updated_at=_updated_at(payload),
    )


def media_to_search_hit(media: MediaPayload) -> TargetSearchHit:
    return TargetSearchHit(
        platform_id=str(media.id),
        target_id=str(media.id_mal) if media.id_mal else None,
        titles=(*media.title.all(), *media.synonyms),
    )
