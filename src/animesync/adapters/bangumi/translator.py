"""Translate Bangumi payloads into domain entities."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from animesync.domain.model import (
    SOURCE_SITE,
    SiteRef,
    SourceCatalogEntry,
    SourceKind,
    WatchStateEntry,
    WatchStatus,
)

if TYPE_CHECKING:
    from .schema import SubjectPayload, UserCollectionPayload

log = getLogger(__name__)

# Bangumi collection type ids
COLLECTION_STATUS: dict[int, WatchStatus] = {
    1: WatchStatus.PLAN_TO_WATCH,
    2: WatchStatus.COMPLETED,
    3: WatchStatus.WATCHING,
    4: WatchStatus.ON_HOLD,
    5: WatchStatus.DROPPED,
}
COLLECTION_TYPE: dict[WatchStatus, int] = {
    status: type_id for type_id, status in COLLECTION_STATUS.items()
}

PLATFORM_KIND: dict[str, SourceKind] = {
    "TV": SourceKind.TV,
    "OVA": SourceKind.OVA,
    "WEB": SourceKind.WEB,
    "剧场版": SourceKind.MOVIE,
}


def subject_to_catalog_entry(subject: SubjectPayload) -> SourceCatalogEntry:
    """Build a catalog entry; one lacking date or known platform comes back relaxed."""

    kind = PLATFORM_KIND.get(subject.platform)
    translations = {"zh-Hans": (subject.name_cn,)} if subject.name_cn else {}
    return SourceCatalogEntry(
        title=subject.name,
        kind=kind,
        start_date=subject.date,
        sites=(SiteRef(SOURCE_SITE, str(subject.id)),),
        translations=translations,
        episodes=subject.episode_total,
        relaxed=kind is None or subject.date is None,
    )


def parse_collection_entry(payload: UserCollectionPayload) -> WatchStateEntry | None:
    status = COLLECTION_STATUS.get(payload.type)
    if status is None:
        log.warning("Unknown collection type %s for subject %s", payload.type, payload.subject_id)
        return None
    title = None
    if payload.subject is not None:
        title = payload.subject.name or payload.subject.name_cn or None
    return WatchStateEntry(
        source_id=str(payload.subject_id),
        title=title,
        status=status,
        watched_episodes=payload.ep_status,
        score=payload.rate,
        comment=payload.comment,
        updated_at=payload.updated_at,
    )
