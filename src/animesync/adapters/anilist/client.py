"""GraphQL client for AniList."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from animesync.adapters.http_resilience import ResilienceConfig, ResilientClient
from animesync.domain.model import Platform

from .schema import GraphQLResponse, MediaListPage, MediaPage, MediaPayload, Viewer
from .translator import STATUS_NAME, parse_media_list_entry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from animesync.config import AniListConfig
    from animesync.domain.model import ChangeInstruction, WatchStateEntry

log = getLogger(__name__)

LIST_PAGE_SIZE = 100
SEARCH_PAGE_SIZE = 10

VIEWER_QUERY = """
query {
  Viewer { id name }
}
"""

MEDIA_LIST_QUERY = """
query ($userId: Int, $page: Int, $perPage: Int) {
  Page(page: $page, perPage: $perPage) {
    pageInfo { hasNextPage currentPage }
    mediaList(userId: $userId, type: ANIME) {
      mediaId
      status
      score(format: POINT_10_DECIMAL)
      progress
      notes
      updatedAt
      completedAt { year month day }
      media { id idMal episodes title { romaji english native } }
    }
  }
}
"""

SEARCH_QUERY = """
query ($search: String, $perPage: Int) {
  Page(page: 1, perPage: $perPage) {
    pageInfo { hasNextPage currentPage }
    media(search: $search, type: ANIME) {
      id idMal episodes synonyms title { romaji english native }
    }
  }
}
"""

MEDIA_ID_BY_MAL_QUERY = """
query MediaIdByMal($idMal: Int) {
  Media(idMal: $idMal, type: ANIME) { id }
}
"""

SAVE_ENTRY_MUTATION = """
mutation ($mediaId: Int, $status: MediaListStatus, $scoreRaw: Int, $progress: Int, $notes: String) {
  SaveMediaListEntry(
    mediaId: $mediaId, status: $status, scoreRaw: $scoreRaw, progress: $progress, notes: $notes
  ) { id }
}
"""


async def log_rate_limit(response: httpx.Response) -> None:
    remaining = response.headers.get("x-ratelimit-remaining")
    if remaining is not None and remaining.isdigit() and int(remaining) < 5:
        log.warning("AniList rate limit nearly exhausted (%s requests left)", remaining)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class AniListAPIError(RuntimeError):
    """Raised when a GraphQL response carries errors or no data."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AniListClient:
    def __init__(
        self,
        config: AniListConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        resilience = replace(
            config.resilience,
            response_hooks=(*config.resilience.response_hooks, log_rate_limit),
        )
        self._http = client_factory(resilience)
        self._viewer_id: int | None = None

    async def __aenter__(self) -> AniListClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _execute(
        self, query: str, variables: dict[str, object] | None = None
    ) -> dict[str, object]:
        response = await self._http.post(
            "/",
            json={"query": query, "variables": variables or {}},
            headers={"Authorization": f"Bearer {self.config.access_token}"},
        )
        # GraphQL errors arrive with 4xx bodies worth reading
        try:
            body = GraphQLResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            response.raise_for_status()
            raise AniListAPIError("Unexpected AniList response payload") from None
        if body.errors:
            first = body.errors[0]
            log.error("AniList API error %s: %s", first.status, first.message)
            raise AniListAPIError(first.message, status=first.status)
        response.raise_for_status()
        if body.data is None:
            raise AniListAPIError("AniList response carried no data")
        return body.data

    async def viewer_id(self) -> int:
        if self._viewer_id is None:
            data = await self._execute(VIEWER_QUERY)
            self._viewer_id = Viewer.model_validate(data["Viewer"]).id
        return self._viewer_id

    async def fetch_collection(self) -> list[WatchStateEntry]:
        user_id = await self.viewer_id()
        entries: list[WatchStateEntry] = []
        page = 1
        while True:
            data = await self._execute(
                MEDIA_LIST_QUERY,
                {"userId": user_id, "page": page, "perPage": LIST_PAGE_SIZE},
            )
            result = MediaListPage.model_validate(data["Page"])
            for item in result.media_list:
                entry = parse_media_list_entry(item)
                if entry is not None:
                    entries.append(entry)
            if not result.page_info.has_next_page:
                break
            page += 1
        log.info("Fetched %s AniList list entries", len(entries))
        return entries

    async def search_media(self, title: str) -> list[MediaPayload]:
        data = await self._execute(SEARCH_QUERY, {"search": title, "perPage": SEARCH_PAGE_SIZE})
        return MediaPage.model_validate(data["Page"]).media

    async def find_media_id(self, mal_id: str) -> str | None:
        """AniList media id for a MyAnimeList id, ``None`` when AniList has no such entry."""

        if not mal_id.isdigit():
            return None
        try:
            data = await self._execute(MEDIA_ID_BY_MAL_QUERY, {"idMal": int(mal_id)})
        except AniListAPIError as exc:
            if exc.status == httpx.codes.NOT_FOUND:
                log.warning("AniList has no entry for MAL id %s", mal_id)
                return None
            raise
        media = data.get("Media")
        if media is None:
            return None
        return str(MediaPayload.model_validate(media).id)

    async def apply_changes(
        self, instructions: Sequence[ChangeInstruction], *, sync_comments: bool = False
    ) -> int:
        applied = 0
        for instruction in instructions:
            if instruction.platform is not Platform.TARGET:
                continue
            entry = instruction.after
            if entry.platform_id is None and entry.target_id is not None:
                # the offline database does not list an AniList id for every MAL entry
                try:
                    entry.platform_id = await self.find_media_id(entry.target_id)
                except (httpx.HTTPError, AniListAPIError) as exc:
                    log.warning("Looking up AniList id for MAL %s failed: %s", entry.target_id, exc)
                    continue
            if entry.platform_id is None:
                log.error("Cannot write %r to AniList without a media id", entry.title)
                continue
            try:
                await self._execute(SAVE_ENTRY_MUTATION, self._save_variables(entry, sync_comments))
            except (httpx.HTTPError, AniListAPIError) as exc:
                log.warning("Updating AniList media %s failed: %s", entry.platform_id, exc)
                continue
            applied += 1
        return applied

    @staticmethod
    def _save_variables(entry: WatchStateEntry, sync_comments: bool) -> dict[str, object]:
        variables: dict[str, object] = {
            "mediaId": int(entry.platform_id or 0),
            "status": STATUS_NAME[entry.status],
            "scoreRaw": round(entry.score * 10),
            "progress": entry.watched_episodes,
        }
        if sync_comments:
            variables["notes"] = entry.comment or ""
        return variables
