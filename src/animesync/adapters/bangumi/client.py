"""HTTP client for the Bangumi v0 API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from animesync.adapters.http_resilience import ResilienceConfig, ResilientClient
from animesync.domain.model import Platform

from .schema import PagedCollectionPayload, SubjectPayload, UserPayload
from .translator import COLLECTION_TYPE, parse_collection_entry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from animesync.config import BangumiConfig
    from animesync.domain.model import ChangeInstruction, WatchStateEntry

log = getLogger(__name__)

ANIME_SUBJECT_TYPE = 2
COLLECTION_PAGE_SIZE = 50


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class BangumiAPIError(RuntimeError):
    """Raised when Bangumi answers with something other than the documented payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BangumiClient:
    """Collections and subject lookups for the token's owner.

    Keep one instance open for a whole run: the rate limiter lives on it.
    Subject lookups go through the persistent HTTP cache, so a subject seen
    in an earlier run is revalidated by its ETag instead of downloaded again.
    """

    def __init__(
        self,
        config: BangumiConfig,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = _default_client_factory,
    ) -> None:
        self.config = config
        self._http = client_factory(config.resilience)
        self._username = config.username

    async def __aenter__(self) -> BangumiClient:
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

    @property
    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.access_token}"}

    async def username(self) -> str:
        if self._username is None:
            response = await self._http.get("/v0/me", headers=self._auth_headers)
            response.raise_for_status()
            self._username = UserPayload.model_validate(response.json()).username
        return self._username

    async def fetch_subject(self, subject_id: str) -> SubjectPayload | None:
        """``None`` for unknown subjects; other failures raise ``httpx.HTTPError``."""

        response = await self._http.get(f"/v0/subjects/{subject_id}", headers=self._auth_headers)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        try:
            return SubjectPayload.model_validate(response.json())
        except ValidationError as exc:
            raise BangumiAPIError(f"Unexpected subject payload for {subject_id}") from exc

    async def fetch_collection(self) -> list[WatchStateEntry]:
        username = await self.username()
        entries: list[WatchStateEntry] = []
        offset = 0
        while True:
            response = await self._http.get(
                f"/v0/users/{username}/collections",
                params={
                    "subject_type": ANIME_SUBJECT_TYPE,
                    "limit": COLLECTION_PAGE_SIZE,
                    "offset": offset,
                },
                headers=self._auth_headers,
            )
            response.raise_for_status()
            page = PagedCollectionPayload.model_validate(response.json())
            for item in page.data:
                entry = parse_collection_entry(item)
                if entry is not None:
                    entries.append(entry)
            offset += len(page.data)
            if not page.data or offset >= page.total:
                break
        log.info("Fetched %s Bangumi collection entries", len(entries))
        return entries

    async def apply_changes(
        self, instructions: Sequence[ChangeInstruction], *, sync_comments: bool = False
    ) -> int:
        applied = 0
        for instruction in instructions:
            if instruction.platform is not Platform.SOURCE:
                continue
            entry = instruction.after
            if entry.source_id is None:
                log.error("Cannot write %r to Bangumi without a subject id", entry.title)
                continue
            try:
                await self._save_entry(entry, sync_comments=sync_comments)
            except httpx.HTTPError as exc:
                log.warning("Updating Bangumi subject %s failed: %s", entry.source_id, exc)
                continue
            applied += 1
        return applied

    async def _save_entry(self, entry: WatchStateEntry, *, sync_comments: bool) -> None:
        payload: dict[str, object] = {
            "type": COLLECTION_TYPE[entry.status],
            "rate": max(0, min(10, round(entry.score))),
        }
        if sync_comments and entry.comment is not None:
            payload["comment"] = entry.comment
        url = f"/v0/users/-/collections/{entry.source_id}"
        response = await self._http.post(url, json=payload, headers=self._auth_headers)
        response.raise_for_status()
        # progress is only accepted on an existing collection entry
        response = await self._http.patch(
            url, json={"ep_status": entry.watched_episodes}, headers=self._auth_headers
        )
        response.raise_for_status()
