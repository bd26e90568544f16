from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import httpx
import pytest

from animesync.adapters.bangumi import BangumiAPIError, BangumiClient
from animesync.adapters.http_resilience import CacheConfig
from animesync.config import BangumiConfig
from animesync.config.bangumi import bangumi_resilience
from animesync.domain.model import ChangeInstruction, Platform, WatchStatus
from tests.helpers.catalog import make_state
from tests.helpers.http import make_client_factory

if TYPE_CHECKING:
    from pathlib import Path

CONFIG = BangumiConfig(access_token="token", resilience=bangumi_resilience())


def _collection_item(subject_id: int, type_: int = 3, **extra: object) -> dict[str, object]:
    item: dict[str, object] = {
        "subject_id": subject_id,
        "subject_type": 2,
        "type": type_,
        "rate": 7,
        "ep_status": 3,
        "comment": None,
        "updated_at": "2024-03-01T12:00:00+08:00",
        "subject": {"id": subject_id, "name": f"Subject {subject_id}", "name_cn": "", "eps": 12},
    }
    item.update(extra)
    return item


def _client(handler) -> BangumiClient:
    return BangumiClient(CONFIG, client_factory=make_client_factory(handler))


def test_fetch_collection_pages_through_results() -> None:
    requests: list[httpx.Request] = []
    pages = {0: [_collection_item(i) for i in range(50)], 50: [_collection_item(99, 2)]}

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/v0/me":
            return httpx.Response(200, json={"id": 1, "username": "neko"})
        offset = int(request.url.params["offset"])
        return httpx.Response(
            200, json={"total": 51, "limit": 50, "offset": offset, "data": pages[offset]}
        )

    async def run() -> list:
        async with _client(handler) as client:
            return await client.fetch_collection()

    entries = asyncio.run(run())

    assert len(entries) == 51
    assert entries[-1].source_id == "99"
    assert entries[-1].status is WatchStatus.COMPLETED
    assert entries[0].title == "Subject 0"
    assert entries[0].watched_episodes == 3
    collection_requests = [r for r in requests if r.url.path.endswith("/collections")]
    assert collection_requests[0].url.path == "/v0/users/neko/collections"
    assert collection_requests[0].url.params["subject_type"] == "2"
    assert all(r.headers["Authorization"] == "Bearer token" for r in requests)


def test_unknown_collection_types_are_dropped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        data = [_collection_item(1), _collection_item(2, 9)]
        return httpx.Response(200, json={"total": 2, "limit": 50, "offset": 0, "data": data})

    config = BangumiConfig(access_token="token", resilience=bangumi_resilience(), username="neko")

    async def run() -> list:
        async with BangumiClient(config, client_factory=make_client_factory(handler)) as client:
            return await client.fetch_collection()

    assert [entry.source_id for entry in asyncio.run(run())] == ["1"]


def test_subject_lookups_revalidate_against_the_http_cache(tmp_path: Path) -> None:
    seen: list[tuple[str, str | None]] = []
    subject = {"id": 7, "type": 2, "name": "Kaiju", "platform": "TV", "date": "2024-04-13"}

    def handler(request: httpx.Request) -> httpx.Response:
        etag = request.headers.get("If-None-Match")
        seen.append((request.url.path, etag))
        if request.url.path.endswith("/404"):
            return httpx.Response(404, json={"title": "Not Found"})
        if etag == '"kaiju-1"':
            return httpx.Response(304, headers={"ETag": '"kaiju-1"'})
        headers = {"ETag": '"kaiju-1"', "Cache-Control": "no-cache"}
        return httpx.Response(200, headers=headers, json=subject)

    factory = make_client_factory(
        handler, cache=CacheConfig(backend="sqlite", sqlite_path=str(tmp_path / "http.db"))
    )

    async def one_run():
        async with BangumiClient(CONFIG, client_factory=factory) as client:
            return await client.fetch_subject("7"), await client.fetch_subject("404")

    first, missing = asyncio.run(one_run())
    second, _ = asyncio.run(one_run())

    assert first is not None
    assert second is not None
    assert second.name == first.name == "Kaiju"
    assert missing is None
    assert seen[0] == ("/v0/subjects/7", None)
    assert ("/v0/subjects/7", '"kaiju-1"') in seen[2:]


def test_malformed_subject_raises_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    async def run() -> None:
        async with _client(handler) as client:
            await client.fetch_subject("1")

    with pytest.raises(BangumiAPIError):
        asyncio.run(run())


def test_server_errors_propagate_from_subject_lookup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async def run() -> None:
        async with _client(handler) as client:
            await client.fetch_subject("1")

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(run())


def test_apply_changes_posts_then_patches_progress() -> None:
    requests: list[tuple[str, str, dict[str, object]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(204)

    entry = make_state(
        WatchStatus.COMPLETED, watched=12, score=8.6, source_id="5", comment="great"
    )
    instructions = [
        ChangeInstruction(after=entry, platform=Platform.SOURCE),
        ChangeInstruction(after=make_state(source_id="6"), platform=Platform.TARGET),
    ]

    async def run() -> int:
        async with _client(handler) as client:
            return await client.apply_changes(instructions, sync_comments=True)

    assert asyncio.run(run()) == 1
    assert requests == [
        ("POST", "/v0/users/-/collections/5", {"type": 2, "rate": 9, "comment": "great"}),
        ("PATCH", "/v0/users/-/collections/5", {"ep_status": 12}),
    ]


def test_apply_changes_skips_failed_writes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/1"):
            return httpx.Response(400, json={"title": "Bad Request"})
        return httpx.Response(204)

    instructions = [
        ChangeInstruction(after=make_state(source_id="1"), platform=Platform.SOURCE),
        ChangeInstruction(after=make_state(source_id="2"), platform=Platform.SOURCE),
        ChangeInstruction(after=make_state(platform_id="3"), platform=Platform.SOURCE),
    ]

    async def run() -> int:
        async with _client(handler) as client:
            return await client.apply_changes(instructions)

    assert asyncio.run(run()) == 1
