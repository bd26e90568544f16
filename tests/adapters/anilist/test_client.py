from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from animesync.adapters.anilist import AniListAPIError, AniListClient
from animesync.config import AniListConfig
from animesync.config.anilist import anilist_resilience
from animesync.domain.model import ChangeInstruction, Platform, WatchStatus
from tests.helpers.catalog import make_state
from tests.helpers.http import make_client_factory

CONFIG = AniListConfig(access_token="token", resilience=anilist_resilience())


def _list_item(media_id: int, status: str = "CURRENT", **extra: object) -> dict[str, object]:
    item: dict[str, object] = {
        "mediaId": media_id,
        "status": status,
        "score": 7.5,
        "progress": 4,
        "notes": None,
        "updatedAt": 1700000000,
        "completedAt": {"year": None, "month": None, "day": None},
        "media": {
            "id": media_id,
            "idMal": media_id + 1000,
            "episodes": 12,
            "title": {"romaji": "Romaji", "english": None, "native": "ネイティブ"},
        },
    }
    item.update(extra)
    return item


class GraphQLServer:
    def __init__(self) -> None:
        self.bodies: list[dict[str, object]] = []
        self.headers: list[httpx.Headers] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.bodies.append(body)
        self.headers.append(request.headers)
        query = str(body["query"])
        variables = body["variables"]
        if "MediaIdByMal" in query:
            if variables["idMal"] == 52991:
                return httpx.Response(200, json={"data": {"Media": {"id": 154587}}})
            errors = [{"message": "Not Found.", "status": 404}]
            return httpx.Response(404, json={"data": {"Media": None}, "errors": errors})
        if "Viewer" in query:
            return httpx.Response(200, json={"data": {"Viewer": {"id": 42, "name": "neko"}}})
        if "mediaList" in query:
            page = variables["page"]
            items = [_list_item(1), _list_item(2, "REPEATING")] if page == 1 else [_list_item(3)]
            return httpx.Response(
                200,
                json={
                    "data": {
                        "Page": {
                            "pageInfo": {"hasNextPage": page == 1, "currentPage": page},
                            "mediaList": items,
                        }
                    }
                },
            )
        if "SaveMediaListEntry" in query:
            if variables["mediaId"] == 500:
                return httpx.Response(
                    404, json={"data": None, "errors": [{"message": "Not Found.", "status": 404}]}
                )
            return httpx.Response(200, json={"data": {"SaveMediaListEntry": {"id": 1}}})
        return httpx.Response(
            200,
            json={
                "data": {
                    "Page": {
                        "media": [
                            {
                                "id": 9,
                                "idMal": 19,
                                "synonyms": None,
                                "title": {"romaji": "Hit", "english": "Hit EN"},
                            }
                        ]
                    }
                }
            },
        )


def _run(server, call):
    async def run():
        async with AniListClient(CONFIG, client_factory=make_client_factory(server)) as client:
            return await call(client)

    return asyncio.run(run())


def test_fetch_collection_follows_pages() -> None:
    server = GraphQLServer()

    entries = _run(server, lambda client: client.fetch_collection())

    assert [entry.platform_id for entry in entries] == ["1", "2", "3"]
    assert entries[0].target_id == "1001"
    assert entries[0].title == "ネイティブ"
    assert entries[0].status is WatchStatus.WATCHING
    assert entries[1].status is WatchStatus.COMPLETED
    assert entries[0].updated_at is not None
    assert [body["variables"].get("page") for body in server.bodies[1:]] == [1, 2]
    assert server.bodies[1]["variables"]["userId"] == 42
    assert all(headers["Authorization"] == "Bearer token" for headers in server.headers)


def test_search_media_returns_payloads() -> None:
    server = GraphQLServer()

    media = _run(server, lambda client: client.search_media("Hit"))

    assert [item.id for item in media] == [9]
    assert media[0].synonyms == []
    assert server.bodies[0]["variables"] == {"search": "Hit", "perPage": 10}


def test_graphql_errors_raise() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"data": None, "errors": [{"message": "Invalid token", "status": 400}]}
        )

    with pytest.raises(AniListAPIError) as exc:
        _run(handler, lambda client: client.viewer_id())

    assert exc.value.status == 400


def test_unparsable_body_raises_status_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(httpx.HTTPStatusError):
        _run(handler, lambda client: client.viewer_id())


def test_apply_changes_sends_mutation_variables() -> None:
    server = GraphQLServer()
    entry = make_state(WatchStatus.ON_HOLD, watched=5, score=7.5, platform_id="77", comment=None)
    instructions = [
        ChangeInstruction(after=entry, platform=Platform.TARGET),
        ChangeInstruction(after=make_state(platform_id="500"), platform=Platform.TARGET),
        ChangeInstruction(after=make_state(source_id="1"), platform=Platform.TARGET),
        ChangeInstruction(after=make_state(platform_id="8"), platform=Platform.SOURCE),
    ]

    applied = _run(server, lambda client: client.apply_changes(instructions, sync_comments=True))

    assert applied == 1
    assert server.bodies[0]["variables"] == {
        "mediaId": 77,
        "status": "PAUSED",
        "scoreRaw": 75,
        "progress": 5,
        "notes": "",
    }
    assert len(server.bodies) == 2


def test_low_rate_limit_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"x-ratelimit-remaining": "2"},
            json={"data": {"Viewer": {"id": 1}}},
        )

    with caplog.at_level(logging.WARNING, logger="animesync.adapters.anilist.client"):
        assert _run(handler, lambda client: client.viewer_id()) == 1

    assert "rate limit nearly exhausted" in caplog.text


def test_missing_media_id_is_looked_up_by_mal_id() -> None:
    server = GraphQLServer()
    known = make_state(WatchStatus.COMPLETED, watched=28, target_id="52991", title="Frieren")
    unknown = make_state(target_id="1", title="Nowhere")
    instructions = [
        ChangeInstruction(after=known, platform=Platform.TARGET),
        ChangeInstruction(after=unknown, platform=Platform.TARGET),
    ]

    applied = _run(server, lambda client: client.apply_changes(instructions))

    assert applied == 1
    assert known.platform_id == "154587"
    assert unknown.platform_id is None
    assert [body["variables"] for body in server.bodies] == [
        {"idMal": 52991},
        {"mediaId": 154587, "status": "COMPLETED", "scoreRaw": 0, "progress": 28},
        {"idMal": 1},
    ]
