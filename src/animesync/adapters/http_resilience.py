"""Rate-limited, retrying async HTTP client."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, CacheOptions, SpecificationPolicy
from hishel.httpx import AsyncCacheClient
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from animesync.config.http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from animesync.config.storage import get_http_cache_path

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        RequestExtensions,
        TimeoutTypes,
        URLTypes,
    )

    from animesync.config.http_resilience import ResponseHook

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retrying",
]

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    follow_redirects: bool | UseClientDefault
    timeout: TimeoutTypes | UseClientDefault
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    event_hooks: dict[str, list[ResponseHook]]
    follow_redirects: bool
    transport: httpx.AsyncBaseTransport


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class _BackoffWait:
    """Exponential backoff with jitter, deferring to ``Retry-After`` when present."""

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy

    def __call__(self, retry_state: RetryCallState) -> float:
        policy = self.policy
        outcome = retry_state.outcome
        if policy.respect_retry_after_header and outcome is not None and not outcome.failed:
            retry_after = _retry_after_seconds(outcome.result())
            if retry_after is not None:
                return min(retry_after, policy.max_backoff_wait)
        backoff = policy.backoff_factor * 2 ** (retry_state.attempt_number - 1)
        backoff += random.uniform(0, policy.backoff_jitter) * policy.backoff_factor
        return min(backoff, policy.max_backoff_wait)


def _last_outcome(retry_state: RetryCallState) -> httpx.Response:
    # hand back the final response once retries run out; a final exception re-raises
    outcome = retry_state.outcome
    if outcome is None:
        raise RuntimeError("Retry stopped before any attempt finished")
    return outcome.result()


def build_retrying(policy: RetryPolicy, method: str) -> AsyncRetrying:
    """Retry strategy for one request; non-idempotent-listed methods get a single attempt."""

    attempts = policy.total + 1 if method.upper() in policy.allowed_methods else 1
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=_BackoffWait(policy),
        retry=(
            retry_if_exception_type(policy.retry_on_exceptions)
            | retry_if_result(lambda response: response.status_code in policy.status_forcelist)
        ),
        retry_error_callback=_last_outcome,
        reraise=True,
    )


class ResilientClient:
    """``httpx.AsyncClient`` behind a rate limiter, request retries and an HTTP cache.

    Every attempt, retries included, takes a limiter slot. ``transport``
    replaces the network transport underneath the cache; tests pass an
    ``httpx.MockTransport``.
    """

    def __init__(
        self, config: ResilienceConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        client_kwargs: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "headers": config.headers(),
            "follow_redirects": True,
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.response_hooks:
            client_kwargs["event_hooks"] = {"response": list(config.response_hooks)}
        if transport is not None:
            client_kwargs["transport"] = transport

        storage = _build_cache_storage(config.cache)
        self._client: httpx.AsyncClient
        if storage is not None:
            # only a private cache stores responses to requests carrying Authorization
            policy = SpecificationPolicy(cache_options=CacheOptions(shared=False))
            self._client = AsyncCacheClient(**client_kwargs, storage=storage, policy=policy)
        else:
            self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        retrying = build_retrying(self.config.retry, method)
        return await retrying(self._send, do_request)

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def head(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("HEAD", url, **kwargs)

    async def post(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def patch(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()


def _build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None or not config.enabled:
        return None

    if config.backend not in {"sqlite", "memory"}:
        msg = f"Unsupported cache backend: {config.backend}"
        raise ValueError(msg)

    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_http_cache_path())
    else:
        database_path = ":memory:"
    log.debug("HTTP cache for %s at %s", config.backend, database_path)
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )
