"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal

import httpx

from animesync import __version__

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    ResponseHook = Callable[[httpx.Response], Awaitable[None] | None]

DEFAULT_USER_AGENT: Final[str] = f"animesync/{__version__}"


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Request-level retry behaviour handed to ``tenacity``.

    ``total`` counts retries, not attempts. A ``Retry-After`` header on a
    retryable response overrides the exponential backoff, capped at
    ``max_backoff_wait``.
    """

    total: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS", "POST", "PATCH", "PUT"})
    status_forcelist: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Private HTTP cache in front of a client.

    Stored responses are revalidated with their ``ETag`` once stale. With the
    sqlite backend and no ``sqlite_path`` the cache lives in the data dir and
    survives between runs.
    """

    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = True


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = field(default_factory=CacheConfig)
    response_hooks: tuple[ResponseHook, ...] = ()
    default_headers: Mapping[str, str] | None = None
    user_agent: str = DEFAULT_USER_AGENT

    def headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.default_headers:
            headers.update(self.default_headers)
        return headers
