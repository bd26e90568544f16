"""AniList configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_ANILIST_BASE_URL = "https://graphql.anilist.co"


@dataclass(frozen=True, slots=True)
class AniListConfig:
    access_token: str
    resilience: ResilienceConfig


def anilist_resilience(*, base_url: str = DEFAULT_ANILIST_BASE_URL) -> ResilienceConfig:
    return ResilienceConfig(
        name="anilist",
        base_url=base_url,
        ratelimit=RateLimit(max_calls=30, per_seconds=60.0),
        retry=RetryPolicy(total=7, backoff_factor=1.0, max_backoff_wait=120.0),
        default_headers={"Accept": "application/json"},
        # GraphQL goes over POST, which is never cached
        cache=None,
    )


def get_anilist_config() -> AniListConfig:
    token = require_env_var("ANILIST_ACCESS_TOKEN")
    base_url = os.getenv("ANILIST_BASE_URL") or DEFAULT_ANILIST_BASE_URL
    return AniListConfig(
        access_token=token.strip(), resilience=anilist_resilience(base_url=base_url)
    )
