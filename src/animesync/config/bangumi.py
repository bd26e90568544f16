"""Bangumi configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_BANGUMI_BASE_URL = "https://api.bgm.tv"


@dataclass(frozen=True, slots=True)
class BangumiConfig:
    access_token: str
    resilience: ResilienceConfig
    username: str | None = None


def bangumi_resilience(*, base_url: str = DEFAULT_BANGUMI_BASE_URL) -> ResilienceConfig:
    return ResilienceConfig(
        name="bangumi",
        base_url=base_url,
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        retry=RetryPolicy(total=2, backoff_factor=1.0),
        cache=CacheConfig(backend="sqlite"),
    )


def get_bangumi_config() -> BangumiConfig:
    token = require_env_var("BANGUMI_ACCESS_TOKEN")
    username = os.getenv("BANGUMI_USERNAME") or None
    base_url = os.getenv("BANGUMI_BASE_URL") or DEFAULT_BANGUMI_BASE_URL
    return BangumiConfig(
        access_token=token.strip(),
        resilience=bangumi_resilience(base_url=base_url),
        username=username,
    )
