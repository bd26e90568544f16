"""Application configuration helpers."""

from __future__ import annotations

from .anilist import AniListConfig, get_anilist_config
from .bangumi import BangumiConfig, get_bangumi_config
from .env import env_flag, env_float, env_int, require_env_var, require_env_vars
from .errors import ConfigurationError, MalformedOverridesError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .overrides import Overrides, load_overrides
from .snapshots import SnapshotConfig, get_snapshot_config
from .storage import StorageConfig, get_http_cache_path, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "AniListConfig",
    "BangumiConfig",
    "CacheConfig",
    "ConfigurationError",
    "MalformedOverridesError",
    "MissingConfigurationError",
    "Overrides",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SnapshotConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_flag",
    "env_float",
    "env_int",
    "get_anilist_config",
    "get_bangumi_config",
    "get_http_cache_path",
    "get_snapshot_config",
    "get_storage_config",
    "get_sync_config",
    "load_overrides",
    "require_env_var",
    "require_env_vars",
]
