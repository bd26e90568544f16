"""Errors raised while reading settings and user override files."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """A required environment variable (usually an access token) is absent or blank."""


class MalformedOverridesError(ConfigurationError):
    def __init__(self, path: Path, what: str) -> None:
        super().__init__(f"Malformed {what} file {path}")
        self.path = path
