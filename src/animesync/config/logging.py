"""Shared logging helpers for animesync."""

from __future__ import annotations

import logging
import os

_LEVEL_ENV = "ANIMESYNC_LOG_LEVEL"


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the
    level defaults to ``ANIMESYNC_LOG_LEVEL`` (or INFO) and the format is terse
    enough for CLI output. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else _level_from_environment(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # one line per request is noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _level_from_environment() -> int:
    name = (os.getenv(_LEVEL_ENV) or "INFO").strip().upper()
    level = logging.getLevelNamesMapping().get(name)
    return level if level is not None else logging.INFO
