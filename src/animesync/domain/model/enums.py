"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class SourceKind(StrEnum):
    """Media kinds used by the source catalog (bangumi-data)."""

    MOVIE = "movie"
    OVA = "ova"
    TV = "tv"
    WEB = "web"


class TargetKind(StrEnum):
    """Media kinds used by the target catalog (anime-offline-database)."""

    MOVIE = "MOVIE"
    ONA = "ONA"
    OVA = "OVA"
    SPECIAL = "SPECIAL"
    TV = "TV"
    UNKNOWN = "UNKNOWN"


class SeasonQuarter(StrEnum):
    SPRING = "SPRING"
    SUMMER = "SUMMER"
    FALL = "FALL"
    WINTER = "WINTER"
    UNDEFINED = "UNDEFINED"


class WatchStatus(StrEnum):
    WATCHING = "watching"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"
    PLAN_TO_WATCH = "plan_to_watch"


class Platform(StrEnum):
    """The two collection services; tags which side receives a write."""

    SOURCE = "source"
    TARGET = "target"
