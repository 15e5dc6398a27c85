"""
app/config.py

Application-level configuration helpers.

Every setting is read from the environment (after the project ``.env``
files are loaded) into a frozen dataclass, cached for the process lifetime.
Call ``cache_clear()`` on a getter to re-read after changing the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from db.config import env_bool, env_int, env_str


@dataclass(frozen=True)
class TransitionSchedulerSettings:
    """
    Daily transition job schedule.
    """

    enabled: bool = True
    hour: int = 0
    minute: int = 0
    timezone: str = "UTC"
    misfire_grace_seconds: int = 3600


@dataclass(frozen=True)
class MappingListSettings:
    default_limit: int = 50
    max_limit: int = 500


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    audit_level: str = "INFO"


@lru_cache(maxsize=1)
def get_transition_scheduler_settings() -> TransitionSchedulerSettings:
    """
    Read ``TRANSITION_*`` variables; hour and minute are clamped to a valid
    wall-clock time.
    """

    return TransitionSchedulerSettings(
        enabled=env_bool("TRANSITION_SCHEDULER_ENABLED", True),
        hour=env_int("TRANSITION_HOUR", 0, minimum=0, maximum=23),
        minute=env_int("TRANSITION_MINUTE", 0, minimum=0, maximum=59),
        timezone=env_str("TRANSITION_TIMEZONE", "UTC"),
        misfire_grace_seconds=env_int("TRANSITION_MISFIRE_GRACE_SECONDS", 3600, minimum=1),
    )


@lru_cache(maxsize=1)
def get_mapping_list_settings() -> MappingListSettings:
    default_limit = env_int("MAPPING_PAGE_LIMIT_DEFAULT", 50, minimum=1)
    return MappingListSettings(
        default_limit=default_limit,
        max_limit=env_int("MAPPING_PAGE_LIMIT_MAX", 500, minimum=default_limit),
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(
        level=(env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        audit_level=(env_str("AUDIT_LOG_LEVEL", "INFO") or "INFO").upper(),
    )
