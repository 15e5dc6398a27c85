"""
db/config.py

Environment readers and database settings shared by the app, Alembic and
the transition CLI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_DRIVER_PREFIXES = ("postgres://", "postgresql://")
_PSYCOPG_PREFIX = "postgresql+psycopg://"


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    return key, value.strip("'\"")


@lru_cache(maxsize=1)
def load_env_files() -> tuple[str, ...]:
    """
    Load ``.env`` then ``.env.local`` from the project root, once.

    Values already in the process environment are never overwritten.
    Returns the names of the files that were read.
    """

    loaded: list[str] = []
    for filename in ENV_FILES:
        env_path = PROJECT_ROOT / filename
        if not env_path.is_file():
            continue
        loaded.append(filename)
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)
    return tuple(loaded)


def env_str(name: str, default: str | None = None) -> str | None:
    load_env_files()
    value = (os.getenv(name) or "").strip()
    return value or default


def env_bool(name: str, default: bool) -> bool:
    value = env_str(name)
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


def env_int(name: str, default: int, *, minimum: int | None = None, maximum: int | None = None) -> int:
    """
    Read an integer, falling back to ``default`` when unset or unparsable and
    clamping into ``[minimum, maximum]`` when bounds are given.
    """

    raw_value = env_str(name)
    try:
        value = int(raw_value) if raw_value is not None else default
    except ValueError:
        value = default
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def normalize_postgres_url(url: str) -> str:
    """Point bare postgres URLs at the psycopg 3 driver."""
    for prefix in _DRIVER_PREFIXES:
        if url.startswith(prefix):
            return _PSYCOPG_PREFIX + url[len(prefix):]
    return url


def resolve_database_url() -> str:
    """
    Resolve the mapping database URL.

    ``DATABASE_URL`` wins; otherwise ``CLOUD_DATABASE_URL`` when
    ``ENVIRONMENT`` names a deployed stage, then ``LOCAL_DATABASE_URL``.
    """

    environment = (env_str("ENVIRONMENT", "local") or "local").lower()
    candidates = ["DATABASE_URL"]
    if environment in {"prod", "production", "staging", "cloud"}:
        candidates.append("CLOUD_DATABASE_URL")
    candidates.append("LOCAL_DATABASE_URL")

    for name in candidates:
        url = env_str(name)
        if url:
            return normalize_postgres_url(url)

    raise RuntimeError(
        "No database URL configured for sector mappings. Set DATABASE_URL, or "
        "configure LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
    url = resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")
    return DatabaseSettings(
        url=url,
        echo=env_bool("SQL_ECHO", False),
        pool_size=env_int("DB_POOL_SIZE", 5, minimum=1),
        max_overflow=env_int("DB_MAX_OVERFLOW", 10, minimum=0),
        pool_recycle_seconds=env_int("DB_POOL_RECYCLE", 1800, minimum=-1),
    )
