from __future__ import annotations

import logging
import sqlite3
from functools import lru_cache

from ytsort.config import AppSettings, load_settings
from ytsort.repositories.database import Database
from ytsort.repositories.response_cache_repository import ResponseCacheRepository
from ytsort.services.sort_session import SortSession

LOGGER = logging.getLogger("ytsort.cache")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_cache_repository() -> ResponseCacheRepository | None:
    settings = get_settings()
    if not settings.cache_enabled:
        return None
    database = Database(settings.db_path)
    try:
        database.initialize()
    except (OSError, sqlite3.Error) as exc:
        LOGGER.warning(
            "response cache unavailable, fetching without it db_path=%s error=%s",
            settings.db_path,
            exc,
        )
        return None
    return ResponseCacheRepository(database)


@lru_cache(maxsize=1)
def get_session() -> SortSession:
    settings = get_settings()
    return SortSession(
        base_url=settings.base_url,
        default_sort_key=settings.default_sort_key,
    )


def reset_cached_dependencies() -> None:
    get_session.cache_clear()
    get_cache_repository.cache_clear()
    get_settings.cache_clear()
