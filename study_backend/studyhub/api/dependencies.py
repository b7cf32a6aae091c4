from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from studyhub.config import get_settings
from studyhub.storage.cache import CoalescingCache
from studyhub.storage.json_store import StudyJsonStore
from studyhub.storage.repository import Repositories, build_repositories


# PUBLIC_INTERFACE
def get_store() -> StudyJsonStore:
    """Return a cached singleton instance of the study JSON store."""
    return _get_store_singleton()


@lru_cache(maxsize=1)
def _get_store_singleton() -> StudyJsonStore:
    """Internal cached constructor for the store, using the configured data file."""
    return StudyJsonStore(path=get_settings().data_file)


@lru_cache(maxsize=1)
def _get_repositories_singleton() -> Repositories:
    settings = get_settings()
    cache = CoalescingCache(max_size=settings.cache_max_entries, default_ttl=settings.cache_ttl_seconds)
    return build_repositories(get_store(), cache)


# PUBLIC_INTERFACE
def get_repositories() -> Repositories:
    """Return the process-wide repositories sharing one store and one cache."""
    return _get_repositories_singleton()


# PUBLIC_INTERFACE
def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """
    Identify the acting user from the X-User-Id header set by the upstream gateway.

    Raises:
        HTTPException 401 if the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    return x_user_id.strip()


# PUBLIC_INTERFACE
def get_today() -> date:
    """Current local date; overridden in tests to pin the calendar."""
    return date.today()
