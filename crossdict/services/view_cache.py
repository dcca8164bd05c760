import os
from threading import RLock
from typing import Any, Hashable, Optional, Tuple

from cachetools import TTLCache
from dotenv import load_dotenv

from crossdict.logging_config import setup_logger

load_dotenv()

logger = setup_logger(__name__, "pending.log")

DEFAULT_LOCALE = os.getenv('DEFAULT_LOCALE', 'ru')
PENDING_VIEW_SUFFIX = "/pending"


def pending_view_path(locale: Optional[str] = None) -> str:
    return f"/{locale or DEFAULT_LOCALE}{PENDING_VIEW_SUFFIX}"


class ViewCache:
    """
    Per-path cache of rendered moderation lists.

    Entries are keyed by ``(path, *actor_key)``. Revalidating drops the matching
    entries so the next read recomputes them.
    """

    def __init__(self, maxsize: int = 512, ttl: int = 300):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = RLock()

    def get(self, path: str, key: Tuple[Hashable, ...]) -> Optional[Any]:
        with self._lock:
            return self._cache.get((path, *key))

    def set(self, path: str, key: Tuple[Hashable, ...], value: Any) -> None:
        with self._lock:
            self._cache[(path, *key)] = value

    def revalidate_suffix(self, suffix: str) -> int:
        """Drop every cached path ending in ``suffix``, whatever its locale prefix."""
        with self._lock:
            stale = [k for k in list(self._cache.keys()) if k[0].endswith(suffix)]
            for k in stale:
                self._cache.pop(k, None)
        if stale:
            logger.debug(f"Revalidated *{suffix}: dropped {len(stale)} cached views")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


# One cache per process
pending_views = ViewCache()


def revalidate_pending_views() -> int:
    """The pending list does not depend on the locale, so a change drops it under every locale."""
    return pending_views.revalidate_suffix(PENDING_VIEW_SUFFIX)
