"""
In-process TTL cache used for read-heavy catalogue lookups.

There is no decorator and no module-level instance: create_app() builds one
CacheBackend and stores it on app.state, and handlers receive it through the
get_course_cache dependency. Call sites wrap their own reads explicitly:

    cached = cache.get(key)
    if cached is None:
        cached = build_value()
        cache.set(key, cached)

Values should be plain data (dicts, lists) — never ORM instances, which are
bound to the session that loaded them.
"""
import threading
from typing import Any, Hashable, Optional

from cachetools import TTLCache
from fastapi import Request


class CacheBackend:
    def __init__(self, ttl_seconds: int, max_entries: int = 512):
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds)
        # TTLCache is not thread-safe; sync endpoints run in a thread pool
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every string key starting with prefix (e.g. all listing pages)."""
        with self._lock:
            for key in [k for k in self._cache if isinstance(k, str) and k.startswith(prefix)]:
                self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


def get_course_cache(request: Request) -> CacheBackend:
    """FastAPI dependency: the cache instance owned by the running app."""
    return request.app.state.course_cache
