from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

CacheKey = Tuple[Hashable, ...]


class QueryCache:
    """
    Read cache for query results, keyed by ``(resource, *filters)``.

    Entries go stale after ``stale_seconds``. Mutations call
    ``invalidate(resource)`` (or a longer key prefix) to drop every entry
    whose key starts with that prefix.
    """

    def __init__(self, stale_seconds: int = 300):
        self.stale_time = timedelta(seconds=stale_seconds)
        self._entries: Dict[CacheKey, Tuple[Any, datetime]] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Optional[Any]:
        """Return cached value if not expired, else None."""
        now = datetime.utcnow()
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                self.misses += 1
                return None
            value, expires_at = entry
            if now >= expires_at:
                self._entries.pop(key, None)
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, key: CacheKey, value: Any) -> None:
        expires_at = datetime.utcnow() + self.stale_time
        with self._lock:
            self._entries[key] = (value, expires_at)

    def get_or_set(self, key: CacheKey, loader: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        return value

    def invalidate(self, *prefix: Hashable) -> int:
        """Drop every entry whose key starts with ``prefix``; returns how many."""
        n = len(prefix)
        with self._lock:
            stale = [key for key in self._entries if key[:n] == prefix]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
