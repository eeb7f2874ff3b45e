"""In-process cache with per-entry expiry."""

from __future__ import annotations

import time
from typing import Any, Callable


class MemoryCache:
    """Dictionary cache honouring the :class:`~lib_dynamic_config.application.ports.Cache` port.

    ``ttl`` is in seconds; ``0`` keeps the entry until deleted. Expired entries
    are dropped lazily on read.

    >>> cache = MemoryCache()
    >>> cache.set("config", {"name": "demo"})
    True
    >>> cache.get("config")
    {'name': 'demo'}
    >>> cache.delete("config"), cache.get("config")
    (True, None)
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, float | None]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        expires_at = self._clock() + ttl if ttl > 0 else None
        self._entries[key] = (value, expires_at)
        return True

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def flush(self) -> None:
        self._entries.clear()
