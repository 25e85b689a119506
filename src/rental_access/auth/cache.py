"""
rental_access.auth.cache

Bounded in-process LRU cache with per-entry expiry.

Responsibilities:
- Hold resolved user roles (`user_role:<subject>`) to avoid a DB lookup per request.
- Evict the least-recently-used entry when full; treat expired reads as misses.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


class CacheTTL:
    # Milliseconds.
    PROPERTIES_LIST = 60 * 1000
    PROPERTY_DETAIL = 2 * 60 * 1000
    STATIC_CONTENT = 10 * 60 * 1000
    USER_ROLE = 15 * 60 * 1000


DEFAULT_CAPACITY = 100


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Any
    expires_at: float


class LRUCache:
    """
    Least-recently-used cache. `get` counts as a touch; `set` on an existing key
    replaces the entry and makes it most-recent.

    `None` is reserved as the miss marker, so it cannot be stored as a value.
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def set(self, key: str, value: Any, ttl_ms: float) -> None:
        if value is None:
            raise ValueError("None cannot be cached")
        entry = _Entry(value=value, expires_at=self._clock() + ttl_ms)
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._capacity:
                self._entries.popitem(last=False)
            self._entries[key] = entry

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate(self, pattern: str | None = None) -> None:
        with self._lock:
            if not pattern:
                self._entries.clear()
                return
            for key in [k for k in self._entries if pattern in k]:
                del self._entries[key]

    def size(self) -> int:
        # Includes entries that expired but have not been read since.
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()


def role_cache_key(subject_id: str) -> str:
    return f"user_role:{subject_id}"


# --- Module Notes -----------------------------------------------------------
# One instance is built in the app factory and injected into the identity resolver;
# tests construct their own with a fake clock.
