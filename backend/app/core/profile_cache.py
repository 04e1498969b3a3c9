"""Profile Cache — TTL cache for profiles looked up while building request contexts.

Invariants:
    - Entries expire `ttl_seconds` after being stored; expired reads are evicted
    - When size exceeds max_entries after a put, every expired entry is pruned,
      then the oldest stored entries are evicted until size == max_entries
    - Re-putting a key makes it the newest entry
    - Callers pass `now` (epoch seconds); the cache never reads the clock
"""

from dataclasses import dataclass
from typing import Any, Hashable


@dataclass
class _Entry:
    value: Any
    expires_at: float


class ProfileCache:
    def __init__(self, ttl_seconds: float = 300, max_entries: int = 100):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: dict[Hashable, _Entry] = {}

    def get(self, key: Hashable, now: float) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if now >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def put(self, key: Hashable, value: Any, now: float) -> None:
        self._entries.pop(key, None)
        self._entries[key] = _Entry(value, now + self.ttl_seconds)
        if len(self._entries) > self.max_entries:
            self.prune(now)
        while len(self._entries) > self.max_entries:
            del self._entries[next(iter(self._entries))]

    def prune(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            del self._entries[key]

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
