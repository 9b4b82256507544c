"""In-memory TTL caches for computed analytics."""

import time
from typing import Any, Callable, Hashable

PROJECT_ANALYTICS_TTL_S = 300.0
DAILY_USAGE_TTL_S = 180.0
GLOBAL_ANALYTICS_TTL_S = 30.0
RENDER_IDLE_TTL_S = 60.0


class TtlCache:
    """Caches values for a fixed duration from the time they were stored."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def is_fresh(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        return self._clock() - entry[0] < self._ttl

    def get(self, key: Hashable) -> Any | None:
        if not self.is_fresh(key):
            self._entries.pop(key, None)
            return None
        return self._entries[key][1]

    def put(self, key: Hashable, value: Any):
        self._entries[key] = (self._clock(), value)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = compute()
            self.put(key, value)
        return value

    def invalidate(self, key: Hashable):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RenderCache(TtlCache):
    """Display-string cache; entries expire after a period without access."""

    def __init__(self, idle_ttl: float = RENDER_IDLE_TTL_S, clock: Callable[[], float] = time.monotonic):
        super().__init__(idle_ttl, clock)

    def get(self, key: Hashable) -> Any | None:
        value = super().get(key)
        if value is not None:
            # Reading counts as activity
            self.put(key, value)
        return value

    def evict_idle(self) -> int:
        stale = [k for k in self._entries if not self.is_fresh(k)]
        for key in stale:
            del self._entries[key]
        return len(stale)
