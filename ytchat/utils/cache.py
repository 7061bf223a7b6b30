"""In-memory TTL caches with an injectable clock.

All cached state (session tokens, chat messages, channel names) is
session-scoped and rebuildable from YouTube, so nothing here is persisted.
Entries expire lazily: an expired entry is dropped on the next access.
"""

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable, Iterator
from typing import Generic, TypeVar

from ytchat.utils.metrics import metrics

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

Clock = Callable[[], float]


class TTLCache(Generic[K, V]):
    """Keyed cache with per-entry TTL and optional LRU size bound.

    Args:
        name: Cache name used in metrics labels
        ttl: Time to live in seconds, measured from the last ``put``
        max_entries: Evict least recently used entries beyond this size
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        max_entries: int | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[K, tuple[V, float]] = OrderedDict()

    def _is_expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at >= self.ttl

    def get(self, key: K) -> V | None:
        """Get value if present and not expired."""
        entry = self._entries.get(key)
        if entry is None:
            metrics.cache_lookups_total.inc(cache=self.name, result="miss")
            return None

        value, stored_at = entry
        if self._is_expired(stored_at):
            del self._entries[key]
            metrics.cache_lookups_total.inc(cache=self.name, result="expired")
            return None

        self._entries.move_to_end(key)
        metrics.cache_lookups_total.inc(cache=self.name, result="hit")
        return value

    def put(self, key: K, value: V) -> None:
        """Store value, resetting its TTL."""
        if key in self._entries:
            del self._entries[key]
        elif self.max_entries is not None:
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)
        self._entries[key] = (value, self._clock())

    def evict(self, key: K) -> bool:
        """Remove an entry. Returns True if it existed."""
        return self._entries.pop(key, None) is not None

    def age(self, key: K) -> float | None:
        """Seconds since the entry was stored, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None or self._is_expired(entry[1]):
            return None
        return self._clock() - entry[1]

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        expired = [k for k, (_, stored_at) in self._entries.items() if self._is_expired(stored_at)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        return list(self._entries.keys())

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and not self._is_expired(entry[1])

    def __len__(self) -> int:
        """Number of entries that have not expired yet."""
        return sum(1 for _, stored_at in self._entries.values() if not self._is_expired(stored_at))

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())
