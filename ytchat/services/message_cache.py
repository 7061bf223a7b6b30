"""Per-video chat message cache.

Each entry holds a timestamp-ordered, de-duplicated window of the most
recent messages for one video plus the continuation to resume polling from.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from ytchat.constants import MAX_CACHED_MESSAGES, MESSAGE_CACHE_TTL, MESSAGE_REFRESH_INTERVAL
from ytchat.models.schemas import ChatMessage
from ytchat.utils.cache import Clock, TTLCache


def merge_messages(
    existing: Iterable[ChatMessage],
    new: Iterable[ChatMessage],
    limit: int = MAX_CACHED_MESSAGES,
) -> list[ChatMessage]:
    """Merge new messages into a cached window.

    Messages whose id is already present are dropped, the union is sorted
    by timestamp ascending, and only the newest ``limit`` are kept.
    """
    merged = list(existing)
    seen = {message.id for message in merged}
    for message in new:
        if message.id in seen:
            continue
        seen.add(message.id)
        merged.append(message)

    merged.sort(key=lambda message: message.timestamp)
    if len(merged) > limit:
        merged = merged[-limit:]
    return merged


@dataclass
class MessageCacheEntry:
    messages: list[ChatMessage] = field(default_factory=list)
    continuation: str | None = None


class MessageCache:
    """Message windows keyed by video id.

    Entries expire after ``ttl`` seconds without an update. An entry younger
    than ``refresh_interval`` is served as-is instead of polling again.
    """

    def __init__(
        self,
        ttl: float = MESSAGE_CACHE_TTL,
        refresh_interval: float = MESSAGE_REFRESH_INTERVAL,
        limit: int = MAX_CACHED_MESSAGES,
        clock: Clock | None = None,
    ) -> None:
        kwargs = {"clock": clock} if clock is not None else {}
        self._cache: TTLCache[str, MessageCacheEntry] = TTLCache("messages", ttl=ttl, **kwargs)
        self.refresh_interval = refresh_interval
        self.limit = limit

    def get(self, video_id: str) -> MessageCacheEntry | None:
        return self._cache.get(video_id)

    def is_fresh(self, video_id: str) -> bool:
        """True when the entry was updated within the refresh interval."""
        age = self._cache.age(video_id)
        return age is not None and age < self.refresh_interval

    def merge(self, video_id: str, messages: Iterable[ChatMessage], continuation: str | None) -> MessageCacheEntry:
        """Merge a successful poll into the entry and store its next continuation."""
        current = self._cache.get(video_id)
        existing = current.messages if current is not None else []
        entry = MessageCacheEntry(
            messages=merge_messages(existing, messages, self.limit),
            continuation=continuation,
        )
        self._cache.put(video_id, entry)
        return entry

    def clear_continuation(self, video_id: str) -> None:
        """Forget the stored continuation so the next poll starts from fresh tokens.

        The entry's age is left untouched.
        """
        entry = self._cache.get(video_id)
        if entry is not None:
            entry.continuation = None

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
