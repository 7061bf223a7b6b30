"""Tests for the per-video message cache."""

from datetime import UTC, datetime, timedelta

from ytchat.models.schemas import ChatMessage, SourceVideo
from ytchat.services.message_cache import MessageCache, merge_messages

SOURCE = SourceVideo(url="https://youtu.be/abc12345678", id="abc12345678")
T0 = datetime(2025, 1, 1, tzinfo=UTC)


def message(n: int, message_id: str | None = None) -> ChatMessage:
    return ChatMessage(
        id=message_id or f"m{n}",
        message=f"message {n}",
        author_name="Viewer",
        author_channel_id="UC1",
        timestamp=T0 + timedelta(seconds=n),
        source_video=SOURCE,
    )


class TestMergeMessages:
    """Tests for merge_messages."""

    def test_dedupes_by_id(self):
        merged = merge_messages([message(1), message(2)], [message(2), message(3)])
        assert [m.id for m in merged] == ["m1", "m2", "m3"]

    def test_sorted_by_timestamp(self):
        merged = merge_messages([message(5)], [message(3), message(4)])
        assert [m.id for m in merged] == ["m3", "m4", "m5"]

    def test_bound_keeps_most_recent(self):
        """Past the bound, exactly the newest messages remain, without duplicates."""
        existing = [message(n) for n in range(1, 1501)]
        new = [message(n) for n in range(1001, 2601)]

        merged = merge_messages(existing, new, limit=2000)

        ids = [m.id for m in merged]
        assert len(merged) == 2000
        assert len(set(ids)) == 2000
        assert ids[0] == "m601"
        assert ids[-1] == "m2600"

    def test_default_bound(self):
        merged = merge_messages([], [message(n) for n in range(2100)])
        assert len(merged) == 2000


class TestMessageCache:
    """Tests for MessageCache."""

    def test_merge_and_get(self, clock):
        cache = MessageCache(clock=clock)
        cache.merge("abc12345678", [message(1)], "CONT-2")

        entry = cache.get("abc12345678")

        assert [m.id for m in entry.messages] == ["m1"]
        assert entry.continuation == "CONT-2"

    def test_merge_accumulates(self, clock):
        cache = MessageCache(clock=clock)
        cache.merge("v", [message(1)], "A")
        cache.merge("v", [message(1), message(2)], "B")

        entry = cache.get("v")
        assert [m.id for m in entry.messages] == ["m1", "m2"]
        assert entry.continuation == "B"

    def test_freshness(self, clock):
        cache = MessageCache(clock=clock)
        cache.merge("v", [message(1)], None)

        assert cache.is_fresh("v")
        clock.advance(11)
        assert not cache.is_fresh("v")
        assert cache.get("v") is not None

    def test_expiry(self, clock):
        cache = MessageCache(clock=clock)
        cache.merge("v", [message(1)], None)

        clock.advance(5 * 60)

        assert cache.get("v") is None

    def test_clear_continuation(self, clock):
        cache = MessageCache(clock=clock)
        cache.merge("v", [message(1)], "CONT")

        cache.clear_continuation("v")

        entry = cache.get("v")
        assert entry.continuation is None
        assert len(entry.messages) == 1
