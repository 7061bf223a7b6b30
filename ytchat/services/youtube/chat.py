"""Polling of the internal paginated live chat endpoint."""

import logging
from dataclasses import dataclass, field
from typing import Any

from ytchat.constants import LIVE_CHAT_ENDPOINT
from ytchat.models.schemas import SessionTokens
from ytchat.services.youtube.errors import PollError, UpstreamError
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.parsing import dig

logger = logging.getLogger(__name__)

# Tried in order; the first non-empty continuation wins
CONTINUATION_FIELDS = (
    "invalidationContinuationData",
    "timedContinuationData",
    "liveChatReplayContinuationData",
)


@dataclass
class ChatPage:
    """Raw chat items from one poll plus the cursor for the next one."""

    raw_messages: list[dict[str, Any]] = field(default_factory=list)
    next_continuation: str | None = None


def extract_chat_items(actions: list[Any]) -> list[dict[str, Any]]:
    """Flatten chat actions to the item payloads carrying a renderer.

    Replay responses wrap each ``addChatItemAction`` in a
    ``replayChatItemAction``; both shapes are unwrapped.
    """
    items: list[dict[str, Any]] = []
    for action in actions:
        item = dig(action, "addChatItemAction", "item")
        if isinstance(item, dict):
            items.append(item)
            continue
        for replayed in dig(action, "replayChatItemAction", "actions") or []:
            item = dig(replayed, "addChatItemAction", "item")
            if isinstance(item, dict):
                items.append(item)
    return items


def extract_next_continuation(continuations: list[Any] | None) -> str | None:
    """Pick the next continuation: invalidation, then timed, then replay."""
    entries = [c for c in continuations or [] if isinstance(c, dict)]
    for field_name in CONTINUATION_FIELDS:
        for entry in entries:
            token = dig(entry, field_name, "continuation")
            if token:
                return token
    return None


class ChatPoller:
    """Fetches one page of live chat for a continuation token."""

    def __init__(self, client: InnerTubeClient | None = None) -> None:
        self.client = client or InnerTubeClient()

    async def poll(self, tokens: SessionTokens, page_size: int | None = None) -> ChatPage:
        """Fetch raw chat items for the token set's continuation.

        Args:
            tokens: Session tokens; ``continuation`` selects the page
            page_size: Keep only this many of the most recent items

        Raises:
            PollError: When the request fails or the response has no
                continuation envelope (no data yet; retry next cycle)
        """
        if not tokens.has_chat:
            raise PollError("Missing continuation token for live chat fetch")

        try:
            data = await self.client.post(
                LIVE_CHAT_ENDPOINT, {"continuation": tokens.continuation}, tokens
            )
        except UpstreamError as e:
            raise PollError(f"Live chat request failed: {e}") from e

        envelope = dig(data, "continuationContents", "liveChatContinuation")
        if not isinstance(envelope, dict):
            raise PollError("No live chat continuation in response")

        raw_messages = extract_chat_items(envelope.get("actions") or [])
        if page_size is not None and len(raw_messages) > page_size:
            raw_messages = raw_messages[-page_size:]

        next_continuation = extract_next_continuation(envelope.get("continuations"))
        logger.debug(
            f"Fetched {len(raw_messages)} chat items "
            f"(next continuation: {'yes' if next_continuation else 'no'})"
        )
        return ChatPage(raw_messages=raw_messages, next_continuation=next_continuation)
