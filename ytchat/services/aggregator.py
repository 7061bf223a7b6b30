"""Aggregation of live chat and metadata across several videos.

Per-video work runs concurrently and each video's failure is isolated into
an ``errors`` entry, so one broken URL never hides the others' results.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any

from ytchat.config import Settings, get_settings
from ytchat.constants import DEFAULT_PAGE_SIZE, DEFAULT_SNAPSHOT_PAGE_SIZE
from ytchat.models.schemas import (
    ChannelLiveVideosResponse,
    ChatMessage,
    LiveChatResponse,
    LiveChatSnapshotResponse,
    SourceVideo,
    VideoMetadata,
    VideoMetadataResponse,
    VideoRef,
    ensure_utc,
)
from ytchat.services.message_cache import MessageCache
from ytchat.services.youtube.browser import BrowserManager, BrowserTokenExtractor
from ytchat.services.youtube.channels import ChannelLiveVideosService
from ytchat.services.youtube.chat import ChatPoller
from ytchat.services.youtube.errors import ExtractionError, PollError
from ytchat.services.youtube.formatters import normalize_messages
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.metadata import MetadataFetcher
from ytchat.services.youtube.tokens import DirectTokenExtractor, TokenExtractor
from ytchat.services.youtube.urls import parse_video_url
from ytchat.utils.logging import LogContext

logger = logging.getLogger(__name__)


def split_urls(urls: Iterable[str]) -> tuple[list[VideoRef], list[str]]:
    """Validate URLs before any network work.

    Returns the distinct videos to process and an error string per
    unusable URL. Two URLs for the same video are processed once.
    """
    refs: list[VideoRef] = []
    errors: list[str] = []
    seen: set[str] = set()
    for url in urls:
        ref = parse_video_url(url)
        if ref is None:
            errors.append(f"Invalid YouTube URL: {url}")
        elif ref.video_id not in seen:
            seen.add(ref.video_id)
            refs.append(ref)
    return refs, errors


def filter_messages(
    messages: Iterable[ChatMessage],
    after: datetime | None = None,
    exclude_ids: Iterable[str] = (),
) -> list[ChatMessage]:
    """Drop already-seen ids and anything not strictly after the cursor.

    The result is de-duplicated by id and sorted oldest first.
    """
    cursor = ensure_utc(after) if after is not None else None
    skip = set(exclude_ids)
    result: list[ChatMessage] = []
    for message in messages:
        if message.id in skip:
            continue
        if cursor is not None and not message.timestamp > cursor:
            continue
        skip.add(message.id)
        result.append(message)
    result.sort(key=lambda message: message.timestamp)
    return result


class LiveChatService:
    """Entry points behind the HTTP API.

    Usage:
        service = LiveChatService(DirectTokenExtractor())
        response = await service.get_live_chat(["https://youtu.be/..."], page_size=20)
    """

    def __init__(
        self,
        extractor: TokenExtractor,
        client: InnerTubeClient | None = None,
        message_cache: MessageCache | None = None,
        metadata_fetcher: MetadataFetcher | None = None,
        channels: ChannelLiveVideosService | None = None,
        browser: BrowserManager | None = None,
    ) -> None:
        if client is None:
            client = InnerTubeClient()
        self.extractor = extractor
        self.poller = ChatPoller(client)
        self.messages = message_cache if message_cache is not None else MessageCache()
        self.metadata = metadata_fetcher if metadata_fetcher is not None else MetadataFetcher(extractor, client)
        self.channels = channels if channels is not None else ChannelLiveVideosService(client)
        self.browser = browser

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    async def _video_messages(
        self, ref: VideoRef, poll_size: int | None = None
    ) -> tuple[list[ChatMessage], str | None]:
        """Cached-or-polled messages for one video, plus an error if it failed.

        ``poll_size`` keeps only that many of the newest items from a fresh poll.
        """
        log = LogContext(logger, video=ref.video_id)
        entry = self.messages.get(ref.video_id)
        if entry is not None and self.messages.is_fresh(ref.video_id):
            log.debug(f"Serving {len(entry.messages)} cached messages")
            return entry.messages, None

        try:
            tokens = await self.extractor.extract(ref.url)
        except ExtractionError as e:
            log.warning(f"Token extraction failed: {e}")
            return [], f"Failed to get chat for {ref.url}: {e}"

        if entry is not None and entry.continuation:
            tokens = tokens.model_copy(update={"continuation": entry.continuation})

        try:
            page = await self.poller.poll(tokens, poll_size)
        except PollError as e:
            # Next cycle restarts from freshly scraped tokens
            log.warning(f"Chat poll failed: {e}")
            self.messages.clear_continuation(ref.video_id)
            self.extractor.invalidate(ref.url)
            return (entry.messages if entry is not None else []), None

        source = SourceVideo(url=ref.url, id=ref.video_id, title=tokens.title)
        fresh = normalize_messages(page.raw_messages, source)
        entry = self.messages.merge(ref.video_id, fresh, page.next_continuation)
        log.debug(f"Polled {len(fresh)} messages, {len(entry.messages)} cached")
        return entry.messages, None

    async def _collect(
        self, urls: list[str], poll_size: int | None = None
    ) -> tuple[list[ChatMessage], list[str]]:
        refs, errors = split_urls(urls)
        results = await asyncio.gather(*(self._video_messages(ref, poll_size) for ref in refs))

        messages: list[ChatMessage] = []
        for video_messages, error in results:
            messages.extend(video_messages)
            if error:
                errors.append(error)
        return messages, errors

    async def get_live_chat(
        self,
        urls: list[str],
        page_size: int | None = None,
        after: datetime | None = None,
        message_ids: Iterable[str] = (),
    ) -> LiveChatResponse:
        """Incremental polling: the oldest ``page_size`` new messages and a cursor.

        ``last_timestamp`` is the timestamp of the last returned message;
        passing it back as ``after`` continues where this page stopped.
        """
        page_size = page_size or DEFAULT_PAGE_SIZE
        messages, errors = await self._collect(urls)
        filtered = filter_messages(messages, after, message_ids)

        page = filtered[:page_size]
        return LiveChatResponse(
            messages=page,
            errors=errors,
            has_more=len(filtered) > page_size,
            last_timestamp=page[-1].timestamp if page else None,
        )

    async def get_live_chat_snapshot(
        self,
        urls: list[str],
        page_size: int | None = None,
        after: datetime | None = None,
        message_ids: Iterable[str] = (),
    ) -> LiveChatSnapshotResponse:
        """Snapshot: the most recent ``page_size`` messages across all videos."""
        page_size = page_size or DEFAULT_SNAPSHOT_PAGE_SIZE
        messages, errors = await self._collect(urls, poll_size=page_size)
        filtered = filter_messages(messages, after, message_ids)

        page = filtered[-page_size:]
        return LiveChatSnapshotResponse(
            messages=page,
            errors=errors,
            total_messages=len(page),
            timestamp=datetime.now(UTC),
        )

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    async def get_video_metadata(self, urls: list[str]) -> VideoMetadataResponse:
        refs, errors = split_urls(urls)
        results: list[VideoMetadata] = await asyncio.gather(
            *(self.metadata.get_metadata(ref.url) for ref in refs)
        )
        for metadata in results:
            if metadata.error:
                errors.append(f"Failed to fetch metadata from {metadata.video_url}: {metadata.error}")
        return VideoMetadataResponse(metadata=list(results), errors=errors)

    async def get_channel_live_videos(self, channel_url: str) -> ChannelLiveVideosResponse:
        return await self.channels.get_channel_live_videos(channel_url)

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    async def debug_state(self) -> dict[str, Any]:
        state: dict[str, Any] = {
            "tokenSource": self.extractor.source,
            "tokenCacheKeys": self.extractor.cache.keys(),
            "cachedVideos": len(self.messages),
        }
        if self.browser is not None:
            state["browser"] = await self.browser.debug_state()
        return state

    async def reset(self) -> dict[str, Any]:
        """Drop cached tokens and messages and reset the browser, if any."""
        self.extractor.cache.clear()
        self.messages.clear()
        if self.browser is not None:
            return await self.browser.force_reset()
        return {"success": True, "message": "Caches have been cleared"}

    async def close(self) -> None:
        if self.browser is not None:
            await self.browser.close()


def build_live_chat_service(settings: Settings) -> LiveChatService:
    """Wire the service with the token source selected in settings."""
    if settings.uses_browser:
        browser = BrowserManager(settings)
        extractor: TokenExtractor = BrowserTokenExtractor(
            browser, screenshot_dir=settings.browser_screenshot_dir
        )
        logger.info("Using headless browser token extraction")
        return LiveChatService(extractor, browser=browser)

    logger.info("Using direct page token extraction")
    return LiveChatService(DirectTokenExtractor())


@lru_cache
def get_live_chat_service() -> LiveChatService:
    """Get the process-wide service instance."""
    return build_live_chat_service(get_settings())
