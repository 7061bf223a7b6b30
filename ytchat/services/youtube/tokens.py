"""Session token extraction with a per-URL cache.

Two sources share the caching contract: ``DirectTokenExtractor`` parses the
raw watch page, ``BrowserTokenExtractor`` (see ``browser.py``) reads the same
objects from a rendered page when static fetching is blocked.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ytchat.constants import TOKEN_CACHE_TTL
from ytchat.models.schemas import SessionTokens
from ytchat.services.youtube.errors import ExtractionError, UpstreamError
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.page import tokens_from_page
from ytchat.utils.cache import TTLCache
from ytchat.utils.secrets import mask_secret

logger = logging.getLogger(__name__)


def create_token_cache(**kwargs) -> TTLCache[str, SessionTokens]:
    """Token cache keyed by source URL (URL variants of one video differ)."""
    return TTLCache("tokens", ttl=TOKEN_CACHE_TTL, **kwargs)


class TokenExtractor(ABC):
    """Cache-or-fetch session token extraction.

    Only token sets with a non-empty continuation are cached. Concurrent
    callers for the same URL share one extraction.
    """

    source = "unknown"

    def __init__(self, cache: TTLCache[str, SessionTokens] | None = None) -> None:
        self.cache = cache if cache is not None else create_token_cache()
        # url -> (lock, number of callers holding or waiting on it)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @asynccontextmanager
    async def _url_lock(self, video_url: str) -> AsyncIterator[None]:
        lock, users = self._locks.get(video_url, (asyncio.Lock(), 0))
        self._locks[video_url] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[video_url]
            if users == 1:
                del self._locks[video_url]
            else:
                self._locks[video_url] = (lock, users - 1)

    async def extract(self, video_url: str, *, require_chat: bool = True) -> SessionTokens:
        """Get session tokens for a video URL.

        Args:
            video_url: Watch page URL, used verbatim as the cache key
            require_chat: Fail when the page has no live chat continuation.
                Metadata lookups pass False; such token sets are not cached.

        Raises:
            ExtractionError: When the page cannot be loaded or, with
                ``require_chat``, no continuation token can be found
        """
        cached = self.cache.get(video_url)
        if cached is not None:
            logger.debug(f"Using cached tokens for {video_url}")
            return cached

        async with self._url_lock(video_url):
            cached = self.cache.get(video_url)
            if cached is not None:
                return cached

            logger.info(f"Extracting tokens for {video_url} via {self.source}")
            tokens = await self._extract(video_url, require_chat)

            if not tokens.api_key:
                raise ExtractionError(f"No API key found on page {video_url}")

            if tokens.has_chat:
                self.cache.put(video_url, tokens)
                logger.info(
                    f"Extracted tokens for {video_url} "
                    f"(key={mask_secret(tokens.api_key)}, client={tokens.client_version})"
                )
            elif require_chat:
                raise ExtractionError(f"No live chat continuation found for {video_url}")
            else:
                logger.debug(f"No chat continuation for {video_url}, tokens not cached")

        return tokens

    def invalidate(self, video_url: str) -> None:
        """Drop cached tokens so the next call re-extracts."""
        self.cache.evict(video_url)

    @abstractmethod
    async def _extract(self, video_url: str, require_chat: bool = True) -> SessionTokens:
        """Obtain a fresh token set. Must raise ExtractionError on failure."""


class DirectTokenExtractor(TokenExtractor):
    """Extracts tokens by fetching and parsing the raw watch page HTML."""

    source = "direct"

    def __init__(
        self,
        client: InnerTubeClient | None = None,
        cache: TTLCache[str, SessionTokens] | None = None,
    ) -> None:
        super().__init__(cache)
        self.client = client or InnerTubeClient()

    async def _extract(self, video_url: str, require_chat: bool = True) -> SessionTokens:
        try:
            html = await self.client.fetch_html(video_url)
        except UpstreamError as e:
            raise ExtractionError(f"Failed to fetch page {video_url}: {e}") from e
        return tokens_from_page(html)
