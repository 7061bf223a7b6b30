"""Headless browser token extraction.

The browser process is the one shared mutable resource in the service. It
is owned by ``BrowserManager``, which launches it lazily, lets concurrent
callers await a single in-flight launch, and resets itself when the process
disconnects so the next acquisition relaunches cleanly.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ytchat.config import Settings, get_settings
from ytchat.constants import (
    BROWSER_LAUNCH_ARGS,
    BROWSER_NAVIGATION_TIMEOUT_MS,
    BROWSER_SELECTOR_TIMEOUT_MS,
    CHAT_FRAME_SELECTOR,
    USER_AGENT,
)
from ytchat.models.schemas import SessionTokens
from ytchat.services.youtube.errors import BrowserError, ExtractionError
from ytchat.services.youtube.page import build_tokens, find_continuation, parse_channel_name, parse_title
from ytchat.services.youtube.tokens import TokenExtractor
from ytchat.services.youtube.urls import extract_video_id
from ytchat.utils.cache import TTLCache
from ytchat.utils.metrics import metrics

logger = logging.getLogger(__name__)

Launcher = Callable[[], Awaitable[Browser]]

_READ_YTCFG = "() => (window.ytcfg && (window.ytcfg.data_ || (window.ytcfg.get && window.ytcfg.get()))) || {}"
_READ_INITIAL_DATA = "() => window.ytInitialData || null"


class BrowserState(str, Enum):
    """Lifecycle of the shared browser process."""

    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    READY = "ready"
    DISCONNECTED = "disconnected"


class BrowserManager:
    """Owns the process-wide browser and the tabs opened on it.

    Usage:
        manager = BrowserManager()
        async with manager.page(video_url) as page:
            await page.goto(video_url)
        await manager.close()
    """

    def __init__(self, settings: Settings | None = None, launcher: Launcher | None = None) -> None:
        self.settings = settings or get_settings()
        self._launcher = launcher or self._launch
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._state = BrowserState.UNINITIALIZED
        self._creation: asyncio.Task[Browser] | None = None
        self._generation = 0
        self.active_pages: dict[str, Page] = {}

    @property
    def state(self) -> BrowserState:
        return self._state

    @property
    def creation_in_progress(self) -> bool:
        return self._creation is not None and not self._creation.done()

    async def acquire(self) -> Browser:
        """Return the connected browser, launching it if needed.

        Concurrent callers during a launch all await the same launch.

        Raises:
            BrowserError: When the browser cannot be launched or attached
        """
        if self._browser is not None and self._browser.is_connected():
            return self._browser

        if self._creation is None:
            self._creation = asyncio.create_task(self._create(), name="browser_launch")
        # Shielded so one cancelled caller does not abort the shared launch
        return await asyncio.shield(self._creation)

    async def _create(self) -> Browser:
        generation = self._generation
        self._state = BrowserState.CREATING
        try:
            if self._browser is not None:
                logger.info("Closing disconnected browser before relaunch")
                await self._close_browser(self._browser)
                self._browser = None

            logger.info("Launching headless browser")
            try:
                browser = await self._launcher()
            except Exception as e:
                self._state = BrowserState.DISCONNECTED
                raise BrowserError(f"Failed to start browser: {e}") from e

            if generation != self._generation:
                await self._close_browser(browser)
                raise BrowserError("Browser was reset while launching")

            browser.on("disconnected", self._on_disconnected)
            self._browser = browser
            self._state = BrowserState.READY
            metrics.browser_launches_total.inc()
            return browser
        finally:
            if generation == self._generation:
                self._creation = None

    async def _launch(self) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        if self.settings.browser_debug_url:
            logger.info(f"Attaching to browser at {self.settings.browser_debug_url}")
            return await self._playwright.chromium.connect_over_cdp(self.settings.browser_debug_url)

        return await self._playwright.chromium.launch(
            headless=True,
            executable_path=self.settings.chrome_path,
            args=BROWSER_LAUNCH_ARGS,
            handle_sigint=False,
        )

    def _on_disconnected(self, browser: Browser) -> None:
        if browser is not self._browser:
            return
        logger.warning("Browser disconnected - clearing references")
        self._reset_state(BrowserState.DISCONNECTED)

    def _reset_state(self, state: BrowserState) -> None:
        self._generation += 1
        self._browser = None
        self._creation = None
        self.active_pages.clear()
        metrics.browser_open_tabs.set(0)
        self._state = state

    async def _close_browser(self, browser: Browser) -> None:
        try:
            await browser.close()
        except PlaywrightError as e:
            logger.warning(f"Failed to close browser cleanly: {e}")

    @asynccontextmanager
    async def page(self, url: str) -> AsyncIterator[Page]:
        """Open a tab for ``url``; the tab is closed on every exit path."""
        browser = await self.acquire()
        try:
            tab = await browser.new_page(user_agent=USER_AGENT)
        except PlaywrightError as e:
            if not browser.is_connected():
                self._reset_state(BrowserState.DISCONNECTED)
            raise BrowserError(f"Could not open tab: {e}") from e

        self.active_pages[url] = tab
        metrics.browser_open_tabs.inc()
        try:
            yield tab
        except PlaywrightError:
            if not browser.is_connected():
                logger.warning(f"Browser lost while processing {url}")
                self._reset_state(BrowserState.DISCONNECTED)
            raise
        finally:
            if self.active_pages.get(url) is tab:
                del self.active_pages[url]
                metrics.browser_open_tabs.dec()
            try:
                if not tab.is_closed():
                    await tab.close()
            except PlaywrightError as e:
                logger.debug(f"Error closing tab for {url}: {e}")

    async def force_reset(self) -> dict[str, Any]:
        """Close the browser if possible and clear all tracked state."""
        browser = self._browser
        self._reset_state(BrowserState.UNINITIALIZED)
        if browser is not None:
            logger.info("Force closing browser instance")
            await self._close_browser(browser)
        return {"success": True, "message": "Browser state has been reset"}

    async def close(self) -> None:
        """Release the browser and the Playwright driver. Call at shutdown."""
        await self.force_reset()
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning(f"Failed to stop Playwright: {e}")
            self._playwright = None

    async def debug_state(self) -> dict[str, Any]:
        """Describe the browser and its open tabs."""
        info: dict[str, Any] = {
            "state": self._state.value,
            "browserActive": self._browser is not None and self._browser.is_connected(),
            "browserCreationInProgress": self.creation_in_progress,
            "activeUrls": list(self.active_pages),
            "activePagesCount": len(self.active_pages),
            "tabs": [],
        }
        if self._browser is None:
            return info

        for context in self._browser.contexts:
            for index, tab in enumerate(context.pages, start=1):
                try:
                    title = await tab.title()
                except PlaywrightError:
                    title = "Unknown"
                info["tabs"].append(
                    {"index": index, "url": tab.url or "blank", "title": title, "isClosed": tab.is_closed()}
                )
        return info


class BrowserTokenExtractor(TokenExtractor):
    """Reads ``ytcfg`` and ``ytInitialData`` from a rendered watch page."""

    source = "browser"

    def __init__(
        self,
        manager: BrowserManager,
        cache: TTLCache[str, SessionTokens] | None = None,
        screenshot_dir: Path | None = None,
    ) -> None:
        super().__init__(cache)
        self.manager = manager
        self.screenshot_dir = screenshot_dir

    async def _extract(self, video_url: str, require_chat: bool = True) -> SessionTokens:
        try:
            async with self.manager.page(video_url) as page:
                try:
                    await page.goto(
                        video_url,
                        wait_until="domcontentloaded",
                        timeout=BROWSER_NAVIGATION_TIMEOUT_MS,
                    )
                    await self._wait_for_chat(page, video_url, require_chat)
                    config = await page.evaluate(_READ_YTCFG) or {}
                    initial_data = await page.evaluate(_READ_INITIAL_DATA)
                    html = await page.content()
                except PlaywrightTimeoutError as e:
                    await self._screenshot(page, video_url)
                    raise ExtractionError(f"Timed out loading chat for {video_url}") from e
        except BrowserError as e:
            raise ExtractionError(str(e)) from e
        except PlaywrightError as e:
            raise ExtractionError(f"Browser failed on {video_url}: {e}") from e

        return build_tokens(
            config,
            continuation=find_continuation(initial_data, html),
            raw_page=html,
            title=parse_title(html),
            channel_name=parse_channel_name(html),
        )

    async def _wait_for_chat(self, page: Page, video_url: str, require_chat: bool) -> None:
        """Wait for the chat frame. Ended and regular videos never mount one."""
        try:
            await page.wait_for_selector(CHAT_FRAME_SELECTOR, timeout=BROWSER_SELECTOR_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            if require_chat:
                raise
            logger.debug(f"No chat frame on {video_url}, reading page config anyway")

    async def _screenshot(self, page: Page, video_url: str) -> None:
        if self.screenshot_dir is None:
            return
        name = f"{extract_video_id(video_url) or 'page'}-{int(time.time())}.png"
        path = self.screenshot_dir / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path))
            logger.info(f"Saved debug screenshot to {path}")
        except (PlaywrightError, OSError) as e:
            logger.warning(f"Could not save debug screenshot: {e}")
