"""Discovery of the currently live videos on a channel."""

import html as html_lib
import logging
import re
from collections.abc import Iterator
from typing import Any

from ytchat.constants import CHANNEL_VIDEOS_CACHE_TTL
from ytchat.models.schemas import ChannelLiveVideo, ChannelLiveVideosResponse
from ytchat.services.youtube.errors import UpstreamError
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.page import parse_initial_data
from ytchat.services.youtube.parsing import best_thumbnail, dig, parse_count, text_of
from ytchat.services.youtube.urls import extract_channel_id, watch_url
from ytchat.utils.cache import TTLCache

logger = logging.getLogger(__name__)

_OG_TITLE = re.compile(r'<meta\s+property="og:title"\s+content="([^"]*)"', re.IGNORECASE)

VIDEO_RENDERER_KEYS = ("videoRenderer", "gridVideoRenderer")
TAB_PREFERENCE = ("Live", "Videos")


def create_channel_videos_cache(**kwargs) -> TTLCache[str, list[ChannelLiveVideo]]:
    """Live video lists keyed by channel id."""
    return TTLCache("channel_videos", ttl=CHANNEL_VIDEOS_CACHE_TTL, **kwargs)


def streams_url(channel_url: str) -> str:
    """Listing URL for a channel's live and past streams."""
    base = channel_url.split("?", 1)[0].split("#", 1)[0]
    return f"{base.rstrip('/')}/streams"


def parse_og_title(html: str) -> str | None:
    match = _OG_TITLE.search(html)
    if match:
        return html_lib.unescape(match.group(1)).strip() or None
    return None


# =============================================================================
# Tabs and renderers
# =============================================================================


def _tabs(initial_data: Any) -> list[dict[str, Any]]:
    tabs = dig(initial_data, "contents", "twoColumnBrowseResultsRenderer", "tabs") or []
    return [tab["tabRenderer"] for tab in tabs if isinstance(dig(tab, "tabRenderer"), dict)]


def select_tab(initial_data: Any) -> dict[str, Any] | None:
    """Pick the tab to read: selected, then "Live", then "Videos", then any with content."""
    tabs = [tab for tab in _tabs(initial_data) if tab.get("content")]
    if not tabs:
        return None

    for tab in tabs:
        if tab.get("selected"):
            return tab
    for title in TAB_PREFERENCE:
        for tab in tabs:
            if (tab.get("title") or "").lower() == title.lower():
                return tab
    return tabs[0]


def iter_video_renderers(node: Any) -> Iterator[dict[str, Any]]:
    """Yield every video renderer under grid, shelf and rich-grid containers."""
    if isinstance(node, list):
        for child in node:
            yield from iter_video_renderers(child)
    elif isinstance(node, dict):
        for key, value in node.items():
            if key in VIDEO_RENDERER_KEYS and isinstance(value, dict):
                yield value
            elif isinstance(value, (dict, list)):
                yield from iter_video_renderers(value)


def is_live_renderer(renderer: dict[str, Any]) -> bool:
    """Detect a live-now video from its badges, overlays or view text."""
    for badge in renderer.get("badges") or []:
        badge = dig(badge, "metadataBadgeRenderer") or {}
        if badge.get("style") == "BADGE_STYLE_TYPE_LIVE_NOW" or (badge.get("label") or "").upper() == "LIVE":
            return True

    for overlay in renderer.get("thumbnailOverlays") or []:
        status = dig(overlay, "thumbnailOverlayTimeStatusRenderer") or {}
        if status.get("style") == "LIVE":
            return True
        if (dig(status, "text", "accessibility", "accessibilityData", "label") or "").upper() == "LIVE":
            return True

    view_text = text_of(renderer.get("viewCountText")) or text_of(renderer.get("shortViewCountText"))
    return "watching" in view_text.lower()


def to_live_video(renderer: dict[str, Any], channel_name: str) -> ChannelLiveVideo | None:
    video_id = renderer.get("videoId")
    if not video_id:
        return None
    view_text = text_of(renderer.get("viewCountText")) or text_of(renderer.get("shortViewCountText"))
    return ChannelLiveVideo(
        video_id=video_id,
        video_url=watch_url(video_id),
        title=text_of(renderer.get("title")) or "Live Stream",
        thumbnail_url=best_thumbnail(dig(renderer, "thumbnail", "thumbnails")) or "",
        view_count=parse_count(view_text) or 0,
        channel_name=channel_name or text_of(renderer.get("ownerText")),
    )


def parse_live_videos(html: str) -> list[ChannelLiveVideo]:
    """Live videos listed on a channel page, de-duplicated by video id."""
    initial_data = parse_initial_data(html)
    tab = select_tab(initial_data)
    if tab is None:
        logger.debug("No channel tab with content found")
        return []

    channel_name = parse_og_title(html) or dig(
        initial_data, "metadata", "channelMetadataRenderer", "title"
    ) or ""

    videos: dict[str, ChannelLiveVideo] = {}
    for renderer in iter_video_renderers(tab.get("content")):
        if not is_live_renderer(renderer):
            continue
        video = to_live_video(renderer, channel_name)
        if video is not None and video.video_id not in videos:
            videos[video.video_id] = video
    return list(videos.values())


class ChannelLiveVideosService:
    """Scrapes a channel's streams tab, caching results per channel id."""

    def __init__(
        self,
        client: InnerTubeClient | None = None,
        cache: TTLCache[str, list[ChannelLiveVideo]] | None = None,
    ) -> None:
        self.client = client or InnerTubeClient()
        self.cache = cache if cache is not None else create_channel_videos_cache()

    async def get_channel_live_videos(self, channel_url: str) -> ChannelLiveVideosResponse:
        channel_id = extract_channel_id(channel_url)
        if not channel_id:
            return ChannelLiveVideosResponse(videos=[], error="Invalid YouTube channel URL")

        cached = self.cache.get(channel_id)
        if cached is not None:
            logger.debug(f"Using cached live videos for channel {channel_id}")
            return ChannelLiveVideosResponse(videos=cached)

        url = streams_url(channel_url)
        try:
            html = await self.client.fetch_html(url)
            videos = parse_live_videos(html)
        except UpstreamError as e:
            logger.warning(f"Could not load channel page {url}: {e}")
            return ChannelLiveVideosResponse(videos=[], error=f"Failed to fetch live videos: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error parsing channel page {url}")
            return ChannelLiveVideosResponse(videos=[], error=f"Failed to fetch live videos: {e}")

        logger.info(f"Found {len(videos)} live videos for channel {channel_id}")
        self.cache.put(channel_id, videos)
        return ChannelLiveVideosResponse(videos=videos)
