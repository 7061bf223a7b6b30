"""Video metadata: view/like counts, live status, title and channel name.

Two internal endpoints are consulted. ``updated_metadata`` answers with a
flat list of update actions and is preferred; ``next`` returns the full
watch-next page model and fills whatever the first one left out.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any

from ytchat.constants import CHANNEL_NAME_CACHE_TTL, NEXT_ENDPOINT, UPDATED_METADATA_ENDPOINT
from ytchat.models.schemas import SessionTokens, VideoMetadata
from ytchat.services.youtube.errors import ExtractionError, UpstreamError
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.page import parse_channel_anchor, parse_channel_name
from ytchat.services.youtube.parsing import Strategy, dig, first_of, parse_count, text_of
from ytchat.services.youtube.tokens import TokenExtractor
from ytchat.services.youtube.urls import parse_video_url
from ytchat.utils.cache import TTLCache
from ytchat.utils.logging import LogContext

logger = logging.getLogger(__name__)


def create_channel_name_cache(**kwargs) -> TTLCache[str, str]:
    """Channel names keyed by video id."""
    return TTLCache("channel_names", ttl=CHANNEL_NAME_CACHE_TTL, **kwargs)


@dataclass
class MetadataFields:
    """Values read from one endpoint; None means "not found there"."""

    title: str | None = None
    view_count: int | None = None
    like_count: int | None = None
    is_live: bool | None = None
    channel_name: str | None = None

    def fill_from(self, other: "MetadataFields") -> "MetadataFields":
        """Keep our values, taking ``other``'s only where ours are unset or zero."""
        merged = MetadataFields()
        for f in fields(self):
            mine = getattr(self, f.name)
            setattr(merged, f.name, mine if mine else getattr(other, f.name) or mine)
        return merged

    @property
    def incomplete(self) -> bool:
        return not self.title or not self.view_count


# =============================================================================
# Shared strategies
# =============================================================================


def _like_count_entity(data: Any) -> int | None:
    """``frameworkUpdates`` like counts: exact number, expanded, abbreviated."""
    mutations = dig(data, "frameworkUpdates", "entityBatchUpdate", "mutations") or []
    for mutation in mutations:
        entity = dig(mutation, "payload", "likeCountEntity")
        if not isinstance(entity, dict):
            continue
        count = first_of(
            [
                lambda e: parse_count(e.get("likeCountIfIndifferentNumber")),
                lambda e: parse_count(dig(e, "expandedLikeCountIfIndifferent", "content")),
                lambda e: parse_count(dig(e, "likeCountIfIndifferent", "content")),
            ],
            entity,
        )
        if count:
            return count
    return None


def _view_count_of(renderer: Any) -> int | None:
    return parse_count(text_of(dig(renderer, "viewCount"))) or parse_count(
        dig(renderer, "originalViewCount")
    )


# =============================================================================
# updated_metadata
# =============================================================================


def _actions(data: Any, key: str) -> list[dict[str, Any]]:
    actions = dig(data, "actions") or []
    return [action[key] for action in actions if isinstance(action, dict) and isinstance(action.get(key), dict)]


def _viewership_renderer(data: Any) -> dict[str, Any] | None:
    for action in _actions(data, "updateViewershipAction"):
        renderer = dig(action, "viewCount", "videoViewCountRenderer")
        if isinstance(renderer, dict):
            return renderer
    return None


def _toggled_like_label(data: Any) -> int | None:
    for action in _actions(data, "updateToggleButtonAction"):
        label = dig(
            action, "toggledButtons", 0, "toggleButtonRenderer",
            "defaultText", "accessibility", "accessibilityData", "label",
        )
        count = parse_count(label)
        if count is not None:
            return count
    return None


def _button_like_text(data: Any) -> int | None:
    for action in _actions(data, "updateButtonAction"):
        count = parse_count(dig(action, "button", "toggleButtonRenderer", "defaultText", "simpleText"))
        if count is not None:
            return count
    return None


def _updated_title(data: Any) -> str | None:
    for action in _actions(data, "updateTitleAction"):
        title = text_of(action.get("title"))
        if title:
            return title
    return None


def _updated_channel_name(data: Any) -> str | None:
    for action in _actions(data, "updateChannelNavigationEndpointAction"):
        name = dig(action, "channelEndpoint", "channelInfo", "title")
        if name:
            return text_of(name)
    return None


PRIMARY_VIEW_STRATEGIES: list[Strategy[int]] = [
    lambda d: _view_count_of(_viewership_renderer(d)),
]
PRIMARY_LIVE_STRATEGIES: list[Strategy[bool]] = [
    lambda d: bool(r.get("isLive")) if (r := _viewership_renderer(d)) else None,
]
PRIMARY_LIKE_STRATEGIES: list[Strategy[int]] = [
    _toggled_like_label,
    _button_like_text,
    _like_count_entity,
]
PRIMARY_TITLE_STRATEGIES: list[Strategy[str]] = [_updated_title]
PRIMARY_CHANNEL_STRATEGIES: list[Strategy[str]] = [_updated_channel_name]


# =============================================================================
# next
# =============================================================================


def _watch_contents(data: Any) -> list[Any]:
    return dig(data, "contents", "twoColumnWatchNextResults", "results", "results", "contents") or []


def _content_renderer(data: Any, key: str) -> dict[str, Any] | None:
    for item in _watch_contents(data):
        if isinstance(item, dict) and isinstance(item.get(key), dict):
            return item[key]
    if isinstance(dig(data, key), dict):
        return data[key]
    return None


def _primary_info(data: Any) -> dict[str, Any] | None:
    return _content_renderer(data, "videoPrimaryInfoRenderer")


def _next_view_renderer(data: Any) -> dict[str, Any] | None:
    return dig(_primary_info(data), "viewCount", "videoViewCountRenderer")


def _like_button(data: Any) -> dict[str, Any] | None:
    buttons = dig(_primary_info(data), "videoActions", "menuRenderer", "topLevelButtons") or []
    for button in buttons:
        toggle = dig(button, "toggleButtonRenderer") or dig(
            button, "segmentedLikeDislikeButtonRenderer", "likeButton", "toggleButtonRenderer"
        )
        if isinstance(toggle, dict) and dig(toggle, "defaultIcon", "iconType") in ("LIKE", None):
            return toggle
    return None


def _like_button_count(data: Any) -> int | None:
    button = _like_button(data)
    return first_of(
        [
            lambda b: parse_count(dig(b, "defaultText", "accessibility", "accessibilityData", "label")),
            lambda b: parse_count(dig(b, "defaultText", "simpleText")),
        ],
        button,
    )


def _owner_name(data: Any) -> str | None:
    for renderer in (
        _content_renderer(data, "videoSecondaryInfoRenderer"),
        _primary_info(data),
    ):
        name = text_of(dig(renderer, "owner", "videoOwnerRenderer", "title"))
        if name:
            return name
    return None


BACKUP_VIEW_STRATEGIES: list[Strategy[int]] = [
    lambda d: _view_count_of(_next_view_renderer(d)),
]
BACKUP_LIVE_STRATEGIES: list[Strategy[bool]] = [
    lambda d: bool(r.get("isLive")) if (r := _next_view_renderer(d)) else None,
]
BACKUP_LIKE_STRATEGIES: list[Strategy[int]] = [
    _like_button_count,
    _like_count_entity,
]
BACKUP_TITLE_STRATEGIES: list[Strategy[str]] = [
    lambda d: text_of(dig(_primary_info(d), "title")) or None,
]
BACKUP_CHANNEL_STRATEGIES: list[Strategy[str]] = [_owner_name]


def parse_primary(data: dict[str, Any]) -> MetadataFields:
    """Read an ``updated_metadata`` response."""
    return MetadataFields(
        title=first_of(PRIMARY_TITLE_STRATEGIES, data),
        view_count=first_of(PRIMARY_VIEW_STRATEGIES, data),
        like_count=first_of(PRIMARY_LIKE_STRATEGIES, data),
        is_live=first_of(PRIMARY_LIVE_STRATEGIES, data),
        channel_name=first_of(PRIMARY_CHANNEL_STRATEGIES, data),
    )


def parse_backup(data: dict[str, Any]) -> MetadataFields:
    """Read a ``next`` response."""
    return MetadataFields(
        title=first_of(BACKUP_TITLE_STRATEGIES, data),
        view_count=first_of(BACKUP_VIEW_STRATEGIES, data),
        like_count=first_of(BACKUP_LIKE_STRATEGIES, data),
        is_live=first_of(BACKUP_LIVE_STRATEGIES, data),
        channel_name=first_of(BACKUP_CHANNEL_STRATEGIES, data),
    )


def _page_channel_name(tokens: SessionTokens) -> str | None:
    if tokens.raw_page:
        name = parse_channel_anchor(tokens.raw_page)
        if name:
            return name
    if tokens.channel_name:
        return tokens.channel_name
    if tokens.raw_page:
        return parse_channel_name(tokens.raw_page)
    return None


class MetadataFetcher:
    """Fetches and normalizes metadata for one video at a time.

    ``get_metadata`` never raises; failures come back as a zeroed record
    with ``error`` set.
    """

    def __init__(
        self,
        extractor: TokenExtractor,
        client: InnerTubeClient | None = None,
        channel_names: TTLCache[str, str] | None = None,
    ) -> None:
        self.extractor = extractor
        self.client = client or InnerTubeClient()
        self.channel_names = channel_names if channel_names is not None else create_channel_name_cache()

    async def _call(self, endpoint: str, video_id: str, tokens: SessionTokens, log: LogContext) -> dict[str, Any] | None:
        try:
            return await self.client.post(endpoint, {"videoId": video_id}, tokens)
        except UpstreamError as e:
            log.warning(f"Metadata endpoint failed: {e}")
            return None

    async def get_metadata(self, video_url: str) -> VideoMetadata:
        ref = parse_video_url(video_url)
        if ref is None:
            return VideoMetadata(video_id="unknown", video_url=video_url, error="Invalid YouTube URL")

        log = LogContext(logger, video=ref.video_id)
        try:
            tokens = await self.extractor.extract(video_url, require_chat=False)
        except ExtractionError as e:
            log.warning(f"Token extraction failed: {e}")
            return VideoMetadata(video_id=ref.video_id, video_url=video_url, error=f"Failed to fetch: {e}")

        primary = await self._call(UPDATED_METADATA_ENDPOINT, ref.video_id, tokens, log)
        found = parse_primary(primary) if primary else MetadataFields()

        backup = None
        if not primary or not primary.get("actions") or found.incomplete:
            log.debug("Primary metadata incomplete, consulting backup endpoint")
            backup = await self._call(NEXT_ENDPOINT, ref.video_id, tokens, log)
            if backup:
                found = found.fill_from(parse_backup(backup))

        if primary is None and backup is None:
            return VideoMetadata(
                video_id=ref.video_id,
                video_url=video_url,
                error="Failed to fetch metadata from both endpoints",
            )

        metadata = VideoMetadata(
            video_id=ref.video_id,
            video_url=video_url,
            title=found.title or tokens.title,
            view_count=found.view_count or 0,
            like_count=found.like_count or 0,
            is_live=bool(found.is_live),
            channel_name=self._resolve_channel_name(ref.video_id, found, tokens),
        )
        log.debug(
            f"Metadata: views={metadata.view_count} likes={metadata.like_count} live={metadata.is_live}"
        )
        return metadata

    def _resolve_channel_name(self, video_id: str, found: MetadataFields, tokens: SessionTokens) -> str | None:
        cached = self.channel_names.get(video_id)
        if cached:
            return cached
        name = found.channel_name or _page_channel_name(tokens)
        if name:
            self.channel_names.put(video_id, name)
        return name
