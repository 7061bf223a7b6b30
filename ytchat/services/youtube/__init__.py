"""YouTube services module."""

from ytchat.services.youtube.browser import BrowserManager, BrowserState, BrowserTokenExtractor
from ytchat.services.youtube.channels import ChannelLiveVideosService
from ytchat.services.youtube.chat import ChatPage, ChatPoller
from ytchat.services.youtube.errors import (
    BrowserError,
    ExtractionError,
    PollError,
    UpstreamError,
    YouTubeError,
)
from ytchat.services.youtube.formatters import normalize_messages
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.metadata import MetadataFetcher
from ytchat.services.youtube.tokens import DirectTokenExtractor, TokenExtractor
from ytchat.services.youtube.urls import (
    extract_channel_id,
    extract_video_id,
    is_valid_channel_url,
    is_valid_youtube_url,
    parse_video_url,
)

__all__ = [
    "BrowserError",
    "BrowserManager",
    "BrowserState",
    "BrowserTokenExtractor",
    "ChannelLiveVideosService",
    "ChatPage",
    "ChatPoller",
    "DirectTokenExtractor",
    "ExtractionError",
    "InnerTubeClient",
    "MetadataFetcher",
    "PollError",
    "TokenExtractor",
    "UpstreamError",
    "YouTubeError",
    "extract_channel_id",
    "extract_video_id",
    "is_valid_channel_url",
    "is_valid_youtube_url",
    "normalize_messages",
    "parse_video_url",
]
