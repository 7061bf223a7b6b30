"""Pydantic schemas for YouTube payloads, API validation and serialization.

Python attributes are snake_case; JSON uses camelCase aliases so the wire
format matches what chat clients already consume (``authorName``,
``sourceVideo``, ``hasMore`` ...).
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from ytchat.constants import MAX_PAGE_SIZE, MAX_URLS_PER_REQUEST


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def isoformat_z(value: datetime) -> str:
    """Render a datetime as ISO-8601 with millisecond precision and a Z suffix."""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


UtcDatetime = Annotated[
    datetime,
    AfterValidator(ensure_utc),
    PlainSerializer(isoformat_z, return_type=str),
]


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserType(str, Enum):
    """Chat author role, ordered by badge priority."""

    REGULAR = "regular"
    MEMBER = "member"
    MODERATOR = "moderator"
    OWNER = "owner"


# =============================================================================
# Domain models
# =============================================================================


class VideoRef(CamelModel):
    """A video URL and the 11-character id parsed from it."""

    model_config = ConfigDict(frozen=True)

    url: str
    video_id: str = Field(min_length=11, max_length=11)


class SessionTokens(CamelModel):
    """Credentials scraped from a watch page for the internal endpoints.

    Immutable once created. A token set can poll chat only while
    ``continuation`` is non-empty.
    """

    model_config = ConfigDict(frozen=True)

    api_key: str
    client_version: str
    visitor_data: str = ""
    continuation: str = ""
    raw_page: str | None = Field(default=None, exclude=True, repr=False)
    title: str | None = None
    channel_name: str | None = None
    fetched_at: UtcDatetime

    @property
    def has_chat(self) -> bool:
        """Check if the token set carries a live chat continuation."""
        return bool(self.continuation)


class Emoji(CamelModel):
    """Custom or standard emoji referenced from a message run."""

    emoji_id: str
    url: str
    label: str


class SourceVideo(CamelModel):
    """The video a chat message was posted in."""

    url: str
    id: str
    title: str | None = None


class ChatMessage(CamelModel):
    """Canonical chat message shared by every renderer variant."""

    id: str
    message: str
    author_name: str
    author_channel_id: str
    timestamp: UtcDatetime
    user_type: UserType = UserType.REGULAR
    profile_image: str | None = None
    emojis: list[Emoji] | None = None
    source_video: SourceVideo


class VideoMetadata(CamelModel):
    """View/like counts and live status. Counts default to 0, never null."""

    video_id: str
    video_url: str
    title: str | None = None
    view_count: int = 0
    like_count: int = 0
    is_live: bool = False
    channel_name: str | None = None
    error: str | None = None


class ChannelLiveVideo(CamelModel):
    """A currently live video listed on a channel page."""

    video_id: str
    video_url: str
    title: str
    thumbnail_url: str = ""
    view_count: int = 0
    channel_name: str = ""


# =============================================================================
# Request schemas
# =============================================================================


class LiveChatRequest(CamelModel):
    """Body for the live chat endpoints."""

    urls: list[str] = Field(min_length=1, max_length=MAX_URLS_PER_REQUEST)
    page_size: int | None = Field(default=None, ge=1, le=MAX_PAGE_SIZE)
    after: UtcDatetime | None = None
    message_ids: list[str] = Field(default_factory=list)


class VideoMetadataRequest(CamelModel):
    """Body for the video metadata endpoint."""

    urls: list[str] = Field(min_length=1, max_length=MAX_URLS_PER_REQUEST)


class ChannelLiveVideosRequest(CamelModel):
    """Body for the channel live videos endpoint."""

    channel_url: str


# =============================================================================
# Response schemas
# =============================================================================


class LiveChatResponse(CamelModel):
    """Incremental polling contract: oldest-first page plus a cursor."""

    messages: list[ChatMessage]
    errors: list[str]
    has_more: bool
    last_timestamp: UtcDatetime | None


class LiveChatSnapshotResponse(CamelModel):
    """Snapshot contract: the most recent ``pageSize`` messages."""

    messages: list[ChatMessage]
    errors: list[str]
    total_messages: int
    timestamp: UtcDatetime


class VideoMetadataResponse(CamelModel):
    """Metadata for each requested video plus per-URL errors."""

    metadata: list[VideoMetadata]
    errors: list[str]


class ChannelLiveVideosResponse(CamelModel):
    """Live videos of a channel; ``error`` set when scraping failed."""

    videos: list[ChannelLiveVideo]
    error: str | None = None
