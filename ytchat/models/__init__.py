"""Pydantic models shared by the services and the API layer."""

from ytchat.models.schemas import (
    ChannelLiveVideo,
    ChannelLiveVideosRequest,
    ChannelLiveVideosResponse,
    ChatMessage,
    Emoji,
    LiveChatRequest,
    LiveChatResponse,
    LiveChatSnapshotResponse,
    SessionTokens,
    SourceVideo,
    UserType,
    VideoMetadata,
    VideoMetadataRequest,
    VideoMetadataResponse,
    VideoRef,
)

__all__ = [
    "ChannelLiveVideo",
    "ChannelLiveVideosRequest",
    "ChannelLiveVideosResponse",
    "ChatMessage",
    "Emoji",
    "LiveChatRequest",
    "LiveChatResponse",
    "LiveChatSnapshotResponse",
    "SessionTokens",
    "SourceVideo",
    "UserType",
    "VideoMetadata",
    "VideoMetadataRequest",
    "VideoMetadataResponse",
    "VideoRef",
]
