"""Channel API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ytchat.models.schemas import ChannelLiveVideosRequest, ChannelLiveVideosResponse
from ytchat.services.aggregator import LiveChatService, get_live_chat_service

router = APIRouter()


@router.post("", response_model=ChannelLiveVideosResponse)
async def get_channel_live_videos(
    request: ChannelLiveVideosRequest,
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> ChannelLiveVideosResponse:
    """List the videos currently live on a channel."""
    return await service.get_channel_live_videos(request.channel_url)
