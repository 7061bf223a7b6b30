"""Video metadata API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ytchat.models.schemas import VideoMetadataRequest, VideoMetadataResponse
from ytchat.services.aggregator import LiveChatService, get_live_chat_service

router = APIRouter()


@router.post("", response_model=VideoMetadataResponse)
async def get_video_metadata(
    request: VideoMetadataRequest,
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> VideoMetadataResponse:
    """Get view/like counts, live status and channel name for each video."""
    return await service.get_video_metadata(request.urls)
