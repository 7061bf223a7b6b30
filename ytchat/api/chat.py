"""Live chat API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ytchat.models.schemas import LiveChatRequest, LiveChatResponse, LiveChatSnapshotResponse
from ytchat.services.aggregator import LiveChatService, get_live_chat_service

router = APIRouter()


@router.post("", response_model=LiveChatResponse)
async def get_live_chat(
    request: LiveChatRequest,
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> LiveChatResponse:
    """Poll chat incrementally: the oldest new messages plus a ``lastTimestamp`` cursor."""
    return await service.get_live_chat(
        request.urls,
        page_size=request.page_size,
        after=request.after,
        message_ids=request.message_ids,
    )


@router.post("/snapshot", response_model=LiveChatSnapshotResponse)
async def get_live_chat_snapshot(
    request: LiveChatRequest,
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> LiveChatSnapshotResponse:
    """Get the most recent messages across the requested videos."""
    return await service.get_live_chat_snapshot(
        request.urls,
        page_size=request.page_size,
        after=request.after,
        message_ids=request.message_ids,
    )
