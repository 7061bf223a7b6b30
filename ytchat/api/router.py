"""Main API router."""

from fastapi import APIRouter

from ytchat.api.channels import router as channels_router
from ytchat.api.chat import router as chat_router
from ytchat.api.metadata import router as metadata_router

api_router = APIRouter(prefix="/api")

api_router.include_router(chat_router, prefix="/live-chat", tags=["chat"])
api_router.include_router(metadata_router, prefix="/video-metadata", tags=["metadata"])
api_router.include_router(channels_router, prefix="/channel-live-videos", tags=["channels"])
