"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ytchat import __version__
from ytchat.api.router import api_router
from ytchat.config import get_settings
from ytchat.services.aggregator import LiveChatService, get_live_chat_service
from ytchat.utils.http_client import close_all_clients
from ytchat.utils.logging import get_logger, setup_logging
from ytchat.utils.metrics import MetricsMiddleware, metrics

settings = get_settings()
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name} (token source: {settings.token_source})")

    yield

    # Release the browser only if the service was ever built
    if get_live_chat_service.cache_info().currsize:
        await get_live_chat_service().close()
        logger.info("Browser resources released")

    await close_all_clients()
    logger.info("HTTP clients closed")
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

app.include_router(api_router)

# Store app start time for uptime tracking
_app_start_time = datetime.now(UTC)


@app.get("/", include_in_schema=False)
async def index() -> Response:
    return Response(content=f"{settings.app_name} API", media_type="text/plain")


@app.get("/debug", tags=["admin"])
async def debug(
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> dict[str, Any]:
    """Describe token source, cached state and the headless browser."""
    return {
        "status": "ok",
        "message": "Debug information",
        "timestamp": datetime.now(UTC).isoformat(),
        "info": await service.debug_state(),
    }


@app.post("/reset", tags=["admin"])
async def reset(
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> dict[str, Any]:
    """Clear caches and force the browser to relaunch on next use."""
    result = await service.reset()
    logger.info("Service state reset")
    return {"status": "ok", **result}


@app.get("/health", include_in_schema=True, tags=["monitoring"])
async def health_check(
    service: Annotated[LiveChatService, Depends(get_live_chat_service)],
) -> JSONResponse:
    """Health check endpoint for monitoring and load balancers.

    Returns:
        JSONResponse with status, uptime, cache sizes and browser state.
    """
    health_status: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime_seconds": (datetime.now(UTC) - _app_start_time).total_seconds(),
        "version": __version__,
        "checks": {
            "token_cache": {"entries": len(service.extractor.cache)},
            "message_cache": {"entries": len(service.messages)},
        },
    }
    if service.browser is not None:
        health_status["checks"]["browser"] = {"state": service.browser.state.value}

    return JSONResponse(content=health_status, status_code=200)


@app.get("/metrics", include_in_schema=True, tags=["monitoring"])
async def prometheus_metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns:
        Prometheus-formatted metrics text.
    """
    return Response(
        content=metrics.format_prometheus(),
        media_type="text/plain; charset=utf-8",
    )
