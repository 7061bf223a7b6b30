"""Shared persistent httpx client for YouTube requests.

Every page fetch and internal API call goes through one pooled client so
polling several videos at once reuses connections instead of paying a TLS
handshake per request.
"""

import httpx

from ytchat.constants import HTTPX_TIMEOUT

# Connection pool limits
_POOL_LIMITS = httpx.Limits(
    max_connections=20,
    max_keepalive_connections=10,
    keepalive_expiry=30,
)

_youtube_client: httpx.AsyncClient | None = None


def get_youtube_client() -> httpx.AsyncClient:
    """Get persistent httpx client for youtube.com calls."""
    global _youtube_client
    if _youtube_client is None:
        _youtube_client = httpx.AsyncClient(
            timeout=HTTPX_TIMEOUT,
            limits=_POOL_LIMITS,
            follow_redirects=True,
            http2=False,
        )
    return _youtube_client


async def close_all_clients() -> None:
    """Close all persistent httpx clients. Call during app shutdown."""
    global _youtube_client
    if _youtube_client is not None:
        await _youtube_client.aclose()
        _youtube_client = None
