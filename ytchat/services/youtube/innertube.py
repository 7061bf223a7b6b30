"""HTTP access to youtube.com pages and the internal ``youtubei/v1`` API."""

import logging
import time
from typing import Any

import httpx

from ytchat.constants import (
    CLIENT_FORM_FACTOR,
    CLIENT_NAME,
    DEFAULT_CLIENT_VERSION,
    HTML_HEADERS,
    INNERTUBE_BASE_URL,
    USER_AGENT,
)
from ytchat.models.schemas import SessionTokens
from ytchat.services.youtube.errors import UpstreamError
from ytchat.utils.http_client import get_youtube_client
from ytchat.utils.metrics import metrics
from ytchat.utils.retry import RetryConfig, retry_async
from ytchat.utils.secrets import mask_secret

logger = logging.getLogger(__name__)

PAGE_RETRY_CONFIG = RetryConfig(max_retries=2, base_delay=0.5, max_delay=4.0)


def client_context(tokens: SessionTokens) -> dict[str, Any]:
    """Build the ``context`` object identifying us as the web client."""
    return {
        "client": {
            "clientName": CLIENT_NAME,
            "clientVersion": tokens.client_version or DEFAULT_CLIENT_VERSION,
            "visitorData": tokens.visitor_data,
            "userAgent": USER_AGENT,
            "clientFormFactor": CLIENT_FORM_FACTOR,
            "hl": "en",
            "gl": "US",
        }
    }


class InnerTubeClient:
    """Fetches raw HTML and calls internal JSON endpoints.

    Usage:
        client = InnerTubeClient()
        html = await client.fetch_html("https://www.youtube.com/watch?v=...")
        data = await client.post("next", {"videoId": "..."}, tokens)
    """

    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        base_url: str = INNERTUBE_BASE_URL,
        retry_config: RetryConfig = PAGE_RETRY_CONFIG,
    ) -> None:
        self._http = http
        self.base_url = base_url.rstrip("/")
        self.retry_config = retry_config

    @property
    def http(self) -> httpx.AsyncClient:
        """HTTP client, defaulting to the shared pooled client."""
        return self._http or get_youtube_client()

    def _record(self, endpoint: str, status: str, started: float) -> None:
        metrics.youtube_requests_total.inc(endpoint=endpoint, status=status)
        metrics.youtube_request_duration_seconds.observe(
            time.monotonic() - started, endpoint=endpoint
        )

    async def fetch_html(self, url: str) -> str:
        """GET a youtube.com page with browser-like headers.

        Transient failures are retried with backoff.

        Raises:
            UpstreamError: When the page cannot be fetched
        """
        started = time.monotonic()
        try:
            response = await retry_async(
                self.http.get,
                url,
                headers=HTML_HEADERS,
                config=self.retry_config,
                operation_name=f"GET {url}",
            )
        except httpx.HTTPError as e:
            self._record("page", "error", started)
            raise UpstreamError("page", f"Could not fetch {url}: {e}") from e
        if response is None:
            self._record("page", "error", started)
            raise UpstreamError("page", f"Could not fetch {url}")

        self._record("page", str(response.status_code), started)
        if response.status_code >= 400:
            raise UpstreamError("page", f"HTTP {response.status_code} for {url}", response.status_code)
        return response.text

    async def post(
        self,
        endpoint: str,
        payload: dict[str, Any],
        tokens: SessionTokens,
    ) -> dict[str, Any]:
        """POST to ``youtubei/v1/<endpoint>`` with the session's client identity.

        Raises:
            UpstreamError: On transport errors, non-2xx responses or non-JSON bodies
        """
        if not tokens.api_key:
            raise UpstreamError(endpoint, "Missing API key")

        body = {"context": client_context(tokens), **payload}
        url = f"{self.base_url}/{endpoint}"
        started = time.monotonic()

        logger.debug(f"POST {endpoint} (key={mask_secret(tokens.api_key)})")
        try:
            response = await self.http.post(
                url,
                params={"key": tokens.api_key, "prettyPrint": "false"},
                json=body,
                headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
            )
        except httpx.TimeoutException as e:
            self._record(endpoint, "timeout", started)
            raise UpstreamError(endpoint, f"Timeout: {e}") from e
        except httpx.HTTPError as e:
            self._record(endpoint, "error", started)
            raise UpstreamError(endpoint, f"Request failed: {e}") from e

        self._record(endpoint, str(response.status_code), started)
        if response.status_code >= 400:
            raise UpstreamError(
                endpoint, f"HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(endpoint, "Malformed JSON response") from e
        if not isinstance(data, dict):
            raise UpstreamError(endpoint, "Unexpected JSON payload")
        return data
