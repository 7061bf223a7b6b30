"""Pytest configuration and fixtures."""

import json
from collections.abc import AsyncGenerator, Callable
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ytchat.main import app
from ytchat.services.aggregator import LiveChatService, get_live_chat_service
from ytchat.services.message_cache import MessageCache
from ytchat.services.youtube.channels import ChannelLiveVideosService, create_channel_videos_cache
from ytchat.services.youtube.innertube import InnerTubeClient
from ytchat.services.youtube.metadata import MetadataFetcher, create_channel_name_cache
from ytchat.services.youtube.tokens import DirectTokenExtractor, create_token_cache
from ytchat.utils.retry import RetryConfig

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeYouTube:
    """In-memory stand-in for youtube.com served through ``httpx.MockTransport``.

    Pages are keyed by request path (plus query for watch pages). Internal
    API responses are keyed by endpoint; a value may be a dict, an int status
    code, or a callable taking the decoded request body.
    """

    def __init__(self) -> None:
        self.pages: dict[str, str | int] = {}
        self.api: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def add_watch_page(self, video_id: str, html: str | int) -> None:
        self.pages[f"/watch?v={video_id}"] = html

    def count(self, path_fragment: str) -> int:
        return sum(1 for r in self.requests if path_fragment in str(r.url))

    def api_bodies(self, endpoint: str) -> list[dict[str, Any]]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and r.url.path.endswith(f"/youtubei/v1/{endpoint}")
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.startswith("/youtubei/v1/"):
            endpoint = path.removeprefix("/youtubei/v1/")
            key = parse_qs(request.url.query.decode()).get("key")
            if not key:
                return httpx.Response(403, json={"error": "missing key"})
            response = self.api.get(endpoint)
            if callable(response):
                response = response(json.loads(request.content))
            if response is None:
                return httpx.Response(404, json={"error": "not found"})
            if isinstance(response, int):
                return httpx.Response(response, text="upstream error")
            return httpx.Response(200, json=response)

        lookup = path
        video_id = request.url.params.get("v")
        if video_id:
            lookup = f"{path}?v={video_id}"
        page = self.pages.get(lookup)
        if page is None:
            return httpx.Response(404, text="not found")
        if isinstance(page, int):
            return httpx.Response(page, text="error")
        return httpx.Response(200, text=page, headers={"Content-Type": "text/html"})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_youtube() -> FakeYouTube:
    return FakeYouTube()


@pytest_asyncio.fixture
async def http_client(fake_youtube: FakeYouTube) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(fake_youtube.handler),
        base_url="https://www.youtube.com",
    ) as client:
        yield client


@pytest.fixture
def innertube(http_client: httpx.AsyncClient) -> InnerTubeClient:
    """InnerTube client bound to the fake upstream, without retry delays."""
    return InnerTubeClient(http=http_client, retry_config=RetryConfig(max_retries=0))


@pytest.fixture
def extractor(innertube: InnerTubeClient, clock: FakeClock) -> DirectTokenExtractor:
    return DirectTokenExtractor(client=innertube, cache=create_token_cache(clock=clock))


@pytest.fixture
def service(innertube: InnerTubeClient, extractor: DirectTokenExtractor, clock: FakeClock) -> LiveChatService:
    """Aggregation service wired to the fake upstream and fake clock."""
    return LiveChatService(
        extractor,
        client=innertube,
        message_cache=MessageCache(clock=clock),
        metadata_fetcher=MetadataFetcher(
            extractor, innertube, channel_names=create_channel_name_cache(clock=clock)
        ),
        channels=ChannelLiveVideosService(innertube, cache=create_channel_videos_cache(clock=clock)),
    )


@pytest_asyncio.fixture
async def client(service: LiveChatService) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client for the API backed by the fake upstream."""
    app.dependency_overrides[get_live_chat_service] = lambda: service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
