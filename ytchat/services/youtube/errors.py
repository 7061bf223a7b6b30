"""Exceptions raised by the YouTube scraping services."""


class YouTubeError(Exception):
    """Base exception for YouTube scraping errors."""

    pass


class ExtractionError(YouTubeError):
    """No usable session tokens or chat continuation could be obtained."""

    pass


class PollError(YouTubeError):
    """The chat endpoint failed or returned no continuation envelope."""

    pass


class UpstreamError(YouTubeError):
    """An internal YouTube endpoint failed or returned malformed data."""

    def __init__(self, endpoint: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.status_code = status_code


class BrowserError(YouTubeError):
    """The headless browser could not be launched, attached or used."""

    pass
