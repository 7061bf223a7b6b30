"""YouTube URL parsing. Pure functions, no I/O."""

import re

from ytchat.models.schemas import VideoRef

_ID = r"([A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"

VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com|youtube-nocookie\.com)/watch\?(?:[^#]*&)?v=" + _ID),
    re.compile(r"youtu\.be/" + _ID),
    re.compile(r"(?:youtube\.com|youtube-nocookie\.com)/(?:live|embed|shorts|v)/" + _ID),
]

# Host and path shapes accepted as a video page
VIDEO_URL_PATTERN = re.compile(
    r"^(?:https?://)?(?:(?:www|m|music)\.)?"
    r"(?:youtube\.com/(?:watch\?|live/|embed/|shorts/)|youtube-nocookie\.com/embed/|youtu\.be/)",
    re.IGNORECASE,
)

# Order matters: the first matching form wins
CHANNEL_ID_PATTERNS = [
    re.compile(r"youtube\.com/channel/([\w-]+)"),
    re.compile(r"youtube\.com/@([\w.-]+)"),
    re.compile(r"youtube\.com/c/([\w-]+)"),
    re.compile(r"youtube\.com/user/([\w-]+)"),
]


def extract_video_id(url: str) -> str | None:
    """Extract the 11-character video id from any known YouTube URL form.

    Supports ``watch?v=``, ``youtu.be/``, ``/live/``, ``/embed/`` and
    ``/shorts/`` URLs. Returns None when no complete id is present.
    """
    if not url:
        return None
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def is_valid_youtube_url(url: str) -> bool:
    """Check that the URL has a known video page shape and a parsable id."""
    if not url:
        return False
    return bool(VIDEO_URL_PATTERN.match(url.strip())) and extract_video_id(url) is not None


def parse_video_url(url: str) -> VideoRef | None:
    """Build a VideoRef for a valid video URL, or None."""
    if not is_valid_youtube_url(url):
        return None
    video_id = extract_video_id(url)
    if video_id is None:
        return None
    return VideoRef(url=url, video_id=video_id)


def extract_channel_id(url: str) -> str | None:
    """Extract the channel id, handle, custom name or user name from a channel URL."""
    if not url:
        return None
    for pattern in CHANNEL_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def is_valid_channel_url(url: str) -> bool:
    """Check if the URL points at a YouTube channel."""
    return extract_channel_id(url) is not None


def watch_url(video_id: str) -> str:
    """Canonical watch page URL for a video id."""
    return f"https://www.youtube.com/watch?v={video_id}"
