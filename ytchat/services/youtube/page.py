"""Parsing of session configuration embedded in a watch page."""

import html as html_lib
import json
import logging
import re
from datetime import UTC, datetime
from typing import Any

from ytchat.models.schemas import SessionTokens
from ytchat.services.youtube.parsing import dig, extract_all_json_after, extract_json_after, first_of

logger = logging.getLogger(__name__)

YTCFG_SET = re.compile(r"ytcfg\.set\s*\(\s*(?=\{)")
INITIAL_DATA_MARKERS = [
    re.compile(r"window\[\s*[\"']ytInitialData[\"']\s*\]\s*=\s*"),
    re.compile(r"var\s+ytInitialData\s*=\s*"),
    re.compile(r"\bytInitialData\s*=\s*"),
]

CONFIG_KEYS = ("INNERTUBE_API_KEY", "INNERTUBE_CLIENT_VERSION", "VISITOR_DATA")

_RAW_CONTINUATION = re.compile(r'"continuation"\s*:\s*"([^"]+)"')
_META_TITLE = re.compile(r'<meta\s+name="title"\s+content="([^"]*)"', re.IGNORECASE)
_TITLE_TAG = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)
_OWNER_CHANNEL_NAME = re.compile(r'"ownerChannelName"\s*:\s*"((?:[^"\\]|\\.)*)"')
_ITEMPROP_NAME = re.compile(r'<link\s+itemprop="name"\s+content="([^"]+)"\s*/?>', re.IGNORECASE)
_CHANNEL_ANCHOR = re.compile(r'<a[^>]*href="/(@[^"]+)"[^>]*>([^<]+)</a>')

_CONTINUATION_KINDS = (
    "reloadContinuationData",
    "invalidationContinuationData",
    "timedContinuationData",
    "liveChatReplayContinuationData",
)


def parse_ytcfg(html: str) -> dict[str, Any]:
    """Collect the client configuration from every ``ytcfg.set({...})`` call.

    Falls back to bare ``"KEY":"value"`` pairs for keys the structured
    blobs did not carry (some pages assign the config as a global variable).
    """
    config: dict[str, Any] = {}
    for blob in extract_all_json_after(html, YTCFG_SET):
        config.update(blob)

    for key in CONFIG_KEYS:
        if config.get(key):
            continue
        match = re.search(rf'"{key}"\s*:\s*"([^"]+)"', html)
        if match:
            config[key] = match.group(1)

    client = dig(config, "INNERTUBE_CONTEXT", "client") or {}
    if not config.get("INNERTUBE_CLIENT_VERSION") and client.get("clientVersion"):
        config["INNERTUBE_CLIENT_VERSION"] = client["clientVersion"]
    if not config.get("VISITOR_DATA") and client.get("visitorData"):
        config["VISITOR_DATA"] = client["visitorData"]
    return config


def parse_initial_data(html: str) -> dict[str, Any] | None:
    """Decode the ``ytInitialData`` blob from a page."""
    return extract_json_after(html, INITIAL_DATA_MARKERS)


def _live_chat_renderer(data: Any) -> Any:
    return dig(data, "contents", "twoColumnWatchNextResults", "conversationBar", "liveChatRenderer")


def _reload_continuation(data: Any) -> str | None:
    return dig(_live_chat_renderer(data), "continuations", 0, "reloadContinuationData", "continuation")


def _any_renderer_continuation(data: Any) -> str | None:
    for entry in dig(_live_chat_renderer(data), "continuations") or []:
        for kind in _CONTINUATION_KINDS:
            token = dig(entry, kind, "continuation")
            if token:
                return token
    return None


def _view_selector_continuation(data: Any) -> str | None:
    # The last sub-menu entry is the unfiltered "Live chat" view
    items = dig(
        _live_chat_renderer(data),
        "header", "liveChatHeaderRenderer", "viewSelector",
        "sortFilterSubMenuRenderer", "subMenuItems",
    ) or []
    for item in reversed(items):
        token = dig(item, "continuation", "reloadContinuationData", "continuation")
        if token:
            return token
    return None


CONTINUATION_STRATEGIES = [
    _reload_continuation,
    _any_renderer_continuation,
    _view_selector_continuation,
]


def find_continuation(initial_data: dict[str, Any] | None, html: str = "") -> str:
    """Locate the live chat continuation token.

    Structured paths through ``ytInitialData`` are tried first; a raw
    ``"continuation":"..."`` search over the page is the last resort.
    """
    token = first_of(CONTINUATION_STRATEGIES, initial_data) if initial_data else None
    if token:
        return token

    match = _RAW_CONTINUATION.search(html) if html else None
    if match:
        logger.debug("Continuation found via raw page search")
        return match.group(1)
    return ""


def parse_title(html: str) -> str | None:
    """Best-effort video title from page meta tags."""
    for pattern in (_META_TITLE, _TITLE_TAG):
        match = pattern.search(html)
        if match:
            title = html_lib.unescape(match.group(1)).strip()
            title = re.sub(r"\s*-\s*YouTube$", "", title)
            if title:
                return title
    return None


def parse_channel_name(html: str) -> str | None:
    """Best-effort channel name from the player response or microdata."""
    match = _OWNER_CHANNEL_NAME.search(html)
    if match:
        try:
            return json.loads(f'"{match.group(1)}"')
        except json.JSONDecodeError:
            return match.group(1)

    match = _ITEMPROP_NAME.search(html)
    if match:
        return html_lib.unescape(match.group(1)).strip() or None
    return None


def parse_channel_anchor(html: str) -> str | None:
    """Channel name from the first ``<a href="/@handle">Name</a>`` link."""
    match = _CHANNEL_ANCHOR.search(html)
    if match:
        return html_lib.unescape(match.group(2)).strip() or None
    return None


def build_tokens(
    config: dict[str, Any],
    continuation: str,
    raw_page: str | None = None,
    title: str | None = None,
    channel_name: str | None = None,
) -> SessionTokens:
    """Assemble a SessionTokens record from a parsed client configuration."""
    return SessionTokens(
        api_key=config.get("INNERTUBE_API_KEY") or "",
        client_version=config.get("INNERTUBE_CLIENT_VERSION") or "",
        visitor_data=config.get("VISITOR_DATA") or "",
        continuation=continuation or "",
        raw_page=raw_page,
        title=title,
        channel_name=channel_name,
        fetched_at=datetime.now(UTC),
    )


def tokens_from_page(html: str) -> SessionTokens:
    """Extract session tokens and page defaults from raw watch page HTML."""
    config = parse_ytcfg(html)
    initial_data = parse_initial_data(html)
    if initial_data is None:
        logger.debug("No ytInitialData blob found in page")

    return build_tokens(
        config,
        continuation=find_continuation(initial_data, html),
        raw_page=html,
        title=parse_title(html),
        channel_name=parse_channel_name(html),
    )
