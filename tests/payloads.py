"""Builders for synthetic YouTube pages and internal API responses."""

import json
from typing import Any

API_KEY = "AIzaSyTESTKEY0000000000000000000000000"
CLIENT_VERSION = "2.20250101.01.00"
VISITOR_DATA = "CgtWSVNJVE9SREFUQQ%3D%3D"

BASE_USEC = 1_700_000_000_000_000


def watch_page(
    video_id: str = "abc12345678",
    continuation: str | None = "CONT-INITIAL",
    title: str = "Test Stream",
    channel_name: str = "Test Channel",
) -> str:
    """A watch page with ``ytcfg.set`` config and a ``ytInitialData`` blob."""
    config = {
        "INNERTUBE_API_KEY": API_KEY,
        "INNERTUBE_CLIENT_VERSION": CLIENT_VERSION,
        "VISITOR_DATA": VISITOR_DATA,
    }
    conversation_bar: dict[str, Any] = {}
    if continuation:
        conversation_bar = {
            "liveChatRenderer": {
                "continuations": [{"reloadContinuationData": {"continuation": continuation}}]
            }
        }
    initial_data = {
        "contents": {"twoColumnWatchNextResults": {"conversationBar": conversation_bar}}
    }
    return (
        "<html><head>"
        f'<meta name="title" content="{title}">'
        f"<title>{title} - YouTube</title>"
        "</head><body>"
        f'<a class="yt-simple-endpoint" href="/@testchannel">{channel_name}</a>'
        f"<script>ytcfg.set({json.dumps(config)});</script>"
        f'<script>var ytInitialPlayerResponse = {{"videoDetails": {{"videoId": "{video_id}", '
        f'"ownerChannelName": "{channel_name}"}}}};</script>'
        f"<script>var ytInitialData = {json.dumps(initial_data)};</script>"
        "</body></html>"
    )


def text_renderer(
    message_id: str,
    text: str = "hello",
    usec: int = BASE_USEC,
    author: str = "Viewer",
    badges: list[dict[str, Any]] | None = None,
    runs: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    renderer: dict[str, Any] = {
        "id": message_id,
        "message": {"runs": runs if runs is not None else [{"text": text}]},
        "authorName": {"simpleText": author},
        "authorExternalChannelId": f"UC{message_id}",
        "timestampUsec": str(usec),
        "authorPhoto": {
            "thumbnails": [
                {"url": "https://yt3.ggpht.com/photo=s32", "width": 32, "height": 32},
                {"url": "https://yt3.ggpht.com/photo=s64", "width": 64, "height": 64},
            ]
        },
    }
    if badges:
        renderer["authorBadges"] = badges
    return {"liveChatTextMessageRenderer": renderer}


def badge(tooltip: str, icon_type: str | None = None) -> dict[str, Any]:
    renderer: dict[str, Any] = {
        "tooltip": tooltip,
        "accessibility": {"accessibilityData": {"label": tooltip}},
    }
    if icon_type:
        renderer["icon"] = {"iconType": icon_type}
    return {"liveChatAuthorBadgeRenderer": renderer}


def emoji_run(emoji_id: str = "UCemoji/smile", shortcut: str = ":smile:") -> dict[str, Any]:
    return {
        "emoji": {
            "emojiId": emoji_id,
            "shortcuts": [shortcut],
            "image": {
                "thumbnails": [
                    {"url": "https://yt3.ggpht.com/emoji=w24", "width": 24, "height": 24},
                    {"url": "https://yt3.ggpht.com/emoji=w48", "width": 48, "height": 48},
                ],
                "accessibility": {"accessibilityData": {"label": shortcut}},
            },
            "isCustomEmoji": True,
        }
    }


def chat_response(
    items: list[dict[str, Any]],
    next_continuation: str | None = "CONT-NEXT",
) -> dict[str, Any]:
    """A ``get_live_chat`` response carrying the given chat items."""
    continuations = []
    if next_continuation:
        continuations.append(
            {"invalidationContinuationData": {"continuation": next_continuation, "timeoutMs": 10000}}
        )
    return {
        "continuationContents": {
            "liveChatContinuation": {
                "continuations": continuations,
                "actions": [{"addChatItemAction": {"item": item}} for item in items],
            }
        }
    }


def text_messages(count: int, prefix: str = "msg") -> list[dict[str, Any]]:
    """``count`` text items one second apart, oldest first."""
    return [
        text_renderer(f"{prefix}-{i}", text=f"message {i}", usec=BASE_USEC + i * 1_000_000)
        for i in range(1, count + 1)
    ]


def updated_metadata_response(
    views: str = "1,234 watching now",
    likes_label: str | None = "1,234 likes",
    title: str | None = "Primary Title",
    is_live: bool = True,
) -> dict[str, Any]:
    actions: list[dict[str, Any]] = [
        {
            "updateViewershipAction": {
                "viewCount": {
                    "videoViewCountRenderer": {"viewCount": {"simpleText": views}, "isLive": is_live}
                }
            }
        }
    ]
    if likes_label:
        actions.append(
            {
                "updateToggleButtonAction": {
                    "toggledButtons": [
                        {
                            "toggleButtonRenderer": {
                                "defaultText": {
                                    "accessibility": {"accessibilityData": {"label": likes_label}}
                                }
                            }
                        }
                    ]
                }
            }
        )
    if title:
        actions.append({"updateTitleAction": {"title": {"runs": [{"text": title}]}}})
    return {"actions": actions}


def next_response(
    title: str = "Backup Title",
    views: str = "5,000 views",
    likes_label: str = "42 likes",
    owner: str = "Backup Channel",
    is_live: bool = False,
) -> dict[str, Any]:
    return {
        "contents": {
            "twoColumnWatchNextResults": {
                "results": {
                    "results": {
                        "contents": [
                            {
                                "videoPrimaryInfoRenderer": {
                                    "title": {"runs": [{"text": title}]},
                                    "viewCount": {
                                        "videoViewCountRenderer": {
                                            "viewCount": {"simpleText": views},
                                            "isLive": is_live,
                                        }
                                    },
                                    "videoActions": {
                                        "menuRenderer": {
                                            "topLevelButtons": [
                                                {
                                                    "toggleButtonRenderer": {
                                                        "defaultIcon": {"iconType": "LIKE"},
                                                        "defaultText": {
                                                            "accessibility": {
                                                                "accessibilityData": {"label": likes_label}
                                                            }
                                                        },
                                                    }
                                                }
                                            ]
                                        }
                                    },
                                }
                            },
                            {
                                "videoSecondaryInfoRenderer": {
                                    "owner": {
                                        "videoOwnerRenderer": {"title": {"runs": [{"text": owner}]}}
                                    }
                                }
                            },
                        ]
                    }
                }
            }
        }
    }


def live_video_renderer(video_id: str, title: str = "Live now", watching: str = "1,500 watching") -> dict[str, Any]:
    return {
        "videoId": video_id,
        "title": {"runs": [{"text": title}]},
        "thumbnail": {
            "thumbnails": [
                {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg", "width": 120, "height": 90},
                {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg", "width": 480, "height": 360},
            ]
        },
        "viewCountText": {"runs": [{"text": watching}]},
        "badges": [
            {"metadataBadgeRenderer": {"style": "BADGE_STYLE_TYPE_LIVE_NOW", "label": "LIVE"}}
        ],
    }


def past_video_renderer(video_id: str) -> dict[str, Any]:
    return {
        "videoId": video_id,
        "title": {"runs": [{"text": "Yesterday's stream"}]},
        "viewCountText": {"simpleText": "10K views"},
        "thumbnailOverlays": [{"thumbnailOverlayTimeStatusRenderer": {"style": "DEFAULT"}}],
    }


def channel_page(renderers: list[dict[str, Any]], channel_name: str = "Test Channel") -> str:
    """A channel streams page with a rich grid of video renderers."""
    initial_data = {
        "contents": {
            "twoColumnBrowseResultsRenderer": {
                "tabs": [
                    {"tabRenderer": {"title": "Home", "content": {"sectionListRenderer": {"contents": []}}}},
                    {
                        "tabRenderer": {
                            "title": "Live",
                            "selected": True,
                            "content": {
                                "richGridRenderer": {
                                    "contents": [
                                        {"richItemRenderer": {"content": {"videoRenderer": r}}}
                                        for r in renderers
                                    ]
                                }
                            },
                        }
                    },
                ]
            }
        }
    }
    return (
        "<html><head>"
        f'<meta property="og:title" content="{channel_name}">'
        "</head><body>"
        f"<script>var ytInitialData = {json.dumps(initial_data)};</script>"
        "</body></html>"
    )
