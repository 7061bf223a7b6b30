"""Normalization of raw live chat items into ChatMessage records."""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from ytchat.models.schemas import ChatMessage, Emoji, SourceVideo, UserType
from ytchat.services.youtube.parsing import best_thumbnail, dig, text_of

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

PAID_PREFIX = "💰"
MEMBERSHIP_PREFIX = "🎖️"


class RendererKind(str, Enum):
    """Chat item variants, keyed by their renderer field name."""

    TEXT = "liveChatTextMessageRenderer"
    PAID_MESSAGE = "liveChatPaidMessageRenderer"
    PAID_STICKER = "liveChatPaidStickerRenderer"
    MEMBERSHIP = "liveChatMembershipItemRenderer"


@dataclass
class RawChatItem:
    """A chat item tagged with its renderer variant."""

    kind: RendererKind
    renderer: dict[str, Any]


@dataclass
class MessageBody:
    """Message text with emoji placeholders, plus the emojis referenced."""

    text: str = ""
    emojis: list[Emoji] = field(default_factory=list)


def classify(item: dict[str, Any]) -> RawChatItem | None:
    """Identify the renderer variant of a raw chat item, if supported."""
    for kind in RendererKind:
        renderer = item.get(kind.value)
        if isinstance(renderer, dict):
            return RawChatItem(kind=kind, renderer=renderer)
    return None


# =============================================================================
# Runs and emojis
# =============================================================================


def parse_emoji(emoji: dict[str, Any], fallback_id: str) -> Emoji | None:
    """Build an emoji record; None when no image URL is available."""
    emoji_id = emoji.get("emojiId") or fallback_id
    url = best_thumbnail(dig(emoji, "image", "thumbnails"))
    if not url:
        return None
    shortcuts = emoji.get("shortcuts") or []
    label = (
        dig(emoji, "image", "accessibility", "accessibilityData", "label")
        or (shortcuts[0] if shortcuts else None)
        or emoji_id
    )
    return Emoji(emoji_id=emoji_id, url=url, label=label)


def parse_runs(node: Any) -> MessageBody:
    """Concatenate text runs; emoji runs contribute their id as a placeholder."""
    body = MessageBody()
    if isinstance(node, str):
        body.text = node
        return body
    if not isinstance(node, dict):
        return body

    runs = node.get("runs")
    if not isinstance(runs, list):
        body.text = text_of(node)
        return body

    parts: list[str] = []
    for index, run in enumerate(runs):
        if not isinstance(run, dict):
            continue
        if "text" in run:
            parts.append(str(run["text"]))
        elif isinstance(run.get("emoji"), dict):
            emoji_id = run["emoji"].get("emojiId") or f"emoji-{index}"
            parts.append(emoji_id)
            emoji = parse_emoji(run["emoji"], emoji_id)
            if emoji is not None:
                body.emojis.append(emoji)
    body.text = "".join(parts)
    return body


def _prefixed(prefix: str, body_text: str) -> str:
    return f"{prefix}: {body_text}" if body_text else prefix


# =============================================================================
# Variant formatters
# =============================================================================


def format_text_message(renderer: dict[str, Any]) -> MessageBody:
    return parse_runs(renderer.get("message"))


def format_paid_message(renderer: dict[str, Any]) -> MessageBody:
    """Super Chat: the purchase amount prefixes the message."""
    body = parse_runs(renderer.get("message"))
    amount = text_of(renderer.get("purchaseAmountText"))
    if amount:
        body.text = _prefixed(f"{PAID_PREFIX} {amount}", body.text)
    return body


def format_paid_sticker(renderer: dict[str, Any]) -> MessageBody:
    """Super Sticker: the amount plus the sticker's description."""
    amount = text_of(renderer.get("purchaseAmountText"))
    label = dig(renderer, "sticker", "accessibility", "accessibilityData", "label") or ""
    if not amount:
        return MessageBody(text=label)
    return MessageBody(text=_prefixed(f"{PAID_PREFIX} {amount}", label))


def format_membership(renderer: dict[str, Any]) -> MessageBody:
    """Membership event: the header subtext (e.g. "Welcome to ...") prefixes any message."""
    body = parse_runs(renderer.get("message"))
    header = text_of(renderer.get("headerSubtext")) or text_of(renderer.get("headerPrimaryText"))
    if header:
        body.text = _prefixed(f"{MEMBERSHIP_PREFIX} {header}", body.text)
    return body


VARIANT_FORMATTERS: dict[RendererKind, Callable[[dict[str, Any]], MessageBody]] = {
    RendererKind.TEXT: format_text_message,
    RendererKind.PAID_MESSAGE: format_paid_message,
    RendererKind.PAID_STICKER: format_paid_sticker,
    RendererKind.MEMBERSHIP: format_membership,
}


# =============================================================================
# Author, role and timestamp
# =============================================================================


def _badge_texts(badge: dict[str, Any]) -> list[str]:
    renderer = badge.get("liveChatAuthorBadgeRenderer") or {}
    return [
        str(value).lower()
        for value in (
            renderer.get("tooltip"),
            dig(renderer, "icon", "iconType"),
            dig(renderer, "accessibility", "accessibilityData", "label"),
        )
        if value
    ]


def resolve_user_type(badges: Iterable[Any] | None) -> UserType:
    """Derive the author role from badges: owner > moderator > member > regular.

    An owner badge wins wherever it appears; every badge is scanned before a
    lower role is chosen.
    """
    found: set[UserType] = set()
    for badge in badges or []:
        if not isinstance(badge, dict):
            continue
        for text in _badge_texts(badge):
            if "owner" in text:
                return UserType.OWNER
            if "moderator" in text:
                found.add(UserType.MODERATOR)
            elif "member" in text:
                found.add(UserType.MEMBER)

    for role in (UserType.MODERATOR, UserType.MEMBER):
        if role in found:
            return role
    return UserType.REGULAR


def parse_timestamp(renderer: dict[str, Any]) -> datetime:
    """Convert ``timestampUsec`` to a UTC datetime, defaulting to now.

    Truncated to milliseconds, the precision timestamps are serialized with,
    so a client cursor echoed back compares equal to its message.
    """
    raw = renderer.get("timestampUsec")
    if raw is not None:
        try:
            return _EPOCH + timedelta(milliseconds=int(raw) // 1000)
        except (TypeError, ValueError, OverflowError):
            logger.debug(f"Unparseable timestampUsec {raw!r}, using current time")
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def parse_author_name(renderer: dict[str, Any]) -> str:
    return text_of(renderer.get("authorName")) or "Anonymous"


# =============================================================================
# Entry points
# =============================================================================


def normalize_item(item: dict[str, Any], source: SourceVideo) -> ChatMessage | None:
    """Normalize one raw chat item.

    Returns None for unsupported variants and for messages with neither
    text nor emojis.
    """
    tagged = classify(item)
    if tagged is None:
        return None

    renderer = tagged.renderer
    body = VARIANT_FORMATTERS[tagged.kind](renderer)
    if not body.text.strip() and not body.emojis:
        return None

    return ChatMessage(
        id=renderer.get("id") or str(uuid.uuid4()),
        message=body.text,
        author_name=parse_author_name(renderer),
        author_channel_id=renderer.get("authorExternalChannelId") or "",
        timestamp=parse_timestamp(renderer),
        user_type=resolve_user_type(renderer.get("authorBadges")),
        profile_image=best_thumbnail(dig(renderer, "authorPhoto", "thumbnails")),
        emojis=body.emojis or None,
        source_video=source,
    )


def normalize_messages(raw_messages: Iterable[dict[str, Any]], source: SourceVideo) -> list[ChatMessage]:
    """Normalize a batch; a malformed item is logged and skipped."""
    messages: list[ChatMessage] = []
    skipped = 0
    for item in raw_messages:
        try:
            message = normalize_item(item, source)
        except Exception as e:
            logger.warning(f"Skipping malformed chat item from {source.id}: {e}")
            continue
        if message is None:
            skipped += 1
            continue
        messages.append(message)

    if skipped:
        logger.debug(f"Dropped {skipped} empty or unsupported chat items from {source.id}")
    return messages
