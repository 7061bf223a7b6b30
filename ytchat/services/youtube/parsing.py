"""Helpers for probing YouTube's nested, unversioned JSON shapes.

YouTube moves fields around without notice, so every datum is read through
an ordered list of small extraction strategies; the first one that yields a
value wins. Strategies are pure ``(payload) -> value | None`` functions so
each fallback path can be tested on its own.
"""

import json
import re
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")

Strategy = Callable[[Any], T | None]

_DECODER = json.JSONDecoder()

_ABBREVIATED_COUNT = re.compile(r"([\d.,]+)\s*([KMB])\b", re.IGNORECASE)
_DIGITS = re.compile(r"\d[\d,.\s]*")
_MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}


def dig(obj: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def first_of(strategies: Iterable[Strategy[T]], payload: Any) -> T | None:
    """Apply strategies in priority order; the first non-empty result wins."""
    for strategy in strategies:
        value = strategy(payload)
        if value is not None and value != "":
            return value
    return None


def text_of(node: Any) -> str:
    """Flatten a YouTube text node (``simpleText`` or ``runs``) to a string."""
    if isinstance(node, str):
        return node
    if not isinstance(node, dict):
        return ""
    if isinstance(node.get("simpleText"), str):
        return node["simpleText"]
    if isinstance(node.get("content"), str):
        return node["content"]
    runs = node.get("runs")
    if isinstance(runs, list):
        return "".join(run.get("text", "") for run in runs if isinstance(run, dict))
    return ""


def best_thumbnail(thumbnails: Sequence[dict[str, Any]] | None) -> str | None:
    """Select the highest resolution thumbnail URL.

    Thumbnails without dimensions score 0, so when none carry sizes the
    last entry (YouTube lists them smallest first) is used.
    """
    if not thumbnails:
        return None

    best: str | None = None
    best_score = -1
    for thumb in thumbnails:
        if not isinstance(thumb, dict):
            continue
        url = thumb.get("url") or ""
        score = (thumb.get("width") or 0) * (thumb.get("height") or 0)
        if url and score >= best_score:
            best_score = score
            best = url
    if best and best.startswith("//"):
        best = f"https:{best}"
    return best


def parse_count(value: Any) -> int | None:
    """Parse a view/like count from any of YouTube's encodings.

    Accepts exact integers (``1234``), digit strings with separators
    (``"1,234"``, ``"1,234 watching now"``) and abbreviated strings
    (``"19K"``, ``"1.2M"``), which are expanded approximately.
    Returns None when no number is present.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    abbreviated = _ABBREVIATED_COUNT.search(text)
    if abbreviated:
        number = abbreviated.group(1).replace(",", ".")
        try:
            base = float(number)
        except ValueError:
            base = None
        if base is not None:
            return int(round(base * _MULTIPLIERS[abbreviated.group(2).upper()]))

    match = _DIGITS.search(text)
    if not match:
        return None
    digits = re.sub(r"\D", "", match.group(0))
    return int(digits) if digits else None


def extract_json_after(html: str, markers: Iterable[str | re.Pattern[str]]) -> dict[str, Any] | None:
    """Decode the JSON object that follows the first matching marker.

    Markers are literal prefixes (``'var ytInitialData = '``) or compiled
    patterns; decoding starts at the first ``{`` after the marker and stops at
    the end of the object, so trailing script text is ignored.
    """
    for marker in markers:
        if isinstance(marker, re.Pattern):
            match = marker.search(html)
            if not match:
                continue
            start = match.end()
        else:
            index = html.find(marker)
            if index == -1:
                continue
            start = index + len(marker)

        brace = html.find("{", start)
        if brace == -1:
            continue
        try:
            obj, _ = _DECODER.raw_decode(html, brace)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            return obj
    return None


def extract_all_json_after(html: str, pattern: re.Pattern[str]) -> list[dict[str, Any]]:
    """Decode every JSON object following each match of ``pattern``."""
    objects: list[dict[str, Any]] = []
    for match in pattern.finditer(html):
        brace = html.find("{", match.end())
        if brace == -1:
            continue
        try:
            obj, _ = _DECODER.raw_decode(html, brace)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            objects.append(obj)
    return objects
