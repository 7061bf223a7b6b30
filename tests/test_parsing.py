"""Tests for JSON probing helpers and count parsing."""

import re

import pytest

from ytchat.services.youtube.parsing import (
    best_thumbnail,
    dig,
    extract_all_json_after,
    extract_json_after,
    first_of,
    parse_count,
    text_of,
)


class TestParseCount:
    """Tests for parse_count."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1,234", 1234),
            (1234, 1234),
            ("19K", 19000),
            ("1.2M", 1_200_000),
            ("3B", 3_000_000_000),
            ("1,234 watching now", 1234),
            ("like this video along with 5,678 other people", 5678),
            ("12 likes", 12),
        ],
    )
    def test_encodings(self, value, expected):
        """Exact, comma-formatted and abbreviated counts all parse."""
        assert parse_count(value) == expected

    @pytest.mark.parametrize("value", [None, "", "Like", True, {"a": 1}])
    def test_no_number(self, value):
        assert parse_count(value) is None

    def test_word_starting_with_suffix_letter_is_not_abbreviation(self):
        assert parse_count("5 Members") == 5


class TestDig:
    """Tests for dig."""

    def test_nested_path(self):
        data = {"a": {"b": [{"c": "found"}]}}
        assert dig(data, "a", "b", 0, "c") == "found"

    def test_missing_step(self):
        assert dig({"a": {}}, "a", "b", "c") is None

    def test_index_out_of_range(self):
        assert dig({"a": []}, "a", 0) is None

    def test_wrong_type(self):
        assert dig({"a": "text"}, "a", "b") is None


class TestFirstOf:
    """Tests for strategy lists."""

    def test_first_non_empty_wins(self):
        strategies = [lambda d: None, lambda d: "", lambda d: d["x"], lambda d: "later"]
        assert first_of(strategies, {"x": "value"}) == "value"

    def test_all_empty(self):
        assert first_of([lambda d: None], {}) is None

    def test_zero_is_a_value(self):
        assert first_of([lambda d: 0, lambda d: 5], {}) == 0


class TestTextOf:
    """Tests for text_of."""

    def test_simple_text(self):
        assert text_of({"simpleText": "hi"}) == "hi"

    def test_runs(self):
        assert text_of({"runs": [{"text": "a"}, {"text": "b"}]}) == "ab"

    def test_garbage(self):
        assert text_of(None) == ""
        assert text_of(42) == ""


class TestBestThumbnail:
    """Tests for best_thumbnail."""

    def test_largest_wins(self):
        thumbs = [
            {"url": "https://big", "width": 400, "height": 400},
            {"url": "https://small", "width": 32, "height": 32},
        ]
        assert best_thumbnail(thumbs) == "https://big"

    def test_last_without_sizes(self):
        assert best_thumbnail([{"url": "https://a"}, {"url": "https://b"}]) == "https://b"

    def test_protocol_relative(self):
        assert best_thumbnail([{"url": "//yt3.ggpht.com/x"}]) == "https://yt3.ggpht.com/x"

    def test_empty(self):
        assert best_thumbnail([]) is None
        assert best_thumbnail(None) is None


class TestJsonExtraction:
    """Tests for decoding JSON blobs embedded in HTML."""

    def test_stops_at_end_of_object(self):
        html = 'var ytInitialData = {"a": {"b": "};"}};</script><script>var x = {"c": 1};'
        assert extract_json_after(html, ["var ytInitialData = "]) == {"a": {"b": "};"}}

    def test_tries_markers_in_order(self):
        html = 'window["ytInitialData"] = {"n": 2};'
        markers = ["var ytInitialData = ", re.compile(r'window\["ytInitialData"\]\s*=\s*')]
        assert extract_json_after(html, markers) == {"n": 2}

    def test_no_marker(self):
        assert extract_json_after("<html></html>", ["var ytInitialData = "]) is None

    def test_malformed_blob_skipped(self):
        assert extract_json_after("var ytInitialData = {broken", ["var ytInitialData = "]) is None

    def test_all_blobs(self):
        html = 'ytcfg.set({"A": 1}); ytcfg.set({"B": 2});'
        blobs = extract_all_json_after(html, re.compile(r"ytcfg\.set\("))
        assert blobs == [{"A": 1}, {"B": 2}]
