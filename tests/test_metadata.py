"""Tests for video metadata fetching and normalization."""

import pytest

from payloads import next_response, updated_metadata_response, watch_page
from ytchat.services.youtube.metadata import MetadataFields, parse_backup, parse_primary

VIDEO_ID = "abc12345678"
VIDEO_URL = f"https://www.youtube.com/watch?v={VIDEO_ID}"
PRIMARY = "updated_metadata"
BACKUP = "next"


def like_entity_response(**entity) -> dict:
    return {
        "frameworkUpdates": {
            "entityBatchUpdate": {"mutations": [{"payload": {"likeCountEntity": entity}}]}
        }
    }


class TestParsePrimary:
    """Tests for updated_metadata parsing."""

    def test_fields(self):
        fields = parse_primary(updated_metadata_response())

        assert fields.view_count == 1234
        assert fields.like_count == 1234
        assert fields.title == "Primary Title"
        assert fields.is_live is True

    def test_alternative_like_button(self):
        data = {
            "actions": [
                {"updateButtonAction": {"button": {"toggleButtonRenderer": {"defaultText": {"simpleText": "19K"}}}}}
            ]
        }
        assert parse_primary(data).like_count == 19000

    @pytest.mark.parametrize(
        ("entity", "expected"),
        [
            ({"likeCountIfIndifferentNumber": "1234"}, 1234),
            ({"expandedLikeCountIfIndifferent": {"content": "1,234"}}, 1234),
            ({"likeCountIfIndifferent": {"content": "19K"}}, 19000),
        ],
    )
    def test_framework_like_counts(self, entity, expected):
        assert parse_primary({"actions": [], **like_entity_response(**entity)}).like_count == expected

    def test_exact_like_count_preferred(self):
        data = like_entity_response(
            likeCountIfIndifferentNumber="19234",
            likeCountIfIndifferent={"content": "19K"},
        )
        assert parse_primary(data).like_count == 19234

    def test_empty(self):
        assert parse_primary({}) == MetadataFields()


class TestParseBackup:
    """Tests for next endpoint parsing."""

    def test_fields(self):
        fields = parse_backup(next_response(is_live=True))

        assert fields.title == "Backup Title"
        assert fields.view_count == 5000
        assert fields.like_count == 42
        assert fields.channel_name == "Backup Channel"
        assert fields.is_live is True


class TestMetadataFields:
    """Tests for merging endpoint results."""

    def test_primary_preferred(self):
        primary = MetadataFields(title="P", view_count=10, like_count=0, is_live=False)
        backup = MetadataFields(title="B", view_count=20, like_count=5, is_live=True, channel_name="C")

        merged = primary.fill_from(backup)

        assert merged == MetadataFields(title="P", view_count=10, like_count=5, is_live=True, channel_name="C")


class TestMetadataFetcher:
    """Tests for MetadataFetcher.get_metadata."""

    @pytest.mark.asyncio
    async def test_primary_complete(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID))
        fake_youtube.api[PRIMARY] = updated_metadata_response()

        metadata = await service.metadata.get_metadata(VIDEO_URL)

        assert metadata.video_id == VIDEO_ID
        assert metadata.title == "Primary Title"
        assert metadata.view_count == 1234
        assert metadata.like_count == 1234
        assert metadata.is_live
        assert metadata.channel_name == "Test Channel"
        assert metadata.error is None
        assert fake_youtube.count(f"/{BACKUP}?") == 0

    @pytest.mark.asyncio
    async def test_backup_fills_gaps(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID))
        fake_youtube.api[PRIMARY] = updated_metadata_response(title=None, likes_label=None)
        fake_youtube.api[BACKUP] = next_response()

        metadata = await service.metadata.get_metadata(VIDEO_URL)

        assert metadata.title == "Backup Title"
        assert metadata.view_count == 1234
        assert metadata.like_count == 42

    @pytest.mark.asyncio
    async def test_backup_when_primary_fails(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID))
        fake_youtube.api[PRIMARY] = 500
        fake_youtube.api[BACKUP] = next_response()

        metadata = await service.metadata.get_metadata(VIDEO_URL)

        assert metadata.title == "Backup Title"
        assert metadata.view_count == 5000
        assert metadata.error is None

    @pytest.mark.asyncio
    async def test_works_without_live_chat(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID, continuation=None))
        fake_youtube.api[PRIMARY] = updated_metadata_response(is_live=False)

        metadata = await service.metadata.get_metadata(VIDEO_URL)

        assert metadata.error is None
        assert not metadata.is_live

    @pytest.mark.asyncio
    async def test_total_failure_never_raises(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, 404)

        metadata = await service.metadata.get_metadata(VIDEO_URL)

        assert metadata.view_count == 0
        assert metadata.like_count == 0
        assert metadata.is_live is False
        assert metadata.error

    @pytest.mark.asyncio
    async def test_both_endpoints_fail(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID))
        fake_youtube.api[PRIMARY] = 500
        fake_youtube.api[BACKUP] = 503

        metadata = await service.metadata.get_metadata(VIDEO_URL)

        assert metadata.view_count == 0
        assert metadata.error

    @pytest.mark.asyncio
    async def test_channel_name_cached(self, service, fake_youtube, clock):
        """A resolved channel name is preferred for 24 hours."""
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID, channel_name="Original Name"))
        fake_youtube.api[PRIMARY] = updated_metadata_response()

        first = await service.metadata.get_metadata(VIDEO_URL)
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID, channel_name="Renamed"))
        fake_youtube.api[BACKUP] = next_response(owner="Renamed")
        fake_youtube.api[PRIMARY] = updated_metadata_response(title=None)
        second = await service.metadata.get_metadata(VIDEO_URL)

        assert first.channel_name == "Original Name"
        assert second.channel_name == "Original Name"

        clock.advance(24 * 60 * 60)
        third = await service.metadata.get_metadata(VIDEO_URL)
        assert third.channel_name == "Renamed"


class TestGetVideoMetadata:
    """Tests for the aggregated metadata contract."""

    @pytest.mark.asyncio
    async def test_errors_collected(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, watch_page(VIDEO_ID))
        fake_youtube.api[PRIMARY] = updated_metadata_response()

        response = await service.get_video_metadata([VIDEO_URL, "https://example.com/x"])

        assert [m.video_id for m in response.metadata] == [VIDEO_ID]
        assert response.errors == ["Invalid YouTube URL: https://example.com/x"]

    @pytest.mark.asyncio
    async def test_failed_video_reported(self, service, fake_youtube):
        fake_youtube.add_watch_page(VIDEO_ID, 404)

        response = await service.get_video_metadata([VIDEO_URL])

        assert len(response.metadata) == 1
        assert response.metadata[0].error
        assert len(response.errors) == 1
