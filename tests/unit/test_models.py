"""
Unit tests for the video domain models.

These tests verify the core business rules without touching
external services (no Azure calls, no HTTP, no file system).

Testing philosophy:
- Test behavior, not implementation
- Each test should have a clear "given/when/then" structure
- Use descriptive names that explain what we're testing
- Prefer real objects over mocks where practical
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.videos.models import (
    DEFAULT_TITLE,
    StatusTransitionError,
    VideoRecord,
    VideoStatus,
    format_timestamp,
    parse_timestamp,
)


T0 = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Timestamp Tests
# ---------------------------------------------------------------------------

class TestTimestamps:
    """Tests for ISO-8601 serialisation of record times."""

    def test_format_uses_milliseconds_and_z_suffix(self):
        """Stored times look like JavaScript's toISOString output."""
        assert format_timestamp(T0) == "2024-05-01T12:00:00.123Z"

    def test_format_converts_to_utc(self):
        """Offsets are normalised so lexical order matches time order."""
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2024, 5, 1, 14, 0, 0, tzinfo=plus_two)

        assert format_timestamp(local) == "2024-05-01T12:00:00.000Z"

    def test_parse_accepts_z_suffix(self):
        parsed = parse_timestamp("2024-05-01T12:00:00.123Z")

        assert parsed == datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)

    def test_parse_assumes_utc_for_naive_values(self):
        parsed = parse_timestamp("2024-05-01T12:00:00")

        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    def test_lexical_order_matches_chronological_order(self):
        earlier = format_timestamp(T0)
        later = format_timestamp(T0 + timedelta(milliseconds=5))

        assert earlier < later


# ---------------------------------------------------------------------------
# Status Tests
# ---------------------------------------------------------------------------

class TestVideoStatus:
    """Tests for the forward-only status machine."""

    def test_values_match_stored_strings(self):
        assert VideoStatus.SAS_GENERATED.value == "sas-generated"
        assert VideoStatus.UPLOADED.value == "uploaded"

    def test_forward_transition_allowed(self):
        assert VideoStatus.SAS_GENERATED.can_transition_to(VideoStatus.UPLOADED)

    def test_same_state_allowed(self):
        """Re-confirming an uploaded video is fine."""
        assert VideoStatus.UPLOADED.can_transition_to(VideoStatus.UPLOADED)

    def test_backward_transition_refused(self):
        assert not VideoStatus.UPLOADED.can_transition_to(VideoStatus.SAS_GENERATED)


# ---------------------------------------------------------------------------
# VideoRecord Tests
# ---------------------------------------------------------------------------

class TestVideoRecord:
    """Tests for the VideoRecord entity."""

    def test_provisional_record_starts_sas_generated(self):
        record = VideoRecord.provisional("clip.mp4", "My clip", T0)

        assert record.status is VideoStatus.SAS_GENERATED
        assert record.upload_time == T0
        assert record.last_updated is None
        assert not record.is_uploaded

    def test_rejects_empty_id(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            VideoRecord(id="", title="x", upload_time=T0)

    def test_mark_uploaded_keeps_upload_time(self):
        """upload_time is set once at creation and never overwritten."""
        record = VideoRecord.provisional("clip.mp4", "My clip", T0)
        later = T0 + timedelta(minutes=3)

        record.mark_uploaded(later)

        assert record.is_uploaded
        assert record.upload_time == T0
        assert record.last_updated == later
        assert record.title == "My clip"

    def test_mark_uploaded_overwrites_title_when_given(self):
        record = VideoRecord.provisional("clip.mp4", "Old", T0)

        record.mark_uploaded(T0, title="New")

        assert record.title == "New"

    def test_mark_uploaded_ignores_empty_title(self):
        record = VideoRecord.provisional("clip.mp4", "Old", T0)

        record.mark_uploaded(T0, title="")

        assert record.title == "Old"

    def test_cannot_regress_to_sas_generated(self):
        record = VideoRecord.provisional("clip.mp4", "My clip", T0)
        record.mark_uploaded(T0)

        with pytest.raises(StatusTransitionError):
            record.advance_to(VideoStatus.SAS_GENERATED, T0)

        assert record.is_uploaded


class TestVideoRecordDocuments:
    """Tests for the stored/API document shape."""

    def test_document_omits_last_updated_until_set(self):
        record = VideoRecord.provisional("clip.mp4", "My clip", T0)

        assert record.to_document() == {
            "id": "clip.mp4",
            "title": "My clip",
            "uploadTime": "2024-05-01T12:00:00.123Z",
            "status": "sas-generated",
        }

    def test_document_includes_last_updated_after_mutation(self):
        record = VideoRecord.provisional("clip.mp4", "My clip", T0)
        record.mark_uploaded(T0 + timedelta(seconds=1))

        document = record.to_document()

        assert document["status"] == "uploaded"
        assert document["lastUpdated"] == "2024-05-01T12:00:01.123Z"

    def test_from_document_ignores_store_system_fields(self):
        document = {
            "id": "clip.mp4",
            "title": "My clip",
            "uploadTime": "2024-05-01T12:00:00.123Z",
            "status": "uploaded",
            "lastUpdated": "2024-05-01T12:05:00.000Z",
            "_rid": "abc==",
            "_etag": "\"0000\"",
            "_ts": 1714564800,
        }

        record = VideoRecord.from_document(document)

        assert record.to_document() == {
            key: value for key, value in document.items() if not key.startswith("_")
        }

    def test_from_document_fills_missing_title(self):
        record = VideoRecord.from_document({
            "id": "clip.mp4",
            "uploadTime": "2024-05-01T12:00:00.000Z",
            "status": "uploaded",
        })

        assert record.title == DEFAULT_TITLE

    def test_from_document_without_upload_time_leaves_it_unset(self):
        document = {"id": "legacy.mp4", "title": "Legacy", "status": "uploaded"}

        first = VideoRecord.from_document(document)
        second = VideoRecord.from_document(document)

        assert first.upload_time is None
        assert first.to_document() == second.to_document() == document

    def test_mutation_stamps_missing_upload_time(self):
        record = VideoRecord.from_document({"id": "legacy.mp4", "status": "sas-generated"})

        record.mark_uploaded(T0)

        assert record.upload_time == T0
        assert record.to_document()["uploadTime"] == "2024-05-01T12:00:00.123Z"

    def test_unknown_properties_survive_round_trip(self):
        document = {
            "id": "clip.mp4",
            "title": "My clip",
            "uploadTime": "2024-05-01T12:00:00.123Z",
            "status": "sas-generated",
            "sizeBytes": 42,
            "tags": ["swim"],
            "_etag": "\"0000\"",
        }

        record = VideoRecord.from_document(document)
        record.mark_uploaded(T0 + timedelta(minutes=1))
        stored = record.to_document()

        assert record.extra == {"sizeBytes": 42, "tags": ["swim"]}
        assert stored["sizeBytes"] == 42
        assert stored["tags"] == ["swim"]
        assert stored["status"] == "uploaded"
        assert "_etag" not in stored

    def test_from_document_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            VideoRecord.from_document({"id": "clip.mp4", "status": "processing"})
