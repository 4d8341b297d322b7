"""
HTTP tests for the video lifecycle endpoints.

These run the full stack (routes, dependencies, coordinator, repository)
against the in-memory stores. "Uploading" means putting bytes into the
shared mock object store, standing in for the browser's PUT.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from src.api.dependencies import (
    get_mock_cosmos_container,
    get_mock_object_store,
    get_video_lifecycle,
)
from src.core.videos.lifecycle import VideoLifecycle
from src.infrastructure.storage.client import MockObjectStore
from src.infrastructure.storage.sas import MockCredentialIssuer


def upload_bytes(name: str, data: bytes = b"video bytes") -> None:
    get_mock_object_store().put(name, data)


class BrokenRepository:
    """Metadata store whose every call fails."""

    def _fail(self, *args, **kwargs):
        raise RuntimeError("cosmos unavailable")

    upsert = get_by_id = list_all = delete_by_id = _fail


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

def test_root_reports_running(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "Video API is running" in response.text


def test_unknown_route_uses_error_shape(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert "error" in response.json()


# ---------------------------------------------------------------------------
# POST /upload-request
# ---------------------------------------------------------------------------

class TestUploadRequest:

    def test_returns_upload_url(self, client):
        response = client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        assert response.status_code == 200
        body = response.json()
        assert body["fileName"] == "f.mp4"
        assert body["message"] == "SAS token generated and metadata stored"
        assert body["uploadHeaders"] == {"x-ms-blob-type": "BlockBlob"}
        params = parse_qs(urlparse(body["uploadUrl"]).query)
        assert params["sp"] == ["cw"]

    def test_creates_provisional_record(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        videos = client.get("/videos").json()

        assert len(videos) == 1
        assert videos[0]["id"] == "f.mp4"
        assert videos[0]["title"] == "T"
        assert videos[0]["status"] == "sas-generated"
        assert "lastUpdated" not in videos[0]

    @pytest.mark.parametrize("body", [
        {"title": "T"},
        {"fileName": "f.mp4"},
        {"title": "", "fileName": "f.mp4"},
        {},
    ])
    def test_missing_fields_are_400(self, client, body):
        response = client.post("/upload-request", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing title or fileName"}

    def test_missing_body_is_400(self, client):
        response = client.post("/upload-request")

        assert response.status_code == 400
        assert response.json()["error"] == "Missing title or fileName"

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/upload-request",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_unconfigured_storage_is_500(self, client_factory):
        client = client_factory(storage_mock_mode=False)

        response = client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        assert response.status_code == 500
        assert response.json() == {"error": "Storage account is not configured"}

    def test_unconfigured_cosmos_is_500(self, client_factory):
        client = client_factory(cosmos_mock_mode=False)

        response = client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        assert response.status_code == 500
        assert response.json() == {"error": "Cosmos DB is not configured"}


# ---------------------------------------------------------------------------
# POST /confirm-upload
# ---------------------------------------------------------------------------

class TestConfirmUpload:

    def test_confirms_by_file_name(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})
        original = client.get("/videos").json()[0]

        response = client.post("/confirm-upload", json={"fileName": "f.mp4"})

        assert response.status_code == 200
        assert response.json() == {
            "message": "Upload confirmed and metadata updated",
            "fileName": "f.mp4",
        }
        video = client.get("/videos").json()[0]
        assert video["status"] == "uploaded"
        assert video["uploadTime"] == original["uploadTime"]
        assert video["title"] == "T"
        assert "lastUpdated" in video

    def test_confirms_by_id_with_new_title(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        client.post("/confirm-upload", json={"id": "f.mp4", "title": "Renamed"})

        assert client.get("/videos").json()[0]["title"] == "Renamed"

    def test_without_prior_request_uses_defaults(self, client):
        response = client.post("/confirm-upload", json={"id": "orphan.mp4"})

        assert response.status_code == 200
        video = client.get("/videos").json()[0]
        assert video["id"] == "orphan.mp4"
        assert video["title"] == "Untitled video"
        assert video["status"] == "uploaded"

    def test_keeps_properties_stored_by_other_clients(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})
        container = get_mock_cosmos_container()
        stored = container.read_item(item="f.mp4", partition_key="f.mp4")
        container.upsert_item(body={**stored, "sizeBytes": 42})

        response = client.post("/confirm-upload", json={"id": "f.mp4"})

        assert response.status_code == 200
        document = container.read_item(item="f.mp4", partition_key="f.mp4")
        assert document["sizeBytes"] == 42
        assert document["status"] == "uploaded"

    def test_missing_key_is_400(self, client):
        response = client.post("/confirm-upload", json={"title": "T"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing fileName (or id)"}

    def test_strict_variant_rejects_missing_blob(self, client_factory):
        client = client_factory(verify_blob_on_confirm=True)
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        response = client.post("/confirm-upload", json={"fileName": "f.mp4"})

        assert response.status_code == 404
        assert client.get("/videos").json()[0]["status"] == "sas-generated"

    def test_strict_variant_accepts_uploaded_blob(self, client_factory):
        client = client_factory(verify_blob_on_confirm=True)
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})
        upload_bytes("f.mp4")

        response = client.post("/confirm-upload", json={"fileName": "f.mp4"})

        assert response.status_code == 200


# ---------------------------------------------------------------------------
# GET /videos
# ---------------------------------------------------------------------------

class TestListVideos:

    def test_empty_list(self, client):
        response = client.get("/videos")

        assert response.status_code == 200
        assert response.json() == []

    def test_newest_first(self, client):
        for name in ["t1.mp4", "t2.mp4", "t3.mp4"]:
            client.post("/upload-request", json={"title": name, "fileName": name})

        videos = client.get("/videos").json()

        # Exact ordering is covered with a fixed clock in the unit tests
        upload_times = [video["uploadTime"] for video in videos]
        assert upload_times == sorted(upload_times, reverse=True)
        assert {video["id"] for video in videos} == {"t1.mp4", "t2.mp4", "t3.mp4"}

    def test_unreadable_record_does_not_hide_the_rest(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})
        get_mock_cosmos_container().upsert_item(body={
            "id": "other.mp4",
            "title": "Other",
            "uploadTime": "2024-05-01T12:00:00.000Z",
            "status": "processing",
        })

        response = client.get("/videos")

        assert response.status_code == 200
        assert [video["id"] for video in response.json()] == ["f.mp4"]

    def test_record_without_upload_time_lists_the_same_every_time(self, client):
        get_mock_cosmos_container().upsert_item(
            body={"id": "legacy.mp4", "title": "Legacy", "status": "uploaded"}
        )

        first = client.get("/videos").json()
        second = client.get("/videos").json()

        assert first == second == [{"id": "legacy.mp4", "title": "Legacy", "status": "uploaded"}]

    def test_store_failure_is_500(self, client):
        client.app.dependency_overrides[get_video_lifecycle] = lambda: VideoLifecycle(
            BrokenRepository(), MockObjectStore(), MockCredentialIssuer()
        )

        response = client.get("/videos")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch videos"}


# ---------------------------------------------------------------------------
# GET /videos/{id}/download
# ---------------------------------------------------------------------------

class TestDownloadLink:

    def test_returns_read_url(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})
        upload_bytes("f.mp4")

        response = client.get("/videos/f.mp4/download")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "f.mp4"
        assert body["expiresInMinutes"] == 10
        assert parse_qs(urlparse(body["downloadUrl"]).query)["sp"] == ["r"]

    def test_missing_record_is_404(self, client):
        upload_bytes("f.mp4")

        response = client.get("/videos/f.mp4/download")

        assert response.status_code == 404
        assert response.json() == {"error": "Video not found"}

    def test_missing_blob_is_404(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})

        response = client.get("/videos/f.mp4/download")

        assert response.status_code == 404
        assert response.json() == {"error": "Video file not found in blob storage"}

    def test_nested_blob_names(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "2024/f.mp4"})
        upload_bytes("2024/f.mp4")

        response = client.get("/videos/2024/f.mp4/download")

        assert response.status_code == 200
        assert response.json()["id"] == "2024/f.mp4"


# ---------------------------------------------------------------------------
# DELETE /videos/{id}
# ---------------------------------------------------------------------------

class TestDeleteVideo:

    def test_delete_twice(self, client):
        client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"})
        upload_bytes("f.mp4")

        first = client.delete("/videos/f.mp4")
        second = client.delete("/videos/f.mp4")

        assert first.status_code == 200
        assert first.json() == {
            "message": "Video deleted (metadata and blob where present)",
            "blobDeleted": True,
        }
        assert second.status_code == 200
        assert second.json()["blobDeleted"] is False
        assert client.get("/videos").json() == []

    def test_empty_id_is_404(self, client):
        response = client.delete("/videos/")

        assert response.status_code == 404
        assert response.json() == {"error": "Video not found"}

    def test_metadata_failure_still_succeeds(self, client):
        store = MockObjectStore()
        store.put("f.mp4", b"bytes")
        client.app.dependency_overrides[get_video_lifecycle] = lambda: VideoLifecycle(
            BrokenRepository(), store, MockCredentialIssuer()
        )

        response = client.delete("/videos/f.mp4")

        assert response.status_code == 200
        assert response.json()["blobDeleted"] is True


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------

def test_round_trip(client):
    assert client.post("/upload-request", json={"title": "T", "fileName": "f.mp4"}).status_code == 200
    upload_bytes("f.mp4")
    assert client.post("/confirm-upload", json={"id": "f.mp4"}).status_code == 200

    download = client.get("/videos/f.mp4/download")
    assert download.status_code == 200
    assert download.json()["downloadUrl"]

    assert client.delete("/videos/f.mp4").status_code == 200
    assert client.get("/videos/f.mp4/download").status_code == 404


def test_without_metadata_config_every_metadata_operation_is_500(unconfigured_client):
    """No credentials at all: errors are reported, the process keeps serving."""
    calls = [
        lambda c: c.post("/upload-request", json={"title": "T", "fileName": "f.mp4"}),
        lambda c: c.post("/confirm-upload", json={"fileName": "f.mp4"}),
        lambda c: c.get("/videos"),
        lambda c: c.get("/videos/f.mp4/download"),
        lambda c: c.delete("/videos/f.mp4"),
    ]

    for call in calls:
        response = call(unconfigured_client)
        assert response.status_code == 500
        assert "error" in response.json()

    assert unconfigured_client.get("/").status_code == 200


def test_malformed_cosmos_connection_is_reported_as_not_configured(client_factory):
    # Missing AccountEndpoint, rejected by the SDK's connection string parser
    client = client_factory(cosmos_mock_mode=False, cosmos_db_connection="AccountKey=a2V5;")

    response = client.get("/videos")

    assert response.status_code == 500
    assert response.json() == {"error": "Cosmos DB is not configured"}
