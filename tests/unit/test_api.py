"""
API tests for the image routes and health checks.

The app runs against a fresh in-memory storage client per test, wired in
with app.dependency_overrides.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from gallery.api.dependencies import get_storage_client
from gallery.config.settings import MOCK_OBJECTS_PATH, Settings, get_settings
from gallery.infrastructure.storage.client import MockStorageClient, StorageError
from gallery.main import create_app

API = "/api/v1/images"
PNG = b"\x89PNG\r\n\x1a\nfake-image-bytes"


@pytest.fixture
def storage():
    return MockStorageClient(base_url=MOCK_OBJECTS_PATH)


@pytest.fixture
def settings():
    return Settings(_env_file=None, storage_mock_mode=True, max_upload_size_mb=1)


@pytest.fixture
def client(storage, settings):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_storage_client] = lambda: storage
    with TestClient(app) as c:
        yield c


def upload(client, filename="cat.png", data=PNG, content_type="image/png"):
    return client.post(API, files={"file": (filename, data, content_type)})


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

class TestListImages:

    def test_empty_gallery(self, client):
        response = client.get(API)

        assert response.status_code == 200
        assert response.json() == {"images": [], "loading": False, "error": None}

    def test_lists_uploaded_images(self, client):
        first = upload(client, "a.png").json()["url"]
        second = upload(client, "b.png").json()["url"]

        response = client.get(API)

        assert response.json()["images"] == [first, second]

    def test_storage_failure_degrades_to_empty_list(self, client, storage):
        upload(client)
        storage.list_objects = AsyncMock(side_effect=StorageError("list failed"))

        response = client.get(API)

        assert response.status_code == 200
        body = response.json()
        assert body["images"] == []
        assert body["loading"] is False
        assert "list failed" in body["error"]


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

class TestUploadImage:

    def test_upload_returns_url_under_objects_route(self, client):
        response = upload(client, "cat.png")

        assert response.status_code == 201
        body = response.json()
        assert body["filename"] == "cat.png"
        assert body["object_name"].startswith("images/cat.png")
        assert body["url"] == f"{MOCK_OBJECTS_PATH}/{body['object_name']}"

    def test_uploaded_url_serves_the_image(self, client):
        url = upload(client).json()["url"]

        response = client.get(url)

        assert response.status_code == 200
        assert response.content == PNG
        assert response.headers["content-type"] == "image/png"

    def test_rejects_non_image_types(self, client):
        response = upload(client, "notes.txt", b"hello", "text/plain")
        assert response.status_code == 400

    def test_rejects_empty_files(self, client):
        response = upload(client, data=b"")
        assert response.status_code == 400

    def test_rejects_oversized_files(self, client):
        response = upload(client, data=b"x" * (1024 * 1024 + 1))
        assert response.status_code == 413

    def test_storage_failure_returns_502(self, client, storage):
        storage.upload_object = AsyncMock(side_effect=StorageError("down"))

        response = upload(client)

        assert response.status_code == 502


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

class TestDeleteImage:

    def test_delete_removes_image(self, client):
        body = upload(client).json()

        response = client.delete(API, params={"url": body["url"]})

        assert response.status_code == 200
        assert response.json() == {"url": body["url"], "object_name": body["object_name"]}
        assert client.get(API).json()["images"] == []

    def test_foreign_url_returns_404(self, client):
        response = client.delete(API, params={"url": "https://elsewhere.example.com/a.png"})
        assert response.status_code == 404

    def test_storage_failure_returns_502_and_keeps_image(self, client, storage):
        url = upload(client).json()["url"]
        storage.delete_object = AsyncMock(side_effect=StorageError("denied"))

        response = client.delete(API, params={"url": url})

        assert response.status_code == 502
        assert client.get(API).json()["images"] == [url]


# ---------------------------------------------------------------------------
# View / Download / Objects
# ---------------------------------------------------------------------------

class TestViewAndDownload:

    def test_view_redirects_to_image(self, client):
        url = upload(client).json()["url"]

        response = client.get(f"{API}/view", params={"url": url}, follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == url

    def test_view_refuses_foreign_urls(self, client):
        response = client.get(
            f"{API}/view",
            params={"url": "https://elsewhere.example.com/a.png"},
            follow_redirects=False,
        )
        assert response.status_code == 404

    def test_download_is_an_attachment_named_after_url(self, client):
        body = upload(client, "cat.png").json()
        expected_name = body["object_name"].rsplit("/", 1)[-1]

        response = client.get(f"{API}/download", params={"url": body["url"]})

        assert response.status_code == 200
        assert response.content == PNG
        disposition = response.headers["content-disposition"]
        assert disposition.startswith(f'attachment; filename="{expected_name}"')

    def test_download_of_deleted_image_returns_404(self, client):
        url = upload(client).json()["url"]
        client.delete(API, params={"url": url})

        response = client.get(f"{API}/download", params={"url": url})

        assert response.status_code == 404

    def test_missing_object_returns_404(self, client):
        response = client.get(f"{API}/objects/images/nope.png")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Gallery Ownership
# ---------------------------------------------------------------------------

BACKUP_URL = f"{MOCK_OBJECTS_PATH}/backups/db.sql"
MALFORMED_URL = "http://[oops/images/a.png"


def put(storage, object_name, data=PNG, content_type="image/png"):
    """Write straight to storage, bypassing the upload route."""
    asyncio.run(storage.upload_object(data, object_name, content_type))


def names_under(storage, prefix):
    return asyncio.run(storage.list_objects(prefix))


@pytest.fixture
def backup(storage):
    """A non-gallery object sharing the bucket with the images."""
    put(storage, "backups/db.sql", b"-- dump", "application/sql")
    return "backups/db.sql"


class TestGalleryOwnership:

    def test_delete_outside_prefix_returns_404_and_keeps_object(self, client, storage, backup):
        response = client.delete(API, params={"url": BACKUP_URL})

        assert response.status_code == 404
        assert names_under(storage, "backups") == [backup]

    def test_delete_of_nested_object_returns_404(self, client, storage):
        put(storage, "images/sub/x.png")

        response = client.delete(API, params={"url": f"{MOCK_OBJECTS_PATH}/images/sub/x.png"})

        assert response.status_code == 404
        assert names_under(storage, "images/sub") == ["images/sub/x.png"]

    def test_download_outside_prefix_returns_404(self, client, backup):
        response = client.get(f"{API}/download", params={"url": BACKUP_URL})
        assert response.status_code == 404

    def test_view_outside_prefix_returns_404(self, client, backup):
        response = client.get(f"{API}/view", params={"url": BACKUP_URL}, follow_redirects=False)
        assert response.status_code == 404

    def test_objects_route_outside_prefix_returns_404(self, client, backup):
        response = client.get(f"{API}/objects/{backup}")
        assert response.status_code == 404

    def test_malformed_url_delete_returns_404(self, client):
        response = client.delete(API, params={"url": MALFORMED_URL})

        assert response.status_code == 404
        assert "Invalid URL" in response.json()["detail"]

    def test_malformed_url_view_returns_404(self, client):
        response = client.get(f"{API}/view", params={"url": MALFORMED_URL}, follow_redirects=False)
        assert response.status_code == 404

    def test_malformed_url_download_returns_404(self, client):
        response = client.get(f"{API}/download", params={"url": MALFORMED_URL})
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Health and Front-end
# ---------------------------------------------------------------------------

class TestHealth:

    def test_health_reports_mock_mode(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["details"]["mock_mode"]["storage"] is True

    def test_ready_in_mock_mode(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_credentials(self, client, settings):
        settings.storage_mock_mode = False

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestFrontend:

    def test_index_page_is_served(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "Upload Image" in response.text
        assert "Choose an image" in response.text

    def test_script_is_served(self, client):
        response = client.get("/gallery.js")

        assert response.status_code == 200
        assert "loadImages" in response.text

    def test_upload_checks_status_before_reading_json(self, client):
        script = client.get("/gallery.js").text
        upload_fn = script[script.index("async function uploadImage"):script.index("async function deleteImage")]

        assert upload_fn.index("response.ok") < upload_fn.index("response.json()")
        assert "errorDetail(response)" in upload_fn
