"""
Tests for the media library: upload limits, listing, deletion and serving.
"""

import os
from unittest.mock import MagicMock

import pytest

from we3vision.core.config import settings
from we3vision.core.exceptions import ValidationError
from we3vision.core.uploads import generate_stored_filename, validate_stored_filename

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def image(name="photo.png", data=PNG_BYTES, content_type="image/png"):
    return ("images", (name, data, content_type))


class TestMediaUpload:

    def test_upload_images(self, client, admin_headers, storage):
        response = client.post(
            "/api/media/",
            files=[image("a.png"), image("b.JPG", content_type="image/jpeg")],
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert len(data) == 2
        assert data[0]["filename"].startswith("images-") and data[0]["filename"].endswith(".png")
        assert data[1]["filename"].endswith(".jpg")
        assert data[0]["url"] == f"http://testserver/uploads/{data[0]['filename']}"
        assert sorted(storage.list_files()) == sorted(d["filename"] for d in data)

    def test_file_too_large(self, client, admin_headers, storage):
        oversized = b"\x00" * (6 * 1024 * 1024)

        response = client.post("/api/media/", files=[image(data=oversized)], headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "File too large. Maximum size is 5MB."}
        assert storage.list_files() == []

    def test_exactly_max_size_accepted(self, client, admin_headers):
        data = b"\x00" * settings.MAX_UPLOAD_SIZE

        response = client.post("/api/media/", files=[image(data=data)], headers=admin_headers)

        assert response.status_code == 201

    def test_not_an_image(self, client, admin_headers, storage):
        response = client.post(
            "/api/media/",
            files=[image("notes.txt", b"hello", "text/plain")],
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Not an image! Please upload an image."

    def test_too_many_files(self, client, admin_headers, storage):
        files = [image(f"img{i}.png") for i in range(settings.MAX_UPLOAD_FILES + 1)]

        response = client.post("/api/media/", files=files, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Too many files. Maximum is 5 files."
        assert storage.list_files() == []

    def test_one_bad_file_rejects_whole_batch(self, client, admin_headers, storage):
        files = [image("good.png"), image("bad.txt", b"x", "text/plain")]

        response = client.post("/api/media/", files=files, headers=admin_headers)

        assert response.status_code == 400
        assert storage.list_files() == []

    def test_upload_requires_admin(self, client, auth_headers):
        response = client.post("/api/media/", files=[image()], headers=auth_headers)

        assert response.status_code == 403


class TestMediaListing:

    def test_lists_only_images(self, client, admin_headers, storage):
        storage.save(PNG_BYTES, "images-one.png")
        storage.save(b"text", "readme.txt")
        storage.save(PNG_BYTES, "images-two.webp")

        response = client.get("/api/media/", headers=admin_headers)

        assert response.status_code == 200
        assert [f["filename"] for f in response.json()["data"]] == ["images-one.png", "images-two.webp"]

    def test_listing_requires_auth(self, client):
        response = client.get("/api/media/")

        assert response.status_code == 401


class TestMediaDelete:

    def test_delete_file(self, client, admin_headers, storage):
        storage.save(PNG_BYTES, "images-gone.png")

        response = client.delete("/api/media/images-gone.png", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"status": "success", "message": "File deleted"}
        assert not storage.exists("images-gone.png")

    def test_delete_missing_file(self, client, admin_headers):
        response = client.delete("/api/media/images-missing.png", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "File not found"

    def test_unsafe_name_rejected_before_storage(self, client, admin_headers, storage, monkeypatch):
        spy = MagicMock(return_value=True)
        monkeypatch.setattr(storage, "delete_file", spy)

        response = client.delete("/api/media/evil..png", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid filename"
        spy.assert_not_called()


class TestStoredFilenames:

    def test_generated_names_are_unique(self):
        names = {generate_stored_filename("images", "Photo.JPEG") for _ in range(50)}

        assert len(names) == 50
        assert all(n.startswith("images-") and n.endswith(".jpeg") for n in names)

    def test_client_name_is_discarded(self):
        name = generate_stored_filename("image", "../../etc/passwd.png")

        assert "passwd" not in name
        assert "/" not in name

    @pytest.mark.parametrize("name", ["../secret.png", "a/b.png", "a\\b.png", "evil..png", "semi;colon.png"])
    def test_unsafe_names(self, name):
        with pytest.raises(ValidationError):
            validate_stored_filename(name)

    def test_safe_name(self):
        assert validate_stored_filename("images-3f2a.png") == "images-3f2a.png"


class TestUploadServing:

    @pytest.fixture
    def served_file(self):
        path = os.path.join(settings.UPLOAD_DIR, "images-served.png")
        with open(path, "wb") as f:
            f.write(PNG_BYTES)
        yield "images-served.png"
        os.remove(path)

    @pytest.mark.parametrize("prefix", ["/uploads", "/media", "/images", "/files"])
    def test_served_under_every_prefix(self, client, served_file, prefix):
        response = client.get(f"{prefix}/{served_file}")

        assert response.status_code == 200
        assert response.content == PNG_BYTES
        assert response.headers["Cross-Origin-Resource-Policy"] == "cross-origin"
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_cache_header_when_configured(self, client, served_file, monkeypatch):
        monkeypatch.setattr(settings, "UPLOADS_CACHE_SECONDS", 120)

        response = client.get(f"/uploads/{served_file}")

        assert response.headers["Cache-Control"] == "public, max-age=120"

    @pytest.mark.parametrize("url", ["/files/images-missing.png", "/media/images-missing.png", "/uploads/images-missing.png"])
    def test_missing_file(self, client, url):
        response = client.get(url)

        assert response.status_code == 404
        assert response.json() == {"status": "error", "message": "Route not found"}
