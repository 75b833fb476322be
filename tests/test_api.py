# tests/test_api.py
"""HTTP API tests using FastAPI's TestClient."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from clipfeed.api import create_app
from clipfeed.errors import StorageFailure

from conftest import stored_files


def _upload(client, title="Hello", content=b"fake-mp4", filename="clip.mp4", mime="video/mp4"):
    return client.post(
        "/api/upload",
        data={"title": title} if title is not None else {},
        files={"video": (filename, content, mime)},
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"ok": True}


class TestFeed:
    def test_empty_feed(self, client):
        response = client.get("/api/videos")
        assert response.status_code == 200
        assert response.json() == {"videos": [], "nextCursor": None}

    def test_paging_scenario(self, client, seeded_repo):
        first = client.get("/api/videos", params={"limit": 5}).json()
        assert [v["id"] for v in first["videos"]] == [7, 6, 5, 4, 3]
        assert first["nextCursor"] == 3

        second = client.get("/api/videos", params={"limit": 5, "cursor": 3}).json()
        assert [v["id"] for v in second["videos"]] == [2, 1]
        assert second["nextCursor"] is None

    def test_wire_shape(self, client, seeded_repo):
        video = client.get("/api/videos", params={"limit": 1}).json()["videos"][0]
        assert set(video) == {"id", "title", "url", "likes", "created_at"}
        assert video["url"] == "/uploads/clip_7.mp4"

    @pytest.mark.parametrize("limit, expected", [("0", 1), ("999", 7), ("abc", 5), ("", 5)])
    def test_limit_clamped_not_rejected(self, client, seeded_repo, limit, expected):
        response = client.get("/api/videos", params={"limit": limit})
        assert response.status_code == 200
        assert len(response.json()["videos"]) == expected

    def test_bad_cursor_starts_from_top(self, client, seeded_repo):
        response = client.get("/api/videos", params={"cursor": "nope", "limit": 2})
        assert [v["id"] for v in response.json()["videos"]] == [7, 6]

    def test_cursor_beyond_integer_range_starts_from_top(self, client, seeded_repo):
        response = client.get("/api/videos", params={"cursor": "99999999999999999999", "limit": 2})
        assert response.status_code == 200
        assert [v["id"] for v in response.json()["videos"]] == [7, 6]

    def test_get_single_video(self, client, seeded_repo):
        response = client.get("/api/videos/4")
        assert response.status_code == 200
        assert response.json()["title"] == "Clip 4"

    def test_get_single_video_not_found(self, client):
        response = client.get("/api/videos/99")
        assert response.status_code == 404
        assert response.json()["reason"] == "not_found"

    def test_get_video_beyond_integer_range(self, client, seeded_repo):
        response = client.get("/api/videos/99999999999999999999")
        assert response.status_code == 404
        assert response.json()["reason"] == "not_found"


class TestLike:
    def test_like(self, client, seeded_repo):
        response = client.post("/api/videos/2/like")
        assert response.status_code == 200
        assert response.json() == {"id": 2, "likes": 1}
        assert client.post("/api/videos/2/like").json()["likes"] == 2

    def test_like_bad_id(self, client):
        response = client.post("/api/videos/abc/like")
        assert response.status_code == 400
        assert "error" in response.json()

    def test_like_unknown_id(self, client, seeded_repo):
        response = client.post("/api/videos/42/like")
        assert response.status_code == 404
        assert "error" in response.json()
        assert all(v.likes == 0 for v in seeded_repo.list_before(None, 20))

    def test_like_id_beyond_integer_range(self, client, seeded_repo):
        response = client.post("/api/videos/99999999999999999999/like")
        assert response.status_code == 404
        assert response.json()["reason"] == "not_found"

    @pytest.mark.parametrize("raw", ["1_0", "%207%20", "-3", "\uff17", "+4"])
    def test_like_malformed_id(self, client, seeded_repo, raw):
        response = client.post(f"/api/videos/{raw}/like")
        assert response.status_code == 400
        assert response.json()["reason"] == "validation"
        assert all(v.likes == 0 for v in seeded_repo.list_before(None, 20))


class TestUpload:
    def test_upload_created(self, client, uploads_dir):
        response = _upload(client, title="  My clip ", content=b"\x00\x01mp4", filename="My Clip.MP4")
        assert response.status_code == 201
        body = response.json()
        assert body["id"] == 1
        assert body["title"] == "My clip"
        assert body["likes"] == 0
        assert body["url"].startswith("/uploads/")
        assert body["url"].endswith("_My_Clip.mp4")

        media = client.get(body["url"])
        assert media.status_code == 200
        assert media.content == b"\x00\x01mp4"

    def test_upload_appears_at_head_of_feed(self, client, seeded_repo):
        created = _upload(client).json()
        head = client.get("/api/videos", params={"limit": 1}).json()["videos"][0]
        assert head["id"] == created["id"] == 8

    def test_missing_title(self, client, uploads_dir):
        response = _upload(client, title=None)
        assert response.status_code == 400
        assert response.json() == {"error": "title required", "reason": "validation"}
        assert stored_files(uploads_dir) == []

    def test_missing_file(self, client):
        response = client.post("/api/upload", data={"title": "Hello"})
        assert response.status_code == 400
        assert response.json()["error"] == "file required"

    def test_text_plain_rejected(self, client, uploads_dir):
        response = _upload(client, filename="clip.mp4", mime="text/plain")
        assert response.status_code == 400
        assert response.json()["reason"] == "unsupported_media"
        assert stored_files(uploads_dir) == []
        assert client.get("/api/videos").json()["videos"] == []

    def test_streamed_size_cutoff(self, small_client, uploads_dir):
        response = _upload(small_client, content=b"\x00" * 4096)
        assert response.status_code == 400
        assert response.json()["reason"] == "payload_too_large"
        assert stored_files(uploads_dir) == []
        assert small_client.get("/api/videos").json()["videos"] == []

    def test_content_length_precheck(self, small_client, uploads_dir):
        response = _upload(small_client, content=b"\x00" * (200 * 1024))
        assert response.status_code == 400
        assert response.json()["reason"] == "payload_too_large"
        assert stored_files(uploads_dir) == []

    def test_storage_failure_is_500(self, client, sqlite_repo, uploads_dir):
        with patch.object(sqlite_repo, "insert", side_effect=StorageFailure("disk gone")):
            response = _upload(client)
        assert response.status_code == 500
        assert "error" in response.json()
        assert stored_files(uploads_dir) == []


class TestUnexpectedErrors:
    def test_unhandled_exception_is_500(self, service):
        app = create_app(service)
        with patch.object(service, "get_feed", side_effect=RuntimeError("boom")):
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.get("/api/videos")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestFrontEnd:
    @pytest.fixture
    def site_client(self, service, tmp_path, monkeypatch):
        from clipfeed.config import settings

        site = tmp_path / "site"
        site.mkdir()
        (site / "index.html").write_text("<html>feed</html>")
        (site / "app.js").write_text("console.log('feed')")
        monkeypatch.setattr(settings, "static_dir", site)
        with TestClient(create_app(service)) as test_client:
            yield test_client

    def test_index_at_root(self, site_client):
        response = site_client.get("/")
        assert response.status_code == 200
        assert "feed" in response.text

    def test_asset_served(self, site_client):
        assert site_client.get("/app.js").text == "console.log('feed')"

    def test_unknown_path_falls_back_to_index(self, site_client):
        response = site_client.get("/watch/3")
        assert response.status_code == 200
        assert response.text == "<html>feed</html>"

    def test_api_not_shadowed(self, site_client, seeded_repo):
        assert site_client.get("/api/health").json() == {"ok": True}
        assert len(site_client.get("/api/videos").json()["videos"]) == 5

    def test_missing_media_still_404(self, site_client):
        assert site_client.get("/uploads/missing.mp4").status_code == 404
