"""Tests for the blob storage endpoints and the orphan sweep."""

from datetime import datetime, timedelta, timezone

import pytest

from fieldsurvey.services.blob_store import BlobStoreService, parse_blob_path
from fieldsurvey.services.exceptions import InvalidBlobPathError

BLOB = "/api/v1/storage"


class TestParseBlobPath:
    def test_valid_path(self):
        parsed = parse_blob_path("survey-existing/u-1/12/foto titik.jpg")
        assert parsed.key == "survey-existing/u-1/12/foto titik.jpg"
        assert parsed.owner_id == "u-1"

    @pytest.mark.parametrize("path", [
        "survey-existing/u-1/a.jpg",
        "unknown-namespace/u-1/1/a.jpg",
        "survey-existing/../1/a.jpg",
        "survey-existing/u-1/1/..",
        "survey-existing/u\\1/1/a.jpg",
    ])
    def test_rejects_bad_paths(self, path):
        with pytest.raises(InvalidBlobPathError):
            parse_blob_path(path)

    def test_strips_leading_dots_and_reserved_characters(self):
        parsed = parse_blob_path("survey-apj-propose/anonymous/3/.hidden?.jpg")
        assert parsed.file_name == "hidden_.jpg"


class TestUploadBlob:
    async def test_upload_stores_file_and_returns_url(self, client, surveyor_headers, blob_root):
        resp = await client.put(
            f"{BLOB}/survey-existing/u-1/5/a.jpg",
            content=b"\xff\xd8jpeg",
            headers={**surveyor_headers, "Content-Type": "image/jpeg"},
        )

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["path"] == "survey-existing/u-1/5/a.jpg"
        assert data["url"].endswith("/api/v1/storage/survey-existing/u-1/5/a.jpg")
        assert data["size_bytes"] == 6
        assert data["content_type"] == "image/jpeg"
        assert (blob_root / "survey-existing" / "u-1" / "5" / "a.jpg").read_bytes() == b"\xff\xd8jpeg"

    async def test_reupload_overwrites(self, client, surveyor_headers):
        path = f"{BLOB}/survey-apj-propose/anonymous/9/p.jpg"
        first = await client.put(path, content=b"old", headers=surveyor_headers)
        second = await client.put(path, content=b"newer", headers=surveyor_headers)

        assert first.json()["data"]["id"] == second.json()["data"]["id"]
        assert second.json()["data"]["size_bytes"] == 5

        resp = await client.get(path, headers=surveyor_headers)
        assert resp.status_code == 200
        assert resp.content == b"newer"

    async def test_content_type_is_guessed_from_name(self, client, surveyor_headers):
        resp = await client.put(
            f"{BLOB}/survey-existing/u-1/5/b.png",
            content=b"png",
            headers={**surveyor_headers, "Content-Type": "application/octet-stream"},
        )
        assert resp.json()["data"]["content_type"] == "image/png"

    async def test_empty_upload_is_rejected(self, client, surveyor_headers):
        resp = await client.put(f"{BLOB}/survey-existing/u-1/5/a.jpg", content=b"", headers=surveyor_headers)
        assert resp.status_code == 400

    async def test_invalid_path_is_rejected(self, client, surveyor_headers):
        resp = await client.put(f"{BLOB}/not-a-namespace/u-1/5/a.jpg", content=b"x", headers=surveyor_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert "namespace" in body["error"]["message"]
        assert body["error"]["code"] == "INVALID_BLOB_PATH"

    async def test_oversized_upload_is_rejected(self, client, surveyor_headers, monkeypatch):
        from fieldsurvey.config import settings

        monkeypatch.setattr(settings, "BLOB_MAX_SIZE_MB", 0)
        resp = await client.put(f"{BLOB}/survey-existing/u-1/5/a.jpg", content=b"x", headers=surveyor_headers)
        assert resp.status_code == 413
        assert resp.json()["error"] == {
            "code": "BLOB_TOO_LARGE",
            "message": "Blob exceeds the 0 MB upload limit.",
        }

    async def test_upload_requires_token(self, client):
        resp = await client.put(f"{BLOB}/survey-existing/u-1/5/a.jpg", content=b"x")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "HTTP_401"

    async def test_download_missing_blob(self, client, surveyor_headers):
        resp = await client.get(f"{BLOB}/survey-existing/u-1/5/nothing.jpg", headers=surveyor_headers)
        assert resp.status_code == 404


class TestOrphanSweep:
    async def _upload(self, client, headers, path):
        resp = await client.put(f"{BLOB}/{path}", content=b"img", headers=headers)
        return resp.json()["data"]["url"]

    async def test_sweep_removes_only_unreferenced_blobs(
        self, client, surveyor_headers, session_factory, blob_root,
    ):
        kept_url = await self._upload(client, surveyor_headers, "survey-existing/u-1/1/kept.jpg")
        await self._upload(client, surveyor_headers, "survey-existing/u-1/2/orphan.jpg")
        await client.post(
            "/api/v1/collections/Survey_Existing_Report/documents",
            json={"userId": "u-1", "photoUrls": [kept_url], "photoMap": {}},
            headers=surveyor_headers,
        )

        async with session_factory() as db:
            result = await BlobStoreService(db).sweep_orphans(
                older_than=datetime.now(timezone.utc) + timedelta(hours=1),
            )
            await db.commit()

        assert result == {"checked": 1, "removed": 1}
        assert (blob_root / "survey-existing" / "u-1" / "1" / "kept.jpg").exists()
        assert not (blob_root / "survey-existing" / "u-1" / "2" / "orphan.jpg").exists()

    async def test_recent_blobs_are_left_alone(self, client, surveyor_headers, session_factory):
        await self._upload(client, surveyor_headers, "survey-existing/u-1/2/recent.jpg")

        async with session_factory() as db:
            result = await BlobStoreService(db).sweep_orphans(
                older_than=datetime.now(timezone.utc) - timedelta(hours=1),
            )

        assert result == {"checked": 0, "removed": 0}

    async def test_celery_sweep_uses_grace_period(
        self, client, surveyor_headers, session_factory, monkeypatch,
    ):
        from fieldsurvey.config import settings
        from fieldsurvey.tasks import blobs

        await self._upload(client, surveyor_headers, "survey-apj-propose/u-2/4/x.jpg")
        monkeypatch.setattr(blobs, "async_session_factory", session_factory)
        monkeypatch.setattr(settings, "ORPHAN_BLOB_GRACE_HOURS", -1)

        result = await blobs._sweep_orphan_blobs()

        assert result == {"checked": 1, "removed": 1}
