"""Tests for the record-store HTTP clients, including a full device-to-server sync."""

import json

import httpx
import pytest

from fieldsurvey.models.enums import DraftType, SurveyCollection
from fieldsurvey.offline.exceptions import RemoteApiError
from fieldsurvey.offline.gateway import SubmissionGateway
from fieldsurvey.offline.reconcile import DraftReconciler
from fieldsurvey.offline.remote import HttpBlobStore, HttpRecordStore, RemoteApiClient


def _client(handler, token="device-token") -> RemoteApiClient:
    return RemoteApiClient(
        base_url="http://records.test", token=token, transport=httpx.MockTransport(handler),
    )


class TestRemoteApiClient:
    async def test_unwraps_success_envelope_and_sends_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"success": True, "data": {"id": "abc"}})

        data = await _client(handler).request("GET", "/api/v1/anything")

        assert data == {"id": "abc"}
        assert seen["auth"] == "Bearer device-token"

    async def test_no_token_sends_no_authorization(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"success": True, "data": {}})

        await _client(handler, token="").request("GET", "/x")
        assert seen["auth"] is None

    async def test_error_envelope_message_is_raised(self):
        def handler(request):
            return httpx.Response(
                400, json={"success": False, "error": {"code": "BAD_REQUEST", "message": "Unknown blob namespace: x"}},
            )

        with pytest.raises(RemoteApiError) as exc_info:
            await _client(handler).request("PUT", "/x")
        assert str(exc_info.value) == "Unknown blob namespace: x"
        assert exc_info.value.status_code == 400

    async def test_non_json_error_uses_status(self):
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(RemoteApiError, match="HTTP 502"):
            await _client(handler).request("GET", "/x")

    async def test_transport_errors_propagate(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        with pytest.raises(httpx.ConnectError):
            await _client(handler).request("GET", "/x")


class TestHttpStores:
    async def test_blob_put_quotes_path_and_returns_url(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.raw_path.decode()
            seen["type"] = request.headers["content-type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"success": True, "data": {"url": "http://records.test/u"}})

        url = await HttpBlobStore(_client(handler)).put("survey-existing/u-1/3/foto titik.jpg", b"jpg", "image/jpeg")

        assert url == "http://records.test/u"
        assert seen["path"] == "/api/v1/storage/survey-existing/u-1/3/foto%20titik.jpg"
        assert seen["type"] == "image/jpeg"
        assert seen["body"] == b"jpg"

    async def test_record_create_posts_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["json"] = json.loads(request.content)
            return httpx.Response(201, json={"success": True, "data": {"id": "7f0c"}})

        doc_id = await HttpRecordStore(_client(handler)).create(
            SurveyCollection.APJ_PROPOSE_TIANG, {"photoUrls": [], "photoMap": {}},
        )

        assert doc_id == "7f0c"
        assert seen["path"] == "/api/v1/collections/APJ_Propose_Tiang/documents"
        assert seen["json"] == {"photoUrls": [], "photoMap": {}}


class TestDeviceToServerSync:
    @pytest.fixture
    def live_gateway(self, api_app, surveyor_token) -> SubmissionGateway:
        client = RemoteApiClient(
            base_url="http://test", token=surveyor_token, transport=httpx.ASGITransport(app=api_app),
        )
        return SubmissionGateway(HttpBlobStore(client), HttpRecordStore(client))

    async def test_offline_drafts_reach_the_record_store(
        self, live_gateway, draft_store, client, admin_headers, blob_root,
    ):
        draft_id = await draft_store.add_draft(
            DraftType.APJ_PROPOSE,
            {"userId": "u-5", "tinggiTiang": 9},
            [
                {"name": "tiang.jpg", "blob": b"\xff\xd8tiang", "fieldKey": "fotoTitik",
                 "content_type": "image/jpeg"},
                {"name": "lampu.jpg", "blob": b"\xff\xd8lampu", "fieldKey": "fotoLampu",
                 "content_type": "image/jpeg"},
            ],
        )

        summary = await DraftReconciler(draft_store, live_gateway).sync_all_drafts()

        assert (summary.total, summary.success) == (1, 1)
        assert await draft_store.count_drafts() == 0
        assert (blob_root / "survey-apj-propose" / "u-5" / str(draft_id) / "tiang.jpg").read_bytes() == b"\xff\xd8tiang"

        resp = await client.get("/api/v1/collections/APJ_Propose_Tiang/documents", headers=admin_headers)
        (doc,) = resp.json()["data"]
        assert doc["data"] == {"userId": "u-5", "tinggiTiang": 9}
        assert doc["owner_id"] == "u-5"
        assert len(doc["photo_urls"]) == 2
        assert doc["photo_map"]["fotoLampu"] == doc["photo_urls"][1]

    async def test_rejected_upload_keeps_draft_with_server_message(self, live_gateway, draft_store, monkeypatch):
        from fieldsurvey.config import settings

        monkeypatch.setattr(settings, "BLOB_MAX_SIZE_MB", 0)
        draft_id = await draft_store.add_draft(
            DraftType.EXISTING, {}, [{"name": "big.jpg", "blob": b"too big"}],
        )

        summary = await DraftReconciler(draft_store, live_gateway).sync_all_drafts()

        assert summary.success == 0
        draft = await draft_store.get_draft(draft_id)
        assert draft.last_error == "Gagal upload foto big.jpg: Blob exceeds the 0 MB upload limit."
