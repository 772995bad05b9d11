"""Tests for the survey record collection endpoints."""

import uuid

DOCS = "/api/v1/collections/{}/documents"


class TestCreateDocument:
    async def test_create_returns_generated_id(self, client, surveyor_headers):
        resp = await client.post(
            DOCS.format("Survey_Existing_Report"),
            json={
                "userId": "u-1",
                "kondisi": "baik",
                "photoUrls": ["http://x/a.jpg", "http://x/b.jpg"],
                "photoMap": {"fotoTitik": "http://x/b.jpg"},
            },
            headers=surveyor_headers,
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        doc = body["data"]
        uuid.UUID(doc["id"])
        assert doc["collection"] == "Survey_Existing_Report"
        assert doc["data"] == {"userId": "u-1", "kondisi": "baik"}
        assert doc["photo_urls"] == ["http://x/a.jpg", "http://x/b.jpg"]
        assert doc["photo_map"] == {"fotoTitik": "http://x/b.jpg"}
        assert doc["owner_id"] == "u-1"
        assert doc["created_at"]

    async def test_two_creates_make_two_documents(self, client, surveyor_headers, admin_headers):
        for _ in range(2):
            await client.post(DOCS.format("APJ_Propose_Tiang"), json={"tinggi": 9}, headers=surveyor_headers)

        resp = await client.get(DOCS.format("APJ_Propose_Tiang"), headers=admin_headers)
        assert resp.json()["meta"]["total"] == 2

    async def test_photo_map_must_reference_photo_urls(self, client, surveyor_headers):
        resp = await client.post(
            DOCS.format("APJ_Propose_Tiang"),
            json={"photoUrls": [], "photoMap": {"fotoTitik": "http://x/missing.jpg"}},
            headers=surveyor_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_PHOTO_MAP"

    async def test_unknown_collection(self, client, surveyor_headers):
        resp = await client.post(DOCS.format("Nope"), json={}, headers=surveyor_headers)
        assert resp.status_code == 404

    async def test_requires_token(self, client):
        resp = await client.post(DOCS.format("APJ_Propose_Tiang"), json={})
        assert resp.status_code == 401

    async def test_invalid_token(self, client):
        resp = await client.post(
            DOCS.format("APJ_Propose_Tiang"), json={}, headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401


class TestReadDocuments:
    async def test_list_is_admin_only(self, client, surveyor_headers):
        resp = await client.get(DOCS.format("APJ_Propose_Tiang"), headers=surveyor_headers)
        assert resp.status_code == 403

    async def test_list_filters_by_owner_and_paginates(self, client, surveyor_headers, admin_headers):
        for owner in ("u-1", "u-1", "u-2"):
            await client.post(
                DOCS.format("Survey_Existing_Report"), json={"userId": owner}, headers=surveyor_headers,
            )

        resp = await client.get(
            DOCS.format("Survey_Existing_Report"),
            params={"owner_id": "u-1", "per_page": 1},
            headers=admin_headers,
        )

        body = resp.json()
        assert len(body["data"]) == 1
        assert body["meta"] == {"page": 1, "per_page": 1, "total": 2, "total_pages": 2}

    async def test_get_document(self, client, surveyor_headers, admin_headers):
        created = await client.post(
            DOCS.format("APJ_Propose_Tiang"), json={"surveyorId": "s-1"}, headers=surveyor_headers,
        )
        doc_id = created.json()["data"]["id"]

        resp = await client.get(f"{DOCS.format('APJ_Propose_Tiang')}/{doc_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["owner_id"] == "s-1"

        other = await client.get(f"{DOCS.format('Survey_Existing_Report')}/{doc_id}", headers=admin_headers)
        assert other.status_code == 404

    async def test_get_missing_document(self, client, admin_headers):
        resp = await client.get(f"{DOCS.format('APJ_Propose_Tiang')}/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404

    async def test_bad_paging_is_a_validation_error(self, client, admin_headers):
        resp = await client.get(
            DOCS.format("APJ_Propose_Tiang"), params={"per_page": 0}, headers=admin_headers,
        )

        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert [d["field"] for d in error["details"]] == ["per_page"]
