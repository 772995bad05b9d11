"""Clients for the remote blob store and record store.

The gateway depends only on the two small protocols below; the HTTP
implementations talk to the record-store API exposed by ``fieldsurvey.main``.
"""

import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from fieldsurvey.config import settings
from fieldsurvey.models.enums import SurveyCollection
from fieldsurvey.offline.exceptions import RemoteApiError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Upload ``data`` at ``path`` and return its download URL."""
        ...


class RecordStore(Protocol):
    async def create(self, collection: SurveyCollection, payload: dict[str, Any]) -> str:
        """Create a document with a generated id and return that id."""
        ...


class RemoteApiClient:
    """Thin async wrapper around the record-store API envelope."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.REMOTE_API_URL).rstrip("/")
        self.token = token if token is not None else settings.REMOTE_API_TOKEN
        self.timeout = timeout if timeout is not None else settings.REMOTE_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        """Send a request and unwrap ``{"success": true, "data": ...}``.

        Raises RemoteApiError on an error envelope and lets httpx transport
        errors propagate.
        """
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            resp = await client.request(method, path, headers=headers, **kwargs)

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.is_error or not isinstance(body, dict) or not body.get("success"):
            message = f"HTTP {resp.status_code}"
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                message = body["error"].get("message") or message
            logger.debug("%s %s failed: %s", method, path, message)
            raise RemoteApiError(message, status_code=resp.status_code)

        return body.get("data") or {}


class HttpBlobStore:
    def __init__(self, client: RemoteApiClient):
        self.client = client

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        result = await self.client.request(
            "PUT",
            f"/api/v1/storage/{quote(path, safe='/')}",
            content=data,
            headers={"Content-Type": content_type},
        )
        return result["url"]


class HttpRecordStore:
    def __init__(self, client: RemoteApiClient):
        self.client = client

    async def create(self, collection: SurveyCollection, payload: dict[str, Any]) -> str:
        result = await self.client.request(
            "POST",
            f"/api/v1/collections/{collection.value}/documents",
            json=payload,
        )
        return str(result["id"])
