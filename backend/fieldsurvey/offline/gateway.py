"""Remote submission gateway: commit one draft to the blob and record stores.

A sync attempt is all-or-nothing from the caller's point of view. Photos are
uploaded one at a time in list order and the first failure aborts the attempt
before any record is written. If the record write itself fails, the uploaded
blobs are left behind for the server-side orphan sweep; the draft stays local
and a retry re-uploads to the same deterministic paths.

The gateway never touches the local draft store: deleting a synced draft or
recording its error is the caller's job.
"""

import logging
import re
import time
from dataclasses import dataclass

import httpx

from fieldsurvey.core.sanitize import sanitize_path_segment
from fieldsurvey.models.enums import COLLECTION_BY_DRAFT_TYPE, NAMESPACE_BY_DRAFT_TYPE
from fieldsurvey.offline.exceptions import RemoteWriteFailureError, UploadFailureError
from fieldsurvey.offline.remote import (
    BlobStore,
    HttpBlobStore,
    HttpRecordStore,
    RecordStore,
    RemoteApiClient,
)
from fieldsurvey.schemas.survey import owner_from_form
from fieldsurvey.schemas.sync import DraftRead, PhotoAttachment, SyncResult

logger = logging.getLogger(__name__)

ANONYMOUS_OWNER = "anonymous"


@dataclass(frozen=True)
class UploadedPhoto:
    name: str
    field_key: str
    path: str
    url: str


def _reason(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def _path_segment(value: str, fallback: str) -> str:
    # Separators inside a user id or file name would add path segments
    try:
        return sanitize_path_segment(re.sub(r"[/\\]", "_", value))
    except ValueError:
        return fallback


def blob_path(draft: DraftRead, photo: PhotoAttachment) -> str:
    """``<namespace>/<owner>/<draft id>/<photo name>`` for one attachment.

    Owner and name are cleaned the same way the storage API cleans them, so
    the path the device builds is the path the server stores.
    """
    namespace = NAMESPACE_BY_DRAFT_TYPE[draft.type].value
    owner = _path_segment(owner_from_form(draft.data) or "", ANONYMOUS_OWNER)
    name = _path_segment(photo.name, str(int(time.time() * 1000)))
    return f"{namespace}/{owner}/{draft.id}/{name}"


def build_payload(draft: DraftRead, uploaded: list[UploadedPhoto]) -> dict:
    """Form fields plus ``photoUrls`` (upload order) and ``photoMap`` (last wins)."""
    photo_map: dict[str, str] = {}
    for photo in uploaded:
        if photo.field_key:
            photo_map[photo.field_key] = photo.url
    return {
        **draft.data,
        "photoUrls": [photo.url for photo in uploaded],
        "photoMap": photo_map,
    }


class SubmissionGateway:
    def __init__(self, blobs: BlobStore, records: RecordStore):
        self.blobs = blobs
        self.records = records

    @classmethod
    def from_settings(
        cls, transport: httpx.AsyncBaseTransport | None = None
    ) -> "SubmissionGateway":
        client = RemoteApiClient(transport=transport)
        return cls(HttpBlobStore(client), HttpRecordStore(client))

    async def sync_draft(self, draft: DraftRead | None) -> SyncResult:
        if draft is None:
            return SyncResult.failed("Empty draft")

        try:
            uploaded = await self._upload_photos(draft)
            remote_id = await self._write_record(draft, uploaded)
        except (UploadFailureError, RemoteWriteFailureError) as exc:
            logger.warning("Sync of %s draft %s failed: %s", draft.type.value, draft.id, exc)
            return SyncResult.failed(str(exc))

        logger.info(
            "Synced %s draft %s as %s (%d photo(s))",
            draft.type.value, draft.id, remote_id, len(uploaded),
        )
        return SyncResult.ok(remote_id)

    async def _upload_photos(self, draft: DraftRead) -> list[UploadedPhoto]:
        uploaded: list[UploadedPhoto] = []
        for photo in draft.photos:
            path = blob_path(draft, photo)
            try:
                url = await self.blobs.put(path, photo.blob, photo.content_type)
            except Exception as exc:
                raise UploadFailureError(photo.name, _reason(exc)) from exc
            uploaded.append(UploadedPhoto(
                name=photo.name,
                field_key=photo.field_key,
                path=path,
                url=url,
            ))
        return uploaded

    async def _write_record(self, draft: DraftRead, uploaded: list[UploadedPhoto]) -> str:
        collection = COLLECTION_BY_DRAFT_TYPE[draft.type]
        payload = build_payload(draft, uploaded)
        try:
            return await self.records.create(collection, payload)
        except Exception as exc:
            if uploaded:
                logger.warning(
                    "Record write failed after %d upload(s); blobs under %s are orphaned",
                    len(uploaded), uploaded[0].path.rsplit("/", 1)[0],
                )
            raise RemoteWriteFailureError(_reason(exc)) from exc
