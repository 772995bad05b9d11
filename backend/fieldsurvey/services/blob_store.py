"""Blob storage for survey photos.

Photos are written to the storage mount under a deterministic path
``<namespace>/<owner>/<draft>/<file>``; only metadata is kept in the database.
Re-uploading the same path overwrites the blob, so a device retrying a failed
sync never produces duplicates.
"""

import hashlib
import logging
import mimetypes
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.config import settings
from fieldsurvey.core.sanitize import sanitize_path_segment
from fieldsurvey.models.blob import StoredBlob
from fieldsurvey.models.enums import BlobNamespace
from fieldsurvey.models.survey import SurveyDocument
from fieldsurvey.services.exceptions import BlobTooLargeError, InvalidBlobPathError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobPath:
    namespace: BlobNamespace
    owner_id: str
    draft_key: str
    file_name: str

    @property
    def key(self) -> str:
        return f"{self.namespace.value}/{self.owner_id}/{self.draft_key}/{self.file_name}"


def parse_blob_path(path: str) -> BlobPath:
    """Validate and normalise a device-supplied blob path."""
    parts = path.strip("/").split("/")
    if len(parts) != 4:
        raise InvalidBlobPathError("Blob path must look like <namespace>/<owner>/<draft>/<file>.")
    try:
        namespace = BlobNamespace(parts[0])
    except ValueError:
        raise InvalidBlobPathError(f"Unknown blob namespace: {parts[0]}") from None
    try:
        owner_id, draft_key, file_name = (sanitize_path_segment(p) for p in parts[1:])
    except ValueError as exc:
        raise InvalidBlobPathError(str(exc)) from exc
    return BlobPath(namespace, owner_id, draft_key, file_name)


def blob_url(key: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/api/v1/storage/{key}"


def _compute_sha256(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class BlobStoreService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def file_for(key: str) -> Path:
        """Map a blob key onto the storage mount, refusing anything outside it."""
        root = Path(settings.BLOB_STORAGE_PATH).resolve()
        target = (root / key).resolve()
        if root not in target.parents:
            raise InvalidBlobPathError("Blob path escapes the storage root.")
        return target

    async def get_blob(self, path: str) -> StoredBlob | None:
        key = parse_blob_path(path).key
        result = await self.db.execute(
            select(StoredBlob).where(StoredBlob.path == key)
        )
        return result.scalar_one_or_none()

    async def store_blob(
        self,
        path: str,
        content: bytes,
        content_type: str | None,
        uploaded_by: uuid.UUID | None,
    ) -> StoredBlob:
        blob_path = parse_blob_path(path)
        max_bytes = settings.BLOB_MAX_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise BlobTooLargeError(
                f"Blob exceeds the {settings.BLOB_MAX_SIZE_MB} MB upload limit."
            )
        if not content_type or content_type == "application/octet-stream":
            guessed, _ = mimetypes.guess_type(blob_path.file_name)
            content_type = guessed or "application/octet-stream"

        target = self.file_for(blob_path.key)
        target.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a half-written photo
        partial = target.with_name(target.name + ".part")
        partial.write_bytes(content)
        partial.replace(target)

        checksum = _compute_sha256(content)
        blob = await self.get_blob(blob_path.key)
        if blob is None:
            blob = StoredBlob(
                id=uuid.uuid4(),
                path=blob_path.key,
                namespace=blob_path.namespace,
                owner_id=blob_path.owner_id,
                draft_key=blob_path.draft_key,
                file_name=blob_path.file_name,
                url=blob_url(blob_path.key),
                size_bytes=len(content),
                content_type=content_type,
                checksum_sha256=checksum,
                uploaded_by=uploaded_by,
            )
            self.db.add(blob)
        else:
            logger.info("Overwriting blob %s (retry from device)", blob_path.key)
            blob.size_bytes = len(content)
            blob.content_type = content_type
            blob.checksum_sha256 = checksum
            blob.uploaded_by = uploaded_by

        await self.db.flush()
        await self.db.refresh(blob)
        return blob

    async def find_orphans(self, older_than: datetime) -> list[StoredBlob]:
        """Blobs last written before ``older_than`` that no document references.

        These are left behind when a device uploaded every photo but the record
        write failed; the device re-uploads on retry, so only stale ones count.
        """
        referenced: set[str] = set()
        result = await self.db.execute(select(SurveyDocument.photo_urls))
        for (urls,) in result.all():
            referenced.update(urls or [])

        result = await self.db.execute(
            select(StoredBlob).where(StoredBlob.updated_at < older_than)
        )
        return [b for b in result.scalars().all() if b.url not in referenced]

    async def remove_blob(self, blob: StoredBlob) -> bool:
        try:
            self.file_for(blob.path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete blob file %s: %s", blob.path, e)
            return False
        await self.db.delete(blob)
        return True

    async def sweep_orphans(self, older_than: datetime) -> dict:
        orphans = await self.find_orphans(older_than)
        removed = 0
        for blob in orphans:
            if await self.remove_blob(blob):
                removed += 1
        await self.db.flush()
        if removed:
            logger.info("Removed %d orphaned blob(s) older than %s", removed, older_than.isoformat())
        return {"checked": len(orphans), "removed": removed}
