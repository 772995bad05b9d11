"""Celery task removing photo blobs orphaned by failed record writes."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from fieldsurvey.celery_app import celery
from fieldsurvey.config import settings
from fieldsurvey.database import async_session_factory
from fieldsurvey.services.blob_store import BlobStoreService

logger = logging.getLogger(__name__)


async def _sweep_orphan_blobs() -> dict:
    cutoff = datetime.now(timezone.utc) - timedelta(hours=settings.ORPHAN_BLOB_GRACE_HOURS)
    async with async_session_factory() as db:
        svc = BlobStoreService(db)
        result = await svc.sweep_orphans(older_than=cutoff)
        await db.commit()
    return result


@celery.task(
    name="fieldsurvey.tasks.blobs.sweep_orphan_blobs",
    bind=True,
    max_retries=1,
)
def sweep_orphan_blobs(self) -> dict:
    """Celery beat task: delete stale blobs that no survey document references."""
    try:
        result = asyncio.run(_sweep_orphan_blobs())
        logger.info(
            "Orphan blob sweep: %d candidate(s), %d removed.",
            result["checked"], result["removed"],
        )
        return {"status": "ok", **result}
    except Exception as exc:
        logger.exception("Orphan blob sweep failed")
        raise self.retry(exc=exc, countdown=600)
