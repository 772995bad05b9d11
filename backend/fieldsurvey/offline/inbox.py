"""Draft inbox: the operations behind the offline drafts screen."""

import logging

from fieldsurvey.models.enums import DraftType
from fieldsurvey.offline.exceptions import DraftNotFoundError
from fieldsurvey.offline.gateway import SubmissionGateway
from fieldsurvey.offline.reconcile import DraftReconciler, ProgressCallback
from fieldsurvey.offline.store import DraftStore
from fieldsurvey.schemas.sync import BulkSyncSummary, DraftRead, DraftStats, SyncResult

logger = logging.getLogger(__name__)


class DraftInbox:
    def __init__(
        self,
        store: DraftStore,
        gateway: SubmissionGateway,
        reconciler: DraftReconciler | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.reconciler = reconciler or DraftReconciler(store, gateway)

    async def list_drafts(self) -> list[DraftRead]:
        return await self.store.get_drafts()

    async def stats(self) -> DraftStats:
        drafts = await self.store.get_drafts()
        apj = sum(1 for d in drafts if d.type is DraftType.APJ_PROPOSE)
        return DraftStats(total=len(drafts), apj=apj, existing=len(drafts) - apj)

    async def sync_one(self, draft_id: int) -> SyncResult:
        draft = await self.store.get_draft(draft_id)
        if draft is None:
            return SyncResult.failed(f"Draft {draft_id} tidak ditemukan")

        result = await self.gateway.sync_draft(draft)
        if result.success:
            await self.store.delete_draft(draft_id)
            return result
        try:
            await self.store.update_draft(draft_id, last_error=result.error)
        except DraftNotFoundError:
            logger.info("Draft %s was removed while syncing", draft_id)
        return result

    async def sync_all(self, on_progress: ProgressCallback | None = None) -> BulkSyncSummary:
        return await self.reconciler.sync_all_drafts(on_progress=on_progress)

    async def discard(self, draft_id: int) -> None:
        """Delete a draft without sending it."""
        await self.store.delete_draft(draft_id)
        logger.info("Discarded draft %s", draft_id)
