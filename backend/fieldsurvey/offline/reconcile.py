"""Bulk reconciliation: try to sync every stored draft once.

Drafts are processed one at a time, in the order the store returns them
(newest first), which bounds upload bandwidth and keeps each error attributed
to a single draft. A failed draft keeps its ``last_error`` and the run moves
on; only an unusable store aborts the run.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from fieldsurvey.offline.connectivity import ConnectivityObserver
from fieldsurvey.offline.exceptions import DraftNotFoundError
from fieldsurvey.offline.gateway import SubmissionGateway
from fieldsurvey.offline.store import DraftStore
from fieldsurvey.schemas.sync import BulkSyncSummary, SyncProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[SyncProgress], Awaitable[None] | None]
SummaryCallback = Callable[[BulkSyncSummary], Awaitable[None] | None]


async def _maybe_await(result) -> None:
    if inspect.isawaitable(result):
        await result


class DraftReconciler:
    def __init__(self, store: DraftStore, gateway: SubmissionGateway):
        self.store = store
        self.gateway = gateway
        # One run at a time, so two runs can never submit the same draft twice
        self._run_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    async def sync_all_drafts(
        self, on_progress: ProgressCallback | None = None
    ) -> BulkSyncSummary:
        async with self._run_lock:
            drafts = await self.store.get_drafts()
            total = len(drafts)
            success = 0

            for index, draft in enumerate(drafts):
                if on_progress is not None:
                    try:
                        await _maybe_await(on_progress(SyncProgress(index=index, total=total, draft=draft)))
                    except Exception:
                        logger.exception("Progress callback failed at draft %s", draft.id)

                result = await self.gateway.sync_draft(draft)
                if result.success:
                    await self.store.delete_draft(draft.id)
                    success += 1
                    continue
                try:
                    await self.store.update_draft(draft.id, last_error=result.error)
                except DraftNotFoundError:
                    logger.info("Draft %s was removed during the sync run", draft.id)

            summary = BulkSyncSummary(total=total, success=success)
        if total:
            logger.info("Draft sync run finished: %d/%d synced", summary.success, summary.total)
        return summary

    def register_sync_on_reconnect(
        self,
        connectivity: ConnectivityObserver,
        callback: SummaryCallback | None = None,
    ) -> Callable[[], None]:
        """Run a full sync on every reconnect; returns the unsubscribe handle."""
        async def handler() -> None:
            try:
                summary = await self.sync_all_drafts()
            except Exception:
                logger.exception("Reconnect sync run failed")
                return
            if callback is not None:
                try:
                    await _maybe_await(callback(summary))
                except Exception:
                    logger.exception("Reconnect sync callback failed")

        return connectivity.on_became_online(handler)
