"""Draft lifecycle manager: autosave and opportunistic sync for one live form.

States move ``NEW -> DRAFTED -> SYNCED``. While the form is edited, changes are
persisted after a quiet period (trailing-edge debounce), so only the last
snapshot of a burst of keystrokes is ever written. The first write creates the
draft; later writes update the same draft id. A successful sync deletes the
draft and ends the lifecycle; a failed one leaves the draft with its error.

Submitting while already online takes a fast path: the form is synced as an
ephemeral draft and no local row is created unless the sync fails.
"""

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence

from fieldsurvey.config import settings
from fieldsurvey.models.enums import DraftType, FormState
from fieldsurvey.offline.connectivity import ConnectivityObserver
from fieldsurvey.offline.exceptions import DraftNotFoundError, StorageUnavailableError
from fieldsurvey.offline.gateway import SubmissionGateway
from fieldsurvey.offline.scheduling import Debouncer
from fieldsurvey.offline.store import DraftStore
from fieldsurvey.schemas.sync import DraftRead, PhotoAttachment, SubmitOutcome, SyncResult

logger = logging.getLogger(__name__)

OFFLINE_ERROR = "offline"
ALREADY_SYNCED_ERROR = "Form has already been synced."

DraftCreatedCallback = Callable[[int], Awaitable[None] | None]


class DraftLifecycleManager:
    def __init__(
        self,
        draft_type: DraftType | str,
        store: DraftStore,
        gateway: SubmissionGateway,
        connectivity: ConnectivityObserver,
        *,
        debounce_seconds: float | None = None,
        on_draft_created: DraftCreatedCallback | None = None,
    ):
        self.draft_type = DraftType(draft_type)
        self.store = store
        self.gateway = gateway
        self.connectivity = connectivity
        self.on_draft_created = on_draft_created
        if debounce_seconds is None:
            debounce_seconds = settings.AUTOSAVE_DEBOUNCE_MS / 1000

        self._data: dict = {}
        self._photos: list[PhotoAttachment] = []
        self._draft_id: int | None = None
        self._state = FormState.NEW
        self._lock = asyncio.Lock()
        self._debouncer = Debouncer(
            debounce_seconds, self._autosave, name=f"autosave-{self.draft_type.value}"
        )
        self._unsubscribe: Callable[[], None] | None = None

        self.saving = False
        self.last_autosave_error: str | None = None

    # -- state --

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def draft_id(self) -> int | None:
        return self._draft_id

    @property
    def autosave_pending(self) -> bool:
        return self._debouncer.pending

    def snapshot(self, draft_id: int | str | None = None) -> DraftRead:
        return DraftRead(
            id=draft_id if draft_id is not None else (self._draft_id or uuid.uuid4().hex),
            type=self.draft_type,
            data=dict(self._data),
            photos=list(self._photos),
        )

    # -- mount / unmount --

    def open(self) -> "DraftLifecycleManager":
        """Subscribe to reconnect events for the lifetime of the form."""
        if self._unsubscribe is None:
            self._unsubscribe = self.connectivity.on_became_online(self._on_became_online)
        return self

    async def close(self) -> None:
        """Cancel a pending autosave and stop listening for reconnects.

        Work already dispatched (an upload or a write) finishes in the
        background; its outcome is logged.
        """
        if self._debouncer.cancel():
            logger.debug("Dropped pending autosave for draft %s on close", self._draft_id)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def __aenter__(self) -> "DraftLifecycleManager":
        return self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -- editing --

    def update_form(
        self,
        data: dict | None = None,
        photos: Sequence[PhotoAttachment | dict] | None = None,
    ) -> None:
        """Record the form's current content and restart the autosave timer."""
        if self._state is FormState.SYNCED:
            logger.debug("Ignoring edit of an already synced %s form", self.draft_type.value)
            return
        if data is not None:
            self._data = dict(data)
        if photos is not None:
            self._photos = [
                p if isinstance(p, PhotoAttachment) else PhotoAttachment.model_validate(p)
                for p in photos
            ]
        self._debouncer.trigger()

    async def wait_autosave(self) -> None:
        """Wait for an autosave that has already started to finish."""
        await self._debouncer.wait_idle()

    def reset(self) -> None:
        """Start a fresh form. An existing draft stays in the store."""
        self._debouncer.cancel()
        self._data = {}
        self._photos = []
        self._draft_id = None
        self._state = FormState.NEW
        self.last_autosave_error = None

    # -- persistence --

    async def _autosave(self) -> None:
        try:
            await self._persist()
            self.last_autosave_error = None
        except StorageUnavailableError as exc:
            self.last_autosave_error = str(exc)
            logger.error("Autosave of %s form failed: %s", self.draft_type.value, exc)

    async def _persist(self) -> int | None:
        """Write the current snapshot; None once the form is synced."""
        async with self._lock:
            return await self._write_snapshot()

    async def _write_snapshot(self) -> int | None:
        # Caller holds self._lock
        if self._state is FormState.SYNCED:
            return None
        self.saving = True
        try:
            if self._draft_id is None:
                return await self._create_draft()
            try:
                await self.store.update_draft(
                    self._draft_id, data=self._data, photos=self._photos,
                )
            except DraftNotFoundError:
                self._mark_synced_elsewhere()
                return None
            return self._draft_id
        finally:
            self.saving = False

    def _mark_synced_elsewhere(self) -> None:
        # The inbox or the bulk job synced and deleted the draft while this form was open
        logger.warning(
            "Draft %s was synced elsewhere; later edits are not saved", self._draft_id,
        )
        self._draft_id = None
        self._state = FormState.SYNCED

    async def _create_draft(self) -> int:
        draft_id = await self.store.add_draft(self.draft_type, self._data, self._photos)
        self._draft_id = draft_id
        self._state = FormState.DRAFTED
        logger.info("Saved %s form as local draft %s", self.draft_type.value, draft_id)
        if self.on_draft_created is not None and not self.connectivity.is_online():
            try:
                result = self.on_draft_created(draft_id)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("on_draft_created callback failed for draft %s", draft_id)
        return draft_id

    async def save_now(self) -> int:
        """Persist immediately, skipping the debounce, and return the draft id."""
        self._debouncer.cancel()
        draft_id = await self._persist()
        if draft_id is None:
            raise ValueError("Form has already been synced; start a new form to save again.")
        return draft_id

    # -- sync --

    async def try_sync_now(self) -> SyncResult:
        """Attempt to commit the form now and return the gateway result.

        Offline attempts are refused without touching the network or the
        autosave timer. On success the local draft (if any) is deleted. On
        failure the current form content is saved as a draft (unless it was
        already saved) and the draft keeps ``last_error``. A draft that was
        synced elsewhere in the meantime is never sent again.
        """
        if not self.connectivity.is_online():
            return SyncResult.failed(OFFLINE_ERROR)
        if self._state is FormState.SYNCED:
            return SyncResult.failed(ALREADY_SYNCED_ERROR)

        unsaved = self._debouncer.cancel()
        await self._debouncer.wait_idle()

        async with self._lock:
            # Re-check: the autosave we waited for or a concurrent sync may have ended the form
            if self._state is FormState.SYNCED:
                return SyncResult.failed(ALREADY_SYNCED_ERROR)
            if self._draft_id is not None and await self.store.get_draft(self._draft_id) is None:
                self._mark_synced_elsewhere()
                return SyncResult.failed(ALREADY_SYNCED_ERROR)

            result = await self.gateway.sync_draft(self.snapshot())
            if result.success:
                if self._draft_id is not None:
                    await self.store.delete_draft(self._draft_id)
                self._draft_id = None
                self._state = FormState.SYNCED
                return result

            if unsaved or self._draft_id is None:
                await self._write_snapshot()
            if self._draft_id is not None:
                await self._record_error(self._draft_id, result.error)
        return result

    async def _record_error(self, draft_id: int, error: str | None) -> None:
        try:
            await self.store.update_draft(draft_id, last_error=error)
        except DraftNotFoundError:
            logger.info("Draft %s disappeared before its sync error was recorded", draft_id)

    async def submit(self) -> SubmitOutcome:
        """Send the form if online, otherwise (or on failure) keep it as a draft."""
        if not self.connectivity.is_online():
            draft_id = await self.save_now()
            return SubmitOutcome(
                synced=False,
                draft_id=draft_id,
                message="Offline: draft otomatis disimpan",
            )

        result = await self.try_sync_now()
        if result.success or self._state is FormState.SYNCED:
            return SubmitOutcome(synced=True, result=result, message="Data berhasil terkirim")

        if result.error == OFFLINE_ERROR:
            # Connectivity dropped between the check above and the attempt
            draft_id = await self.save_now()
        else:
            draft_id = self._draft_id
        return SubmitOutcome(
            synced=False,
            draft_id=draft_id,
            result=result,
            message="Gagal mengirim, draft disimpan",
        )

    async def _on_became_online(self) -> None:
        if self._state is not FormState.DRAFTED:
            return
        try:
            result = await self.try_sync_now()
        except Exception:
            logger.exception("Reconnect sync of draft %s failed", self._draft_id)
            return
        if not result.success and self._state is not FormState.SYNCED:
            logger.info("Reconnect sync of draft %s failed: %s", self._draft_id, result.error)
