"""Errors raised by the offline draft subsystem.

Only ``StorageUnavailableError`` crosses the lifecycle manager and bulk job
boundary as an exception; every other failure is reported as a failed
``SyncResult`` so one draft can never abort the processing of another.
"""


class OfflineSyncError(Exception):
    """Base class for offline draft errors."""


class StorageUnavailableError(OfflineSyncError):
    """The local draft store cannot be opened or used."""


class DraftNotFoundError(OfflineSyncError, LookupError):
    """A draft id no longer exists, typically deleted by a concurrent sync."""

    def __init__(self, draft_id: int):
        super().__init__(f"Draft {draft_id} not found")
        self.draft_id = draft_id


class RemoteApiError(OfflineSyncError):
    """The record-store API answered with an error envelope or bad status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UploadFailureError(OfflineSyncError):
    """A photo could not be uploaded; the whole sync attempt is aborted."""

    def __init__(self, photo_name: str, reason: str):
        super().__init__(f"Gagal upload foto {photo_name}: {reason}")
        self.photo_name = photo_name
        self.reason = reason


class RemoteWriteFailureError(OfflineSyncError):
    """The structured record write failed after all photos were uploaded."""
