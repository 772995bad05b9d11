"""Offline capture of survey forms with eventual synchronization.

Drafts are kept in an on-device SQLite store until the record-store API has
accepted them, then deleted. Nothing here raises across the sync boundary
except ``StorageUnavailableError``.
"""

from fieldsurvey.offline.connectivity import ConnectivityObserver, HttpConnectivityProbe  # noqa: F401
from fieldsurvey.offline.exceptions import (  # noqa: F401
    DraftNotFoundError,
    OfflineSyncError,
    RemoteApiError,
    RemoteWriteFailureError,
    StorageUnavailableError,
    UploadFailureError,
)
from fieldsurvey.offline.gateway import SubmissionGateway  # noqa: F401
from fieldsurvey.offline.inbox import DraftInbox  # noqa: F401
from fieldsurvey.offline.lifecycle import DraftLifecycleManager  # noqa: F401
from fieldsurvey.offline.reconcile import DraftReconciler  # noqa: F401
from fieldsurvey.offline.store import DraftStore  # noqa: F401
