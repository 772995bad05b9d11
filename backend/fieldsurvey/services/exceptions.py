"""Record-store service errors, mapped onto error envelopes by the API layer."""


class RecordStoreError(ValueError):
    """A device request the record store refuses to apply."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidBlobPathError(RecordStoreError):
    """Blob path is not ``<namespace>/<owner>/<draft>/<file>`` or leaves the storage root."""

    code = "INVALID_BLOB_PATH"


class BlobTooLargeError(RecordStoreError):
    status_code = 413
    code = "BLOB_TOO_LARGE"


class InvalidPhotoMapError(RecordStoreError):
    code = "INVALID_PHOTO_MAP"
