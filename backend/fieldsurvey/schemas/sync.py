"""Pydantic schemas for offline drafts and their synchronization."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from fieldsurvey.models.enums import DraftType


class PhotoAttachment(BaseModel):
    name: str = Field(default="", max_length=500)
    blob: bytes
    field_key: str = Field(
        default="",
        max_length=100,
        validation_alias=AliasChoices("field_key", "fieldKey"),
        description="Photo slot, e.g. fotoTitik",
    )
    content_type: str = "application/octet-stream"

    model_config = {"from_attributes": True}


class DraftRead(BaseModel):
    id: int | str = Field(description="Local draft id; ephemeral drafts use a generated key")
    type: DraftType
    data: dict = Field(default_factory=dict)
    photos: list[PhotoAttachment] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_error: str | None = None

    model_config = {"from_attributes": True}


class SyncResult(BaseModel):
    success: bool
    remote_id: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, remote_id: str) -> "SyncResult":
        return cls(success=True, remote_id=remote_id)

    @classmethod
    def failed(cls, error: str) -> "SyncResult":
        return cls(success=False, error=error)


class SyncProgress(BaseModel):
    index: int
    total: int
    draft: DraftRead


class BulkSyncSummary(BaseModel):
    total: int
    success: int

    @property
    def failed(self) -> int:
        return self.total - self.success


class DraftStats(BaseModel):
    total: int
    apj: int
    existing: int


class SubmitOutcome(BaseModel):
    """Result of a form submit: either sent to the server or kept as a draft."""
    synced: bool
    draft_id: int | None = None
    result: SyncResult | None = None
    message: str
