"""Schemas for submitted survey documents and uploaded blobs."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from fieldsurvey.models.enums import BlobNamespace, SurveyCollection

# Form fields that identify the surveyor who owns a submission
OWNER_FIELDS = ("userId", "surveyorId")


def owner_from_form(data: dict) -> str | None:
    for field in OWNER_FIELDS:
        value = data.get(field)
        if value:
            return str(value)
    return None


# -- SurveyDocument --

class SurveyDocumentCreate(BaseModel):
    """Form fields travel as extra keys next to the photo references."""

    photo_urls: list[str] = Field(default_factory=list, alias="photoUrls")
    photo_map: dict[str, str] = Field(default_factory=dict, alias="photoMap")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def form_data(self) -> dict:
        return dict(self.model_extra or {})


class SurveyDocumentRead(BaseModel):
    id: uuid.UUID
    collection: SurveyCollection
    data: dict
    photo_urls: list[str]
    photo_map: dict[str, str]
    owner_id: str | None
    submitted_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# -- StoredBlob --

class StoredBlobRead(BaseModel):
    id: uuid.UUID
    path: str
    namespace: BlobNamespace
    owner_id: str
    draft_key: str
    file_name: str
    url: str
    size_bytes: int
    content_type: str
    checksum_sha256: str
    created_at: datetime

    model_config = {"from_attributes": True}
