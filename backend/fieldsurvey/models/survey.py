"""Submitted survey records (the remote structured store)."""

import uuid

from sqlalchemy import JSON, Enum, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fieldsurvey.models.base import BaseModel
from fieldsurvey.models.enums import SurveyCollection


class SurveyDocument(BaseModel):
    __tablename__ = "survey_document"

    collection: Mapped[SurveyCollection] = mapped_column(
        Enum(SurveyCollection, native_enum=False, length=50), nullable=False
    )
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    photo_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    photo_map: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    owner_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    submitted_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        Index("ix_survey_document_collection", "collection"),
        Index("ix_survey_document_created", "created_at"),
    )
