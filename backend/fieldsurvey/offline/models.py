"""On-device tables for drafts that have not been synced yet.

These live in a local SQLite file, separate from the record-store metadata.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from fieldsurvey.models.enums import DraftType


class LocalBase(DeclarativeBase):
    pass


class LocalDraft(LocalBase):
    __tablename__ = "draft"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[DraftType] = mapped_column(nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    photos: Mapped[list["LocalDraftPhoto"]] = relationship(
        back_populates="draft",
        cascade="all, delete-orphan",
        order_by="LocalDraftPhoto.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_draft_type", "type"),
        Index("ix_draft_created_at", "created_at"),
    )


class LocalDraftPhoto(LocalBase):
    __tablename__ = "draft_photo"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    draft_id: Mapped[int] = mapped_column(
        ForeignKey("draft.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    field_key: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    content_type: Mapped[str] = mapped_column(
        String(200), nullable=False, default="application/octet-stream"
    )
    blob: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    draft: Mapped["LocalDraft"] = relationship(back_populates="photos")

    __table_args__ = (
        Index("ix_draft_photo_draft", "draft_id", "position"),
    )
