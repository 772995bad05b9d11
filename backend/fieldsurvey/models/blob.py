"""Uploaded photo blobs.

Blob content lives on the storage mount; only metadata is kept in the database.
"""

import uuid

from sqlalchemy import BigInteger, Enum, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from fieldsurvey.models.base import BaseModel
from fieldsurvey.models.enums import BlobNamespace


class StoredBlob(BaseModel):
    __tablename__ = "stored_blob"

    path: Mapped[str] = mapped_column(String(1000), nullable=False, unique=True)
    namespace: Mapped[BlobNamespace] = mapped_column(
        Enum(BlobNamespace, native_enum=False, length=50), nullable=False
    )
    owner_id: Mapped[str] = mapped_column(String(200), nullable=False)
    draft_key: Mapped[str] = mapped_column(String(100), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(200), nullable=False)
    checksum_sha256: Mapped[str] = mapped_column(String(64), nullable=False)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        Index("ix_stored_blob_owner_draft", "owner_id", "draft_key"),
        Index("ix_stored_blob_created", "created_at"),
    )
