"""Initial schema - survey documents and stored blobs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Survey documents ---

    op.create_table(
        "survey_document",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("collection", sa.String(50), nullable=False),
        sa.Column("data", sa.JSON, nullable=False),
        sa.Column("photo_urls", sa.JSON, nullable=False),
        sa.Column("photo_map", sa.JSON, nullable=False),
        sa.Column("owner_id", sa.String(200), nullable=True),
        sa.Column("submitted_by", sa.Uuid, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_survey_document_collection", "survey_document", ["collection"])
    op.create_index("ix_survey_document_created", "survey_document", ["created_at"])

    # --- Stored blobs ---

    op.create_table(
        "stored_blob",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("path", sa.String(1000), nullable=False, unique=True),
        sa.Column("namespace", sa.String(50), nullable=False),
        sa.Column("owner_id", sa.String(200), nullable=False),
        sa.Column("draft_key", sa.String(100), nullable=False),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("size_bytes", sa.BigInteger, nullable=False),
        sa.Column("content_type", sa.String(200), nullable=False),
        sa.Column("checksum_sha256", sa.String(64), nullable=False),
        sa.Column("uploaded_by", sa.Uuid, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_stored_blob_owner_draft", "stored_blob", ["owner_id", "draft_key"])
    op.create_index("ix_stored_blob_created", "stored_blob", ["created_at"])


def downgrade() -> None:
    op.drop_table("stored_blob")
    op.drop_table("survey_document")
