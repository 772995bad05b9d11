"""Local draft store: durable on-device persistence of unsynced submissions.

Every operation runs in its own transaction, which is the only atomicity the
store guarantees. Drafts are returned as detached ``DraftRead`` snapshots so
callers never hold a live session across network calls.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fieldsurvey.config import settings
from fieldsurvey.models.enums import DraftType
from fieldsurvey.offline.exceptions import DraftNotFoundError, StorageUnavailableError
from fieldsurvey.offline.models import LocalBase, LocalDraft, LocalDraftPhoto
from fieldsurvey.schemas.sync import DraftRead, PhotoAttachment

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"type", "data", "photos", "last_error"}

PhotoInput = PhotoAttachment | dict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _photo_rows(photos: Sequence[PhotoInput] | None) -> list[LocalDraftPhoto]:
    rows = []
    for position, photo in enumerate(photos or []):
        attachment = photo if isinstance(photo, PhotoAttachment) else PhotoAttachment.model_validate(photo)
        rows.append(LocalDraftPhoto(
            position=position,
            name=attachment.name,
            field_key=attachment.field_key,
            content_type=attachment.content_type,
            blob=attachment.blob,
        ))
    return rows


def _to_read(row: LocalDraft) -> DraftRead:
    return DraftRead(
        id=row.id,
        type=row.type,
        data=dict(row.data or {}),
        photos=[PhotoAttachment.model_validate(p) for p in row.photos],
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
        last_error=row.last_error,
    )


class DraftStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ):
        self._session_factory = session_factory
        self._engine = engine

    @classmethod
    async def open(cls, url: str | None = None) -> "DraftStore":
        """Open (creating if needed) the on-device draft database."""
        engine = create_async_engine(url or settings.DRAFT_DATABASE_URL)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(LocalBase.metadata.create_all)
        except (OperationalError, InterfaceError) as exc:
            await engine.dispose()
            raise StorageUnavailableError(f"Penyimpanan lokal tidak tersedia: {exc}") from exc
        return cls(async_sessionmaker(engine, expire_on_commit=False), engine=engine)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except (OperationalError, InterfaceError) as exc:
            raise StorageUnavailableError(f"Penyimpanan lokal tidak tersedia: {exc}") from exc

    async def add_draft(
        self,
        type: DraftType | str,
        data: dict,
        photos: Sequence[PhotoInput] | None = None,
    ) -> int:
        """Insert a new draft and return its generated id."""
        now = _utcnow()
        async with self._session() as session:
            row = LocalDraft(
                type=DraftType(type),
                data=dict(data or {}),
                created_at=now,
                updated_at=now,
                photos=_photo_rows(photos),
            )
            session.add(row)
            await session.flush()
            draft_id = row.id
        logger.debug("Created draft %s (%s)", draft_id, row.type.value)
        return draft_id

    async def get_drafts(self) -> list[DraftRead]:
        """All stored drafts, newest first."""
        async with self._session() as session:
            result = await session.execute(
                select(LocalDraft).order_by(
                    LocalDraft.created_at.desc(), LocalDraft.id.desc()
                )
            )
            return [_to_read(row) for row in result.scalars().all()]

    async def get_draft(self, draft_id: int) -> DraftRead | None:
        async with self._session() as session:
            row = await session.get(LocalDraft, draft_id)
            return _to_read(row) if row is not None else None

    async def count_drafts(self) -> int:
        async with self._session() as session:
            return (await session.execute(select(func.count(LocalDraft.id)))).scalar_one()

    async def update_draft(self, draft_id: int, **fields) -> None:
        """Merge ``type``, ``data``, ``photos`` and/or ``last_error`` into a stored draft.

        Raises DraftNotFoundError when the draft is gone; callers treat that as
        "already handled", usually a sync that deleted it concurrently.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update draft fields: {', '.join(sorted(unknown))}")

        async with self._session() as session:
            row = await session.get(LocalDraft, draft_id)
            if row is None:
                raise DraftNotFoundError(draft_id)
            if "type" in fields:
                row.type = DraftType(fields["type"])
            if "data" in fields:
                row.data = dict(fields["data"] or {})
            if "photos" in fields:
                row.photos = _photo_rows(fields["photos"])
            if "last_error" in fields:
                row.last_error = fields["last_error"]
            row.updated_at = _utcnow()

    async def delete_draft(self, draft_id: int) -> None:
        """Remove a draft. Deleting a missing id is not an error."""
        async with self._session() as session:
            row = await session.get(LocalDraft, draft_id)
            if row is not None:
                await session.delete(row)
