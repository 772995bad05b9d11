"""Survey record collections: create-with-generated-id documents for review."""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.models.enums import SurveyCollection
from fieldsurvey.models.survey import SurveyDocument
from fieldsurvey.schemas.survey import SurveyDocumentCreate, owner_from_form
from fieldsurvey.services.exceptions import InvalidPhotoMapError

logger = logging.getLogger(__name__)


class SurveyRecordService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_document(
        self,
        collection: SurveyCollection,
        data: SurveyDocumentCreate,
        submitted_by: uuid.UUID | None,
    ) -> SurveyDocument:
        form_data = data.form_data
        unknown = [u for u in data.photo_map.values() if u not in data.photo_urls]
        if unknown:
            raise InvalidPhotoMapError("photoMap references URLs missing from photoUrls.")

        doc = SurveyDocument(
            id=uuid.uuid4(),
            collection=collection,
            data=form_data,
            photo_urls=list(data.photo_urls),
            photo_map=dict(data.photo_map),
            owner_id=owner_from_form(form_data),
            submitted_by=submitted_by,
        )
        self.db.add(doc)
        await self.db.flush()
        await self.db.refresh(doc)
        logger.info(
            "Created %s document %s with %d photo(s)",
            collection.value, doc.id, len(doc.photo_urls),
        )
        return doc

    async def get_document(
        self, collection: SurveyCollection, document_id: uuid.UUID
    ) -> SurveyDocument | None:
        result = await self.db.execute(
            select(SurveyDocument).where(
                SurveyDocument.id == document_id,
                SurveyDocument.collection == collection,
            )
        )
        return result.scalar_one_or_none()

    async def list_documents(
        self,
        collection: SurveyCollection,
        page: int = 1,
        per_page: int = 20,
        owner_id: str | None = None,
    ) -> tuple[list[SurveyDocument], int]:
        query = select(SurveyDocument).where(SurveyDocument.collection == collection)
        if owner_id:
            query = query.where(SurveyDocument.owner_id == owner_id)

        count_q = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_q)).scalar_one()

        query = query.order_by(SurveyDocument.created_at.desc())
        query = query.offset((page - 1) * per_page).limit(per_page)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total
