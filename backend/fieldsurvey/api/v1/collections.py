"""Survey record collection endpoints.

Field devices create one document per synced draft; reviewers list and read
them. Documents are write-once: there is no update or merge endpoint.
"""

import math
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.core.deps import CurrentUser, require_role
from fieldsurvey.database import get_db
from fieldsurvey.models.enums import SurveyCollection, UserRole
from fieldsurvey.schemas import PaginationMeta
from fieldsurvey.schemas.survey import SurveyDocumentCreate, SurveyDocumentRead
from fieldsurvey.services.survey_record import SurveyRecordService

router = APIRouter(prefix="/collections", tags=["collections"])

ALL_ROLES = (UserRole.ADMIN, UserRole.SURVEYOR)
REVIEW_ROLES = (UserRole.ADMIN,)


def _collection_or_404(name: str) -> SurveyCollection:
    try:
        return SurveyCollection(name)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown collection: {name}",
        )


def _paginate_meta(page: int, per_page: int, total: int) -> dict:
    return PaginationMeta(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page) if per_page else 0,
    ).model_dump()


@router.post(
    "/{collection}/documents",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
)
async def create_document(
    collection: str,
    data: SurveyDocumentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_role(*ALL_ROLES))],
):
    """Create a document with a generated id; timestamps are server-assigned."""
    target = _collection_or_404(collection)
    svc = SurveyRecordService(db)
    doc = await svc.create_document(target, data, submitted_by=current_user.id)
    return {
        "success": True,
        "data": SurveyDocumentRead.model_validate(doc).model_dump(mode="json"),
    }


@router.get("/{collection}/documents", response_model=dict)
async def list_documents(
    collection: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_role(*REVIEW_ROLES))],
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    owner_id: str | None = Query(None, max_length=200),
):
    target = _collection_or_404(collection)
    svc = SurveyRecordService(db)
    items, total = await svc.list_documents(
        target, page=page, per_page=per_page, owner_id=owner_id,
    )
    return {
        "success": True,
        "data": [SurveyDocumentRead.model_validate(d).model_dump(mode="json") for d in items],
        "meta": _paginate_meta(page, per_page, total),
    }


@router.get("/{collection}/documents/{document_id}", response_model=dict)
async def get_document(
    collection: str,
    document_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_role(*REVIEW_ROLES))],
):
    target = _collection_or_404(collection)
    svc = SurveyRecordService(db)
    doc = await svc.get_document(target, document_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found.")
    return {
        "success": True,
        "data": SurveyDocumentRead.model_validate(doc).model_dump(mode="json"),
    }
