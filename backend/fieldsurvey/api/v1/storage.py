"""Blob storage endpoints used by field devices to upload survey photos."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fieldsurvey.core.deps import CurrentUser, require_role
from fieldsurvey.database import get_db
from fieldsurvey.models.enums import UserRole
from fieldsurvey.schemas.survey import StoredBlobRead
from fieldsurvey.services.blob_store import BlobStoreService

router = APIRouter(prefix="/storage", tags=["storage"])

ALL_ROLES = (UserRole.ADMIN, UserRole.SURVEYOR)


@router.put("/{path:path}", response_model=dict)
async def upload_blob(
    path: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_role(*ALL_ROLES))],
):
    """Store the raw request body at ``path`` and return its download URL.

    Uploading the same path again overwrites the previous content.
    """
    content = await request.body()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty upload.",
        )
    svc = BlobStoreService(db)
    blob = await svc.store_blob(
        path=path,
        content=content,
        content_type=request.headers.get("content-type"),
        uploaded_by=current_user.id,
    )
    return {
        "success": True,
        "data": StoredBlobRead.model_validate(blob).model_dump(mode="json"),
    }


@router.get("/{path:path}")
async def download_blob(
    path: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(require_role(*ALL_ROLES))],
):
    svc = BlobStoreService(db)
    blob = await svc.get_blob(path)
    if blob is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blob not found.")
    file_path = svc.file_for(blob.path)
    if not file_path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Blob content missing from storage.",
        )
    return FileResponse(file_path, media_type=blob.content_type, filename=blob.file_name)
