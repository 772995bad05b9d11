"""API v1 router that aggregates all sub-routers."""

from fastapi import APIRouter

from fieldsurvey.api.v1.collections import router as collections_router
from fieldsurvey.api.v1.storage import router as storage_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(storage_router)
api_router.include_router(collections_router)
