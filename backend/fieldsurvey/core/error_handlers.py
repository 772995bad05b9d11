"""Error envelopes for the record-store API.

Every failure leaves the API as ``{"success": false, "error": {"code", "message"}}``.
Field devices copy ``message`` verbatim into the draft's last error, so it
must read well on its own; ``code`` is what client code branches on.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fieldsurvey.config import settings
from fieldsurvey.services.exceptions import RecordStoreError

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, details: list | None = None) -> dict:
    error: dict = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def _respond(status_code: int, code: str, message: str, details: list | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error_body(code, message, details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _respond(exc.status_code, f"HTTP_{exc.status_code}", detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # loc starts with "query", "path" or "body"; devices only need the field
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    fields = ", ".join(d["field"] for d in details)
    return _respond(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        f"Invalid request fields: {fields}",
        details,
    )


async def record_store_error_handler(request: Request, exc: RecordStoreError) -> JSONResponse:
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return _respond(exc.status_code, exc.code, exc.message)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Two devices wrote the same blob path at once; the retry overwrites cleanly."""
    logger.warning("Write conflict on %s %s: %s", request.method, request.url.path, exc.orig)
    return _respond(
        status.HTTP_409_CONFLICT,
        "CONFLICT",
        "A concurrent upload wrote the same record. Retry the sync.",
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    message = f"Database error: {exc}" if settings.DEBUG else "A database error occurred. Please try again later."
    return _respond(status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    message = f"Internal error: {exc}" if settings.DEBUG else "An unexpected error occurred. Please try again later."
    return _respond(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RecordStoreError, record_store_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
