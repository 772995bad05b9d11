import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fieldsurvey.api.v1 import api_router
from fieldsurvey.config import settings
from fieldsurvey.core.error_handlers import register_error_handlers
from fieldsurvey.core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start with the default secret key in non-debug mode
    if not settings.DEBUG and settings.SECRET_KEY == "change-me-in-production":
        raise RuntimeError(
            "SECRET_KEY is still the default value. "
            "Set a strong SECRET_KEY env var before running in production."
        )
    yield
    from fieldsurvey.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# --- Middleware (outermost first) ---

app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.DEBUG)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

# --- Error handlers ---
register_error_handlers(app)

# --- Routes ---
app.include_router(api_router)


@app.get("/api/health")
async def health_check():
    """Deep health check: verifies DB and Redis connectivity.

    Field devices poll this endpoint to decide whether they are online.
    """
    import time

    checks: dict = {"version": settings.APP_VERSION}
    healthy = True

    start = time.monotonic()
    try:
        from sqlalchemy import text

        from fieldsurvey.database import async_session_factory

        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = {"status": "ok", "latency_ms": round((time.monotonic() - start) * 1000, 1)}
    except Exception as exc:
        healthy = False
        checks["database"] = {"status": "error", "detail": str(exc)[:200]}

    start = time.monotonic()
    try:
        import redis.asyncio as aioredis

        r = aioredis.from_url(settings.REDIS_URL, socket_connect_timeout=3)
        await r.ping()
        await r.aclose()
        checks["redis"] = {"status": "ok", "latency_ms": round((time.monotonic() - start) * 1000, 1)}
    except Exception as exc:
        healthy = False
        checks["redis"] = {"status": "error", "detail": str(exc)[:200]}

    # Celery check (lightweight -- just verify broker is reachable)
    checks["celery_broker"] = checks.get("redis", {}).get("status", "unknown")

    # Blob storage mount
    from pathlib import Path

    storage_ok = Path(settings.BLOB_STORAGE_PATH).is_dir()
    checks["blob_storage"] = {"status": "ok" if storage_ok else "error"}
    healthy = healthy and storage_ok

    checks["status"] = "healthy" if healthy else "degraded"

    from fastapi.responses import JSONResponse

    status_code = 200 if healthy else 503
    return JSONResponse(content=checks, status_code=status_code)
