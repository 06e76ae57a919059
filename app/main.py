import asyncio
import contextlib
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.api.v1.auth import router as auth_router
from app.api.v1.geo import router as geo_router
from app.api.v1.diary import router as diary_router
from app.api.v1.community import router as community_router
from app.api.v1.gamification import router as gamification_router
from app.api.v1.gamification import challenges_router
from app.api.v1.content import educational_router, exercises_router
from app.api.v1.moderation import router as moderation_router
from app.api.v1.automate import router as automate_router
from app.api.v1.contact import router as contact_router
from app.services.cleanup import cleanup_loop

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cleanup_task = None
    if settings.CLEANUP_ENABLED:
        cleanup_task = asyncio.create_task(cleanup_loop())
        logger.info("Cleanup job scheduled every %dh", settings.CLEANUP_INTERVAL_HOURS)
    yield
    if cleanup_task is not None:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task


app = FastAPI(
    title="MindCare API",
    version="1.0.0",
    description="Backend for MindCare, a mental-health companion app.",
    lifespan=lifespan,
)

app.include_router(auth_router,         prefix="/api/v1")
app.include_router(geo_router,          prefix="/api/v1")
app.include_router(diary_router,        prefix="/api/v1")
app.include_router(community_router,    prefix="/api/v1")
app.include_router(gamification_router, prefix="/api/v1")
app.include_router(challenges_router,   prefix="/api/v1")
app.include_router(exercises_router,    prefix="/api/v1")
app.include_router(educational_router,  prefix="/api/v1")
app.include_router(moderation_router,   prefix="/api/v1")
app.include_router(automate_router,     prefix="/api/v1")
app.include_router(contact_router,      prefix="/api/v1")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = str(uuid.uuid4())
    logger.error("Unhandled exception (ID: %s) on %s %s", error_id, request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred. Please report this error ID.",
            "error_id": error_id,
        },
    )


@app.get("/health", tags=["meta"])
async def health_check():
    return {"status": "ok", "version": app.version}
