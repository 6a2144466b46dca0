"""DesignDesk FastAPI application."""

from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from designdesk.config import get_settings
from designdesk.database import close_db, init_db
from designdesk.logging_config import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from designdesk.redis import close_redis, init_redis
from designdesk.routes.admin import router as admin_router
from designdesk.routes.comments import router as comments_router
from designdesk.routes.designers import router as designers_router
from designdesk.routes.notifications import router as notifications_router
from designdesk.routes.requests import router as requests_router
from designdesk.routes.role_change_requests import router as role_change_requests_router
from designdesk.routes.users import router as users_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: init DB + Redis on startup, cleanup on shutdown."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")

    logger.info("starting_database_init")
    await init_db()

    # Redis only carries live notification fan-out; rows are the source of truth.
    if settings.redis_enabled:
        try:
            await init_redis(settings.redis_url)
            logger.info("redis_connected", url=settings.redis_url)
        except Exception as e:
            logger.warning("redis_unavailable", url=settings.redis_url, error=str(e))

    logger.info("application_started")
    yield

    logger.info("shutting_down")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


app = FastAPI(
    title="DesignDesk",
    description="Design request management: intake, assignment, review and publishing",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag every log line emitted while handling a request with its id."""
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    bind_request_context(request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_request_context("method", "path")
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(requests_router)
app.include_router(comments_router)
app.include_router(notifications_router)
app.include_router(designers_router)
app.include_router(users_router)
app.include_router(role_change_requests_router)
app.include_router(admin_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "designdesk"}
