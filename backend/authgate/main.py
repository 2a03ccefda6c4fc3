"""FastAPI application entry point."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from authgate.config import settings
from authgate.db.engine import engine, async_session
from authgate.db.models import Base
from authgate.errors import register_exception_handlers

# Routers
from authgate.api.auth import router as auth_router
from authgate.api.users import router as users_router

from authgate.utils.logger import ctx_request_id, ctx_user_id, setup_logger

setup_logger(log_format=settings.LOG_FORMAT, log_level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL)
logger = logging.getLogger("authgate.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.is_sqlite:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    # else: for PostgreSQL, run `alembic upgrade head` before starting the server

    # Seed bootstrap admin when configured
    try:
        from authgate.services.user_service import ensure_default_admin
        async with async_session() as db:
            await ensure_default_admin(db)
    except Exception as _e:
        logger.warning("Bootstrap admin seeding failed: %s", _e)

    logger.info("Application lifespan startup complete — entering serve loop")
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(
    title="authgate",
    description="Sign-up, login, bearer-token route protection and role restriction",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Bind a request id (from ``X-Request-ID`` or freshly generated) to the logging context."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    rid_token = ctx_request_id.set(request_id)
    uid_token = ctx_user_id.set(None)
    try:
        response = await call_next(request)
    finally:
        ctx_user_id.reset(uid_token)
        ctx_request_id.reset(rid_token)
    response.headers["X-Request-ID"] = request_id
    return response


# Mount routers
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/users", tags=["users"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}
