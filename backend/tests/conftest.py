"""Shared fixtures for backend tests."""

from __future__ import annotations

import os

# Settings are read at import time — configure before anything imports authgate.
os.environ.setdefault("AUTH_DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-please-ignore-0123456789abcdef")
os.environ.setdefault("JWT_EXPIRES_IN", "1h")
os.environ.setdefault("BOOTSTRAP_ADMIN_PASSWORD", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_SQLITE_URL = "sqlite+aiosqlite://"

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite with all tables; one shared connection per test."""
    from authgate.db.models import Base

    eng = create_async_engine(
        _SQLITE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await eng.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """Async client for the real app, wired to the per-test database."""
    from authgate.db.engine import get_db
    from authgate.main import app

    async def override_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly through the store and return it."""
    from authgate.services import user_service

    async def _make(
        email: str = "alice@acme.io",
        password: str = DEFAULT_PASSWORD,
        role: str = "user",
        name: str = "Alice",
    ):
        async with session_factory() as session:
            user = await user_service.create_user(
                session,
                name=name,
                email=email,
                password=password,
                password_confirm=password,
                role=role,
            )
            await session.commit()
            return user

    return _make
