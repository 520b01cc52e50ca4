"""
Pytest configuration and shared fixtures.

Tests run against in-memory SQLite (aiosqlite) and the bundled sample
question set, so no PostgreSQL or Redis is needed.
"""
import os

# Settings are read at import time, so configure them before importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["QUESTION_SOURCE"] = "sample"
os.environ["PROGRESS_AGGREGATION_MODE"] = "inline"
os.environ["AUTH_JWT_SECRET"] = "test-secret-key-for-nclex-prep"
os.environ["DEBUG"] = "false"

import uuid  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.api.deps import get_source  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.db.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import User  # noqa: E402
from app.services.usage_service import UsageTracker  # noqa: E402
from app.sources import SampleQuestionSource, load_sample_dataset, reset_question_source  # noqa: E402


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan: skips the database and Redis startup checks."""
    yield


app.router.lifespan_context = _test_lifespan


@pytest.fixture
async def engine():
    """A fresh in-memory database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="session")
def sample_data():
    return load_sample_dataset(settings.SAMPLE_QUESTIONS_PATH)


@pytest.fixture
def source():
    """The bundled sample question set."""
    return SampleQuestionSource(settings.SAMPLE_QUESTIONS_PATH)


@pytest.fixture
def tracker(db_session, source):
    return UsageTracker(db_session, source)


@pytest.fixture
async def test_user(db_session) -> User:
    user = User(id=uuid.uuid4(), email="student@example.com", is_active=True)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user):
    token = create_access_token(test_user.id, email=test_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory, source) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database and question source overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_source] = lambda: source

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    reset_question_source()
