"""Shared fixtures.

Tests run against a file-backed SQLite database (aiosqlite) created fresh
for every test, so concurrent sessions behave like separate connections.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import vibecode.models  # noqa: F401
from vibecode.db.base import Base
from vibecode.schemas.project import ProjectCreate
from vibecode.schemas.usage import AccountCreate
from vibecode.services import project_service, usage_service

TEST_SECRET = "test-secret"


class FakeBackend:
    """Generation backend double that records prompts."""

    model = "fake-model"

    def __init__(
        self,
        text: str = "```javascript\nconsole.log('hello');\n```",
        error: Exception | None = None,
        delay: float = 0.0,
        on_generate: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.on_generate = on_generate
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        # Always yield so concurrent sagas interleave
        await asyncio.sleep(self.delay)
        if self.on_generate is not None:
            await self.on_generate(prompt)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vibecode.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def owner() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def stranger() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def project(db, owner):
    return await project_service.create_project(db, owner, ProjectCreate(name="Demo"))


@pytest.fixture
async def account(db, owner):
    return await usage_service.create_account(db, owner, AccountCreate(full_name="Project Owner"))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(user_id: uuid.UUID | str, secret: str = TEST_SECRET, expires_in: timedelta = timedelta(hours=1)) -> str:
        now = datetime.now(timezone.utc)
        return jwt.encode(
            {"sub": str(user_id), "iat": now, "exp": now + expires_in}, secret, algorithm="HS256"
        )

    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[[uuid.UUID], dict[str, str]]:
    def _headers(user_id: uuid.UUID) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
async def client(session_factory, backend):
    from vibecode.auth.dependencies import get_identity_verifier
    from vibecode.auth.verifier import JWTIdentityVerifier
    from vibecode.dependencies import get_db, get_generation_backend, get_session_factory
    from vibecode.main import app

    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_generation_backend] = lambda: backend
    app.dependency_overrides[get_identity_verifier] = lambda: JWTIdentityVerifier(TEST_SECRET)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()
