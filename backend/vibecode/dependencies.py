from collections.abc import AsyncGenerator

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vibecode.config import settings
from vibecode.db.engine import async_session_factory
from vibecode.pipeline.backend import GenerationBackend, get_backend


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_factory


def get_openai_client() -> AsyncOpenAI:
    kwargs: dict = {"api_key": settings.openai_api_key}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return AsyncOpenAI(**kwargs)


def get_generation_backend() -> GenerationBackend:
    if settings.generation_provider == "openai":
        return get_backend(get_openai_client())
    return get_backend()
