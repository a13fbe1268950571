"""Shared pytest fixtures for link store and API tests."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
import redis.asyncio as redis
from httpx import ASGITransport, AsyncClient

from app.codegen import CodeGenerator
from app.config import Settings, get_settings
from app.dependencies import _service_manager
from app.link_store import InMemoryLinkStore
from app.main import app


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def memory_store(settings: Settings) -> InMemoryLinkStore:
    return InMemoryLinkStore(
        CodeGenerator(settings.SHORT_CODE_LENGTH),
        settings.CODE_GENERATION_ATTEMPTS,
    )


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Mock Redis client exposing the hash commands the link store uses."""
    redis_client = AsyncMock(spec=redis.Redis)
    redis_client.hsetnx = AsyncMock(return_value=1)
    redis_client.hget = AsyncMock(return_value=None)
    redis_client.hgetall = AsyncMock(return_value={})
    redis_client.hdel = AsyncMock(return_value=1)
    redis_client.eval = AsyncMock(return_value=1)
    redis_client.ping = AsyncMock(return_value=True)
    return redis_client


@pytest_asyncio.fixture
async def client(memory_store: InMemoryLinkStore) -> AsyncGenerator[AsyncClient, None]:
    await _service_manager.cleanup()
    await _service_manager.initialize(link_store=memory_store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await _service_manager.cleanup()


@pytest.fixture
def admin_auth(settings: Settings) -> tuple[str, str]:
    return settings.BASIC_AUTH_USERNAME, settings.BASIC_AUTH_PASSWORD
