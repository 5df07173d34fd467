from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from matrimony_search.cache import cache as local_cache
from matrimony_search.config import get_settings
from matrimony_search.db import close_mongo_connection, connect_to_mongo
from matrimony_search.main import app


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "matrimony-test")
    monkeypatch.setenv("MONGO_DATING_DB_NAME", "matrimony-dating-test")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    local_cache._store.clear()


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("matrimony_search.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def connected(mongo_client: AsyncMongoMockClient) -> AsyncIterator[AsyncMongoMockClient]:
    await connect_to_mongo()
    yield mongo_client
    await close_mongo_connection()


@pytest_asyncio.fixture
async def api_client(connected: AsyncMongoMockClient) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


def profile_doc(
    user_id: str,
    *,
    last_active_at: Optional[int] = None,
    name: Optional[str] = None,
    name_field: str = "displayName",
    age: Optional[int] = 30,
    location: Optional[str] = None,
    interests: Optional[list[str]] = None,
    is_active: bool = True,
    **extra: Any,
) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "userId": user_id,
        name_field: name if name is not None else user_id.title(),
        "isActive": is_active,
        "interests": list(interests or []),
    }
    if age is not None:
        doc["age"] = age
    if location is not None:
        doc["location"] = location
    if last_active_at is not None:
        doc["lastActiveAt"] = last_active_at
    doc.update(extra)
    return doc


@pytest.fixture
def make_profile():
    return profile_doc
