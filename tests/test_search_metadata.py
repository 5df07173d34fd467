from __future__ import annotations

import pytest
from pymongo.errors import OperationFailure

from matrimony_search.cache import TTLCache
from matrimony_search.db import get_core_db
from matrimony_search.models.search_metadata import (
    DEFAULT_CITIES,
    MIN_SEARCH_AGE,
    SearchFilterMetadata,
)
from matrimony_search.repositories.search_metadata import SearchMetadataRepository
from matrimony_search.services.search_metadata_service import SearchMetadataService


def test_from_document_prefers_age_range() -> None:
    metadata = SearchFilterMetadata.from_document(
        {
            "cities": ["Kunduz", " balkh "],
            "interests": [],
            "minAge": 21,
            "maxAge": 60,
            "ageRange": {"min": 25, "max": 45},
        }
    )
    assert metadata.cities == ["balkh", "Kunduz"]
    assert metadata.interests == SearchFilterMetadata.default().interests
    assert (metadata.min_age, metadata.max_age) == (25, 45)


def test_from_document_rejects_bad_ages() -> None:
    metadata = SearchFilterMetadata.from_document({"minAge": True, "maxAge": "old", "ageRange": "x"})
    assert metadata.min_age == MIN_SEARCH_AGE
    assert metadata.max_age == 70


def test_normalized_keeps_a_valid_range() -> None:
    metadata = SearchFilterMetadata(cities=["", "Herat"], min_age=10, max_age=5).normalized()
    assert metadata.cities == ["Herat"]
    assert metadata.min_age == MIN_SEARCH_AGE
    assert metadata.max_age == MIN_SEARCH_AGE + 1


@pytest.mark.asyncio
async def test_repository_uses_first_existing_document(connected) -> None:
    db = get_core_db()
    await db["app_metadata"].insert_one({"_id": "search_filters", "cities": ["Ghazni"]})
    await db["meta"].insert_one({"_id": "search_filters", "cities": ["Balkh"]})

    metadata = await SearchMetadataRepository(db).fetch_metadata()
    assert metadata.cities == ["Ghazni"]


@pytest.mark.asyncio
async def test_repository_falls_back_to_defaults(connected) -> None:
    metadata = await SearchMetadataRepository(get_core_db()).fetch_metadata()
    assert metadata == SearchFilterMetadata.default()
    assert sorted(metadata.cities) == sorted(DEFAULT_CITIES)


class _FlakyCollection:
    async def find_one(self, *_args, **_kwargs):
        raise OperationFailure("not authorized", code=13)


class _Database:
    def __init__(self, collections) -> None:
        self._collections = collections

    def __getitem__(self, name):
        return self._collections[name]


@pytest.mark.asyncio
async def test_repository_skips_failing_candidates(connected) -> None:
    stored = get_core_db()["search_metadata"]
    await stored.insert_one({"_id": "filters", "interests": ["Poetry"]})
    database = _Database({"metadata": _FlakyCollection(), "search_metadata": stored})

    repo = SearchMetadataRepository(
        database,
        candidates=[("metadata", "search_filters"), ("search_metadata", "filters")],
    )
    metadata = await repo.fetch_metadata()
    assert metadata.interests == ["Poetry"]


class _CountingRepository:
    def __init__(self) -> None:
        self.calls = 0

    async def fetch_metadata(self) -> SearchFilterMetadata:
        self.calls += 1
        return SearchFilterMetadata(cities=[f"City {self.calls}"])


@pytest.mark.asyncio
async def test_service_caches_until_refresh() -> None:
    repository = _CountingRepository()
    service = SearchMetadataService(repository, cache=TTLCache(), ttl_seconds=60)

    first = await service.get_metadata()
    second = await service.get_metadata()
    assert first is second
    assert repository.calls == 1

    refreshed = await service.refresh()
    assert refreshed.cities == ["City 2"]
    assert repository.calls == 2


@pytest.mark.asyncio
async def test_service_without_ttl_always_loads() -> None:
    repository = _CountingRepository()
    service = SearchMetadataService(repository, cache=TTLCache(), ttl_seconds=0)

    await service.get_metadata()
    await service.get_metadata()
    assert repository.calls == 2
