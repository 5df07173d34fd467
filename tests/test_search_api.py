from __future__ import annotations

import pytest

from matrimony_search.db import get_core_db, get_dating_db
from matrimony_search.db.collections import DATING_PROFILES_COLLECTION, PROFILES_COLLECTION
from matrimony_search.main import app
from matrimony_search.models.search import CollectionPage
from matrimony_search.models.search_metadata import DEFAULT_INTERESTS
from matrimony_search.repositories.exceptions import UnavailableRepositoryError
from matrimony_search.services.profile_search_service import (
    ProfileSearchService,
    get_profile_search_service,
)


async def _seed(make_profile) -> None:
    await get_core_db()[PROFILES_COLLECTION].insert_many(
        [
            make_profile("p1", last_active_at=300, name="Amina", location="Kabul"),
            make_profile("p3", last_active_at=100, name="Farid", location="Herat"),
        ]
    )
    await get_dating_db()[DATING_PROFILES_COLLECTION].insert_many(
        [
            make_profile("p1", last_active_at=300, name="Amina (dating)", name_field="firstName"),
            make_profile(
                "p2",
                last_active_at=200,
                name="Laila",
                name_field="firstName",
                primaryPhotoUrl="https://cdn.test/laila.jpg",
            ),
        ]
    )


@pytest.mark.asyncio
async def test_search_pages_across_both_collections(api_client, make_profile) -> None:
    await _seed(make_profile)

    first = await api_client.get("/api/profiles/search", params={"pageSize": 2})
    assert first.status_code == 200
    body = first.json()
    assert [item["id"] for item in body["items"]] == ["p1", "p2"]
    assert body["items"][0]["displayName"] == "Amina"
    assert body["items"][1]["displayName"] == "Laila"
    assert body["items"][1]["avatarUrl"] == "https://cdn.test/laila.jpg"
    assert body["items"][1]["lastActiveAt"] == 200
    assert body["nextCursor"]

    second = await api_client.get(
        "/api/profiles/search",
        params={"pageSize": 2, "cursor": body["nextCursor"]},
    )
    assert second.status_code == 200
    body = second.json()
    assert [item["id"] for item in body["items"]] == ["p3"]
    assert body["nextCursor"] is None


@pytest.mark.asyncio
async def test_search_free_text_and_city(api_client, make_profile) -> None:
    await _seed(make_profile)

    response = await api_client.get("/api/profiles/search", params={"query": "HERAT"})
    assert [item["id"] for item in response.json()["items"]] == ["p3"]

    response = await api_client.get("/api/profiles/search", params={"city": "Kabul"})
    assert [item["id"] for item in response.json()["items"]] == ["p1"]


@pytest.mark.asyncio
async def test_required_interests_from_comma_list(api_client, make_profile) -> None:
    await get_core_db()[PROFILES_COLLECTION].insert_many(
        [
            make_profile("a", last_active_at=2, interests=["Faith", "Travel"]),
            make_profile("b", last_active_at=1, interests=["Faith"]),
        ]
    )

    response = await api_client.get("/api/profiles/search", params={"interests": "travel, faith"})
    assert [item["id"] for item in response.json()["items"]] == ["a"]


@pytest.mark.asyncio
async def test_page_size_is_clamped(api_client, make_profile) -> None:
    await _seed(make_profile)

    response = await api_client.get("/api/profiles/search", params={"pageSize": 0})
    body = response.json()
    assert response.status_code == 200
    assert len(body["items"]) == 1
    assert body["nextCursor"]

    response = await api_client.get("/api/profiles/search", params={"pageSize": 500})
    body = response.json()
    assert [item["id"] for item in body["items"]] == ["p1", "p2", "p3"]
    assert body["nextCursor"] is None


@pytest.mark.asyncio
async def test_invalid_cursor_is_a_client_error(api_client) -> None:
    response = await api_client.get("/api/profiles/search", params={"cursor": "not-a-cursor"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invalid_filters_are_a_client_error(api_client) -> None:
    response = await api_client.get("/api/profiles/search", params={"minAge": -1})
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail and detail[0]["msg"]


class _DownSource:
    source = "profiles"

    async def fetch_page(self, filters, page_size, resume_after=None) -> CollectionPage:
        raise UnavailableRepositoryError("profiles unavailable")

    def token_after(self, record):
        raise AssertionError("not reached")


@pytest.mark.asyncio
async def test_store_outage_maps_to_service_unavailable(api_client) -> None:
    app.dependency_overrides[get_profile_search_service] = lambda: ProfileSearchService([_DownSource()])
    try:
        response = await api_client.get("/api/profiles/search")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_metadata_defaults(api_client) -> None:
    response = await api_client.get("/api/profiles/search/metadata")
    assert response.status_code == 200
    body = response.json()
    assert body["minAge"] == 18
    assert body["maxAge"] == 70
    assert body["interests"] == sorted(DEFAULT_INTERESTS, key=str.casefold)
    assert "Kabul" in body["cities"]


@pytest.mark.asyncio
async def test_metadata_from_stored_document(api_client) -> None:
    await get_core_db()["metadata"].insert_one(
        {
            "_id": "search_filters",
            "cities": [" Kabul", "herat", ""],
            "ageRange": {"min": 16, "max": 40},
        }
    )

    body = (await api_client.get("/api/profiles/search/metadata")).json()
    assert body["cities"] == ["herat", "Kabul"]
    assert body["minAge"] == 18
    assert body["maxAge"] == 40


@pytest.mark.asyncio
async def test_health_endpoints(api_client) -> None:
    root = await api_client.get("/")
    assert root.json() == {"status": "search-api-ok"}

    health = (await api_client.get("/api/health/db")).json()
    assert health == {
        "mongo": "connected",
        "db": "matrimony-test",
        "datingDb": "matrimony-dating-test",
    }


@pytest.mark.asyncio
async def test_metadata_refresh_drops_the_cached_copy(api_client) -> None:
    cached = (await api_client.get("/api/profiles/search/metadata")).json()
    assert cached["maxAge"] == 70

    await get_core_db()["metadata"].insert_one({"_id": "search_filters", "maxAge": 55})
    assert (await api_client.get("/api/profiles/search/metadata")).json()["maxAge"] == 70

    refreshed = await api_client.post("/api/profiles/search/metadata/refresh")
    assert refreshed.status_code == 200
    assert refreshed.json()["maxAge"] == 55
    assert (await api_client.get("/api/profiles/search/metadata")).json()["maxAge"] == 55
