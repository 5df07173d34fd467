from __future__ import annotations

from ..cache import TTLCache, cache as local_cache
from ..config import get_settings
from ..db import get_core_db
from ..models.search_metadata import SearchFilterMetadata
from ..repositories.search_metadata import SearchMetadataRepository

METADATA_CACHE_KEY = "search:metadata"


class SearchMetadataService:
    """Serves search filter options, cached in-process."""

    def __init__(
        self,
        repository: SearchMetadataRepository,
        *,
        cache: TTLCache,
        ttl_seconds: int,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._ttl = ttl_seconds

    async def get_metadata(self) -> SearchFilterMetadata:
        return await self._cache.get_or_load(
            METADATA_CACHE_KEY,
            self._repository.fetch_metadata,
            self._ttl,
        )

    async def refresh(self) -> SearchFilterMetadata:
        await self._cache.invalidate(METADATA_CACHE_KEY)
        return await self.get_metadata()


def get_search_metadata_service() -> SearchMetadataService:
    settings = get_settings()
    return SearchMetadataService(
        SearchMetadataRepository(get_core_db()),
        cache=local_cache,
        ttl_seconds=settings.search_metadata_ttl_seconds,
    )


__all__ = ["METADATA_CACHE_KEY", "SearchMetadataService", "get_search_metadata_service"]
