"""Repository for the search filter metadata document."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from ..db.collections import SEARCH_METADATA_DOCUMENTS
from ..models.search_metadata import SearchFilterMetadata

LOGGER = logging.getLogger("uvicorn.error")


class SearchMetadataRepository:
    """Reads filter options from the first metadata document that exists."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        candidates: Optional[Iterable[tuple[str, str]]] = None,
    ) -> None:
        self._database = database
        self._candidates = tuple(candidates or SEARCH_METADATA_DOCUMENTS)

    async def fetch_metadata(self) -> SearchFilterMetadata:
        for collection_name, document_id in self._candidates:
            try:
                doc = await self._database[collection_name].find_one({"_id": document_id})
            except PyMongoError as exc:
                LOGGER.info(
                    "Failed to fetch search metadata from %s/%s: %s",
                    collection_name,
                    document_id,
                    exc,
                )
                continue
            if doc:
                return SearchFilterMetadata.from_document(doc)

        LOGGER.info("Falling back to default search metadata")
        return SearchFilterMetadata.default()


__all__ = ["SearchMetadataRepository"]
