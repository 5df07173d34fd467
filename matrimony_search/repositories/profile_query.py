"""Bounded, keyset-paginated profile queries against one collection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..db.mongo import ACTIVE_FIELD, LAST_ACTIVE_FIELD, PROFILE_ID_FIELD, SEARCH_SORT
from ..models.profile import ProfileRecord
from ..models.search import CollectionPage, ResumeToken, SearchFilters
from .exceptions import UnavailableRepositoryError, map_store_error

LOGGER = logging.getLogger("uvicorn.error")

MAX_PAGE_SIZE = 50
DEFAULT_TIMEOUT_SECONDS = 5.0


def clamp_page_size(page_size: Optional[int], cap: int = MAX_PAGE_SIZE) -> int:
    """Force a requested page size into ``[1, cap]``."""

    if page_size is None:
        return cap
    return min(max(int(page_size), 1), max(int(cap), 1))


def _raw_timestamp(value: Any) -> Optional[Union[int, float]]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def keyset_predicate(token: ResumeToken) -> dict[str, Any]:
    """Match records that sort strictly after ``token``.

    Missing ``lastActiveAt`` sorts below every timestamp, so those records
    always follow a timestamped position.
    """

    if token.last_active_at is None:
        return {
            LAST_ACTIVE_FIELD: None,
            PROFILE_ID_FIELD: {"$lt": token.profile_id},
        }
    return {
        "$or": [
            {LAST_ACTIVE_FIELD: {"$lt": token.last_active_at}},
            {
                LAST_ACTIVE_FIELD: token.last_active_at,
                PROFILE_ID_FIELD: {"$lt": token.profile_id},
            },
            {LAST_ACTIVE_FIELD: None},
        ]
    }


class ProfileQueryRepository:
    """Issues one filtered, sorted, bounded query against a profile collection.

    Only predicates MongoDB can evaluate are pushed down (activity, age range,
    gender and city equality). Free text and required interests are left to
    the caller.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        collection_name: str,
        *,
        source: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[collection_name]
        self._source = source
        self._timeout = timeout_seconds
        self._max_page_size = max_page_size

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    @property
    def source(self) -> str:
        return self._source

    @staticmethod
    def build_predicates(
        filters: SearchFilters,
        resume_after: Optional[ResumeToken] = None,
    ) -> dict[str, Any]:
        clauses: list[dict[str, Any]] = [
            {
                ACTIVE_FIELD: True,
                PROFILE_ID_FIELD: {"$exists": True, "$nin": [None, ""]},
            },
            # Numbers or missing only; dates and strings sort above every number.
            {"$or": [{LAST_ACTIVE_FIELD: None}, {LAST_ACTIVE_FIELD: {"$type": "number"}}]},
        ]

        age_range: dict[str, int] = {}
        if filters.min_age is not None:
            age_range["$gte"] = filters.min_age
        if filters.max_age is not None:
            age_range["$lte"] = filters.max_age
        if age_range:
            clauses.append({"age": age_range})

        if filters.preferred_gender:
            clauses.append({"preferredGender": filters.preferred_gender})
        if filters.city:
            clauses.append({"location": filters.city})

        if resume_after is not None:
            clauses.append(keyset_predicate(resume_after))

        return {"$and": clauses}

    @staticmethod
    def token_after(record: ProfileRecord) -> ResumeToken:
        return ResumeToken(last_active_at=record.last_active_at, profile_id=record.id)

    async def _find(self, query: dict[str, Any], limit: int) -> list[dict[str, Any]]:
        cursor = self._collection.find(query).sort(SEARCH_SORT).limit(limit)
        return await cursor.to_list(length=limit)

    async def fetch_page(
        self,
        filters: SearchFilters,
        page_size: Optional[int],
        resume_after: Optional[ResumeToken] = None,
    ) -> CollectionPage:
        """Fetch up to ``page_size`` active profiles after ``resume_after``.

        The returned page carries a resume token only when the query filled
        the requested size, i.e. when more matching documents may exist.
        """

        limit = clamp_page_size(page_size, self._max_page_size)
        query = self.build_predicates(filters, resume_after)

        try:
            documents = await asyncio.wait_for(self._find(query, limit), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            LOGGER.warning("Profile query on %s timed out after %.2fs", self._source, self._timeout)
            raise UnavailableRepositoryError(f"{self._source} query timed out") from exc
        except PyMongoError as exc:
            raise map_store_error(exc, source=self._source) from exc

        records: list[ProfileRecord] = []
        for document in documents:
            try:
                records.append(ProfileRecord.model_validate(document))
            except ValidationError as exc:
                LOGGER.debug(
                    "Skipping malformed profile %s in %s: %s",
                    document.get("_id"),
                    self._source,
                    exc.error_count(),
                )

        resume_token: Optional[ResumeToken] = None
        if documents and len(documents) == limit:
            last = documents[-1]
            resume_token = ResumeToken(
                last_active_at=_raw_timestamp(last.get(LAST_ACTIVE_FIELD)),
                profile_id=str(last.get(PROFILE_ID_FIELD)).strip(),
            )

        return CollectionPage(source=self._source, records=records, resume_token=resume_token)


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "MAX_PAGE_SIZE",
    "ProfileQueryRepository",
    "clamp_page_size",
    "keyset_predicate",
]
