"""Federated profile search across the profile and dating profile collections."""

from __future__ import annotations

import asyncio
import logging
from itertools import takewhile
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from ..config import get_settings
from ..db import get_core_db, get_dating_db
from ..db.collections import (
    DATING_PROFILES_COLLECTION,
    DATING_PROFILES_SOURCE,
    PROFILES_COLLECTION,
    PROFILES_SOURCE,
)
from ..models.profile import ProfileRecord
from ..models.search import CollectionPage, ResumeToken, SearchFilters, SearchPage
from ..repositories.profile_query import MAX_PAGE_SIZE, ProfileQueryRepository, clamp_page_size
from .search_cursor import decode_cursor, encode_cursor

LOGGER = logging.getLogger("uvicorn.error")

SortKey = Tuple[bool, float, str]


class ProfileSource(Protocol):
    """What the search service needs from one backing collection."""

    @property
    def source(self) -> str: ...

    async def fetch_page(
        self,
        filters: SearchFilters,
        page_size: Optional[int],
        resume_after: Optional[ResumeToken] = None,
    ) -> CollectionPage: ...

    def token_after(self, record: ProfileRecord) -> ResumeToken: ...


def profile_sort_key(record: ProfileRecord) -> SortKey:
    """Sort key for ``sorted(..., reverse=True)``.

    Newest ``lastActiveAt`` first, records without one last, ties broken by
    descending id, the same order the collection queries use.
    """

    has_timestamp = record.last_active_at is not None
    return (has_timestamp, record.last_active_at or 0, record.id)


def resume_position(token: ResumeToken) -> SortKey:
    return (token.last_active_at is not None, token.last_active_at or 0, token.profile_id)


def dedupe_profiles(pages: Iterable[CollectionPage]) -> List[ProfileRecord]:
    """Drop repeated ids, keeping the copy from the earliest page."""

    seen: Dict[str, ProfileRecord] = {}
    for page in pages:
        for record in page.records:
            seen.setdefault(record.id, record)
    return list(seen.values())


def matches_free_text(record: ProfileRecord, query: Optional[str]) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    if needle in record.display_name.lower():
        return True
    if record.location and needle in record.location.lower():
        return True
    return any(needle in interest.lower() for interest in record.interests)


def matches_required_interests(record: ProfileRecord, required: Sequence[str]) -> bool:
    if not required:
        return True
    have = {interest.lower() for interest in record.interests}
    return all(entry.lower() in have for entry in required)


def apply_post_merge_filters(
    records: Iterable[ProfileRecord],
    filters: SearchFilters,
) -> List[ProfileRecord]:
    matched = [record for record in records if matches_free_text(record, filters.free_text_query)]
    return [record for record in matched if matches_required_interests(record, filters.interests_required)]


class ProfileSearchService:
    """Search both profile collections behind one page size and one cursor.

    Each call fans out to every source that is not yet exhausted, merges and
    deduplicates the results (sources listed first win), re-sorts, applies the
    filters MongoDB cannot evaluate and truncates to the page size. Records a
    source might still be outranked by are held back, so successive pages
    follow one global order. All continuation state lives in the returned
    cursor.
    """

    def __init__(
        self,
        sources: Sequence[ProfileSource],
        *,
        max_page_size: int = MAX_PAGE_SIZE,
        default_page_size: int = 20,
    ) -> None:
        names = [source.source for source in sources]
        if not names:
            raise ValueError("at least one profile source is required")
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate profile source names: {names}")
        self._sources = list(sources)
        self._max_page_size = max(1, max_page_size)
        self._default_page_size = clamp_page_size(default_page_size, self._max_page_size)

    @property
    def source_names(self) -> List[str]:
        return [source.source for source in self._sources]

    def clamp_page_size(self, page_size: Optional[int]) -> int:
        if page_size is None:
            return self._default_page_size
        return clamp_page_size(page_size, self._max_page_size)

    async def search(
        self,
        filters: SearchFilters,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> SearchPage:
        limit = self.clamp_page_size(page_size)
        state = decode_cursor(cursor, self.source_names)
        active = [source for source in self._sources if source.source in state]
        if not active:
            return SearchPage(items=[], next_cursor=None)

        pages = await self._fetch_all(active, filters, limit, state)

        candidates = sorted(dedupe_profiles(pages), key=profile_sort_key, reverse=True)
        matched = apply_post_merge_filters(candidates, filters) if filters.has_post_merge_filters else candidates

        # Records past the frontier may still be outranked by rows a source
        # has not returned yet; they wait for the next page.
        frontier = self._frontier(pages)
        if frontier is not None:
            eligible = list(takewhile(lambda record: profile_sort_key(record) >= frontier, matched))
        else:
            eligible = matched
        items = eligible[:limit]

        cutoff = frontier
        if len(eligible) > limit:
            cutoff = profile_sort_key(items[-1])

        next_state = self._advance(active, pages, state, cutoff)
        result = SearchPage(items=items, next_cursor=encode_cursor(next_state) if next_state else None)

        LOGGER.debug(
            "Profile search sources=%s fetched=%s unique=%s matched=%s returned=%s more=%s",
            [page.source for page in pages],
            [len(page.records) for page in pages],
            len(candidates),
            len(matched),
            len(items),
            result.has_more,
        )
        return result

    async def _fetch_all(
        self,
        active: Sequence[ProfileSource],
        filters: SearchFilters,
        limit: int,
        state: Dict[str, Optional[ResumeToken]],
    ) -> List[CollectionPage]:
        tasks = [
            asyncio.ensure_future(source.fetch_page(filters, limit, state[source.source]))
            for source in active
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # One source failed or the caller went away; never merge a partial set.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    @staticmethod
    def _frontier(pages: Sequence[CollectionPage]) -> Optional[SortKey]:
        """Earliest position at which some source with more results stopped.

        Unreturned rows of a source sort after its resume token, so only
        records sorting at or before every such token are safe to return.
        """

        positions = [resume_position(page.resume_token) for page in pages if page.has_more]
        return max(positions) if positions else None

    @staticmethod
    def _advance(
        active: Sequence[ProfileSource],
        pages: Sequence[CollectionPage],
        state: Dict[str, Optional[ResumeToken]],
        cutoff: Optional[SortKey],
    ) -> Dict[str, Optional[ResumeToken]]:
        """Compute the resume state for the next call.

        A record is consumed once it sorts at or before ``cutoff`` (every
        fetched record when there is no cutoff). Sources move past their
        consumed prefix only, so records fetched but held back are fetched
        again next time. A source is dropped once it reported no more results
        and left nothing unconsumed.
        """

        next_state: Dict[str, Optional[ResumeToken]] = {}
        for source, page in zip(active, pages):
            if cutoff is None:
                consumed = page.records
            else:
                consumed = list(takewhile(lambda record: profile_sort_key(record) >= cutoff, page.records))

            if len(consumed) == len(page.records):
                if page.has_more:
                    next_state[source.source] = page.resume_token
                continue

            if consumed:
                next_state[source.source] = source.token_after(consumed[-1])
            else:
                next_state[source.source] = state[source.source]
        return next_state


def get_profile_search_service() -> ProfileSearchService:
    settings = get_settings()
    timeout_seconds = max(settings.search_source_timeout_ms, 1) / 1000.0
    sources = [
        ProfileQueryRepository(
            get_core_db(),
            PROFILES_COLLECTION,
            source=PROFILES_SOURCE,
            timeout_seconds=timeout_seconds,
            max_page_size=settings.search_max_page_size,
        ),
        ProfileQueryRepository(
            get_dating_db(),
            DATING_PROFILES_COLLECTION,
            source=DATING_PROFILES_SOURCE,
            timeout_seconds=timeout_seconds,
            max_page_size=settings.search_max_page_size,
        ),
    ]
    return ProfileSearchService(
        sources,
        max_page_size=settings.search_max_page_size,
        default_page_size=settings.search_default_page_size,
    )


__all__ = [
    "ProfileSearchService",
    "ProfileSource",
    "apply_post_merge_filters",
    "dedupe_profiles",
    "get_profile_search_service",
    "matches_free_text",
    "matches_required_interests",
    "profile_sort_key",
    "resume_position",
]
