"""Profile search REST endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from ..models.search import SearchFilters, SearchPage
from ..models.search_metadata import SearchFilterMetadata
from ..repositories.exceptions import (
    InvalidCursorError,
    NotFoundRepositoryError,
    PermissionDeniedRepositoryError,
    RepositoryError,
    UnavailableRepositoryError,
)
from ..services.profile_search_service import (
    ProfileSearchService,
    get_profile_search_service,
)
from ..services.search_metadata_service import (
    SearchMetadataService,
    get_search_metadata_service,
)

router = APIRouter(prefix="/profiles/search", tags=["search"])


def _status_for(exc: RepositoryError) -> int:
    if isinstance(exc, InvalidCursorError):
        return 400
    if isinstance(exc, PermissionDeniedRepositoryError):
        return 403
    if isinstance(exc, NotFoundRepositoryError):
        return 404
    if isinstance(exc, UnavailableRepositoryError):
        return 503
    return 500


@router.get("", response_model=SearchPage)
async def search_profiles(
    query: Optional[str] = Query(default=None, max_length=200),
    interests: Optional[str] = Query(default=None, description="Comma separated, all required"),
    min_age: Optional[int] = Query(default=None, alias="minAge"),
    max_age: Optional[int] = Query(default=None, alias="maxAge"),
    preferred_gender: Optional[str] = Query(default=None, alias="preferredGender"),
    city: Optional[str] = Query(default=None),
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    cursor: Optional[str] = Query(default=None),
    service: ProfileSearchService = Depends(get_profile_search_service),
) -> SearchPage:
    try:
        filters = SearchFilters(
            query=query,
            interests=interests,
            min_age=min_age,
            max_age=max_age,
            preferred_gender=preferred_gender,
            city=city,
        )
    except ValidationError as exc:
        detail = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
        raise HTTPException(status_code=400, detail=detail) from None

    try:
        return await service.search(filters, page_size=page_size, cursor=cursor)
    except RepositoryError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc


@router.get("/metadata", response_model=SearchFilterMetadata)
async def search_metadata(
    service: SearchMetadataService = Depends(get_search_metadata_service),
) -> SearchFilterMetadata:
    return await service.get_metadata()


@router.post("/metadata/refresh", response_model=SearchFilterMetadata)
async def refresh_search_metadata(
    service: SearchMetadataService = Depends(get_search_metadata_service),
) -> SearchFilterMetadata:
    return await service.refresh()


__all__ = ["router"]
