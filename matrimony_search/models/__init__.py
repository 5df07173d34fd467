"""Pydantic models for profile search requests, results and metadata."""

from .profile import ProfileRecord
from .search import CollectionPage, FederatedCursor, ResumeToken, SearchFilters, SearchPage
from .search_metadata import SearchFilterMetadata

__all__ = [
    "CollectionPage",
    "FederatedCursor",
    "ProfileRecord",
    "ResumeToken",
    "SearchFilterMetadata",
    "SearchFilters",
    "SearchPage",
]
