"""Repository layer to abstract MongoDB access patterns."""

from .profile_query import ProfileQueryRepository
from .search_metadata import SearchMetadataRepository

__all__ = ["ProfileQueryRepository", "SearchMetadataRepository"]
