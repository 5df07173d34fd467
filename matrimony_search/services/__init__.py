from .profile_search_service import ProfileSearchService, get_profile_search_service
from .search_cursor import decode_cursor, encode_cursor
from .search_metadata_service import SearchMetadataService, get_search_metadata_service

__all__ = [
    "ProfileSearchService",
    "SearchMetadataService",
    "decode_cursor",
    "encode_cursor",
    "get_profile_search_service",
    "get_search_metadata_service",
]
