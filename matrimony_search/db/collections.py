"""MongoDB collection names used by the search service."""

from __future__ import annotations

PROFILES_COLLECTION = "profiles"
DATING_PROFILES_COLLECTION = "dating_profiles"

# Source names double as keys inside the federated cursor; the order is the
# deduplication precedence (earlier wins).
PROFILES_SOURCE = "profiles"
DATING_PROFILES_SOURCE = "dating"

# Candidate (collection, document id) pairs holding search filter metadata.
SEARCH_METADATA_DOCUMENTS = (
    ("metadata", "search_filters"),
    ("search_metadata", "filters"),
    ("app_metadata", "search_filters"),
    ("meta", "search_filters"),
)

__all__ = [
    "PROFILES_COLLECTION",
    "DATING_PROFILES_COLLECTION",
    "PROFILES_SOURCE",
    "DATING_PROFILES_SOURCE",
    "SEARCH_METADATA_DOCUMENTS",
]
