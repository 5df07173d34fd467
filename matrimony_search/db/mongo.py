from typing import Final

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING

LAST_ACTIVE_FIELD: Final[str] = "lastActiveAt"
PROFILE_ID_FIELD: Final[str] = "userId"
ACTIVE_FIELD: Final[str] = "isActive"

# Matches the sort applied by every profile search query.
SEARCH_SORT: Final[list[tuple[str, int]]] = [
    (LAST_ACTIVE_FIELD, DESCENDING),
    (PROFILE_ID_FIELD, DESCENDING),
]


async def ensure_profile_search_indexes(collection: AsyncIOMotorCollection) -> None:
    await collection.create_index(
        [(ACTIVE_FIELD, ASCENDING), *SEARCH_SORT],
        name="profiles_active_last_active_idx",
    )
    await collection.create_index(
        PROFILE_ID_FIELD,
        name="profiles_user_id_unique",
        unique=True,
        sparse=True,
    )


__all__ = [
    "ACTIVE_FIELD",
    "LAST_ACTIVE_FIELD",
    "PROFILE_ID_FIELD",
    "SEARCH_SORT",
    "ensure_profile_search_indexes",
]
