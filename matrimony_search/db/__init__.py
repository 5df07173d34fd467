import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from ..config import get_settings
from .collections import DATING_PROFILES_COLLECTION, PROFILES_COLLECTION
from .mongo import ensure_profile_search_indexes

_client: Optional[AsyncIOMotorClient] = None
_core_db: Optional[AsyncIOMotorDatabase] = None
_dating_db: Optional[AsyncIOMotorDatabase] = None


async def _ensure_search_indexes(db: AsyncIOMotorDatabase, collection_name: str) -> None:
    logger = logging.getLogger("uvicorn.error")
    try:
        await ensure_profile_search_indexes(db[collection_name])
    except Exception as exc:  # pragma: no cover - best-effort logging
        logger.error("Failed to ensure search indexes on '%s': %s", collection_name, exc)


async def connect_to_mongo() -> None:
    """Initialise the shared MongoDB client and both profile databases."""

    global _client, _core_db, _dating_db

    settings = get_settings()
    if not settings.mongo_uri and not settings.mongo_alt_uri:
        raise RuntimeError("Missing MONGO_URI env var for the search service")

    logger = logging.getLogger("uvicorn.error")

    async def _try_connect(uri: str) -> tuple[
        AsyncIOMotorClient,
        AsyncIOMotorDatabase,
        AsyncIOMotorDatabase,
    ]:
        client = AsyncIOMotorClient(
            uri,
            maxPoolSize=20,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
            connectTimeoutMS=settings.mongo_connect_timeout_ms,
            socketTimeoutMS=settings.mongo_socket_timeout_ms,
            **({"directConnection": True} if settings.mongo_direct else {}),
        )
        core_db = client[settings.mongo_db]
        dating_db = client[settings.mongo_dating_db]

        await client.admin.command("ping")
        await _ensure_search_indexes(core_db, PROFILES_COLLECTION)
        await _ensure_search_indexes(dating_db, DATING_PROFILES_COLLECTION)

        return client, core_db, dating_db

    primary_error: Optional[Exception] = None

    if settings.mongo_uri:
        try:
            _client, _core_db, _dating_db = await _try_connect(settings.mongo_uri)
            logger.info(
                "MongoDB connected: core_db=%s, dating_db=%s",
                settings.mongo_db,
                settings.mongo_dating_db,
            )
            return
        except Exception as exc:  # pragma: no cover - connection issues asserted in tests
            primary_error = exc
            logger.error("Mongo primary URI failed: %s", exc)

    if settings.mongo_alt_uri:
        try:
            _client, _core_db, _dating_db = await _try_connect(settings.mongo_alt_uri)
            logger.info(
                "MongoDB connected via ALT URI: core_db=%s, dating_db=%s",
                settings.mongo_db,
                settings.mongo_dating_db,
            )
            return
        except Exception as exc:  # pragma: no cover - same as above
            logger.error("Mongo ALT URI failed: %s", exc)
            primary_error = primary_error or exc

    raise primary_error or RuntimeError("Mongo connection failed")


async def close_mongo_connection() -> None:
    """Close the MongoDB client if it is initialised."""

    global _client, _core_db, _dating_db
    if _client:
        try:
            _client.close()
        finally:
            logging.getLogger("uvicorn.error").info("MongoDB connection closed")
        _client = None
        _core_db = None
        _dating_db = None


def _require_database(db: Optional[AsyncIOMotorDatabase], label: str) -> AsyncIOMotorDatabase:
    if db is None:
        raise RuntimeError(f"MongoDB database '{label}' not connected. Did you call connect_to_mongo()?")
    return db


def get_core_db() -> AsyncIOMotorDatabase:
    return _require_database(_core_db, "core")


def get_dating_db() -> AsyncIOMotorDatabase:
    return _require_database(_dating_db, "dating")


def is_connected() -> bool:
    return _client is not None and _core_db is not None and _dating_db is not None


__all__ = [
    "connect_to_mongo",
    "close_mongo_connection",
    "get_core_db",
    "get_dating_db",
    "is_connected",
]
