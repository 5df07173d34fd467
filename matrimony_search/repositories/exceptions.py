"""Custom exceptions for the repository layer."""

from __future__ import annotations

import logging

from pymongo.errors import (
    ConnectionFailure,
    ExecutionTimeout,
    OperationFailure,
    PyMongoError,
)

LOGGER = logging.getLogger("uvicorn.error")

# Server error codes, see https://www.mongodb.com/docs/manual/reference/error-codes/
_PERMISSION_DENIED_CODES = frozenset({13, 18, 8000})
_NOT_FOUND_CODES = frozenset({26})
_UNAVAILABLE_CODES = frozenset({6, 7, 50, 89, 91, 189, 262, 9001, 10107, 11600, 11602, 13435, 13436})


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""

    kind = "unknown"


class PermissionDeniedRepositoryError(RepositoryError):
    """Raised when the store rejects the caller's credentials or privileges."""

    kind = "permission_denied"


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document or collection is missing."""

    kind = "not_found"


class UnavailableRepositoryError(RepositoryError):
    """Raised on network failures, timeouts and unreachable servers."""

    kind = "unavailable"


class UnknownRepositoryError(RepositoryError):
    """Raised for store failures that fit no other category."""

    kind = "unknown"


class InvalidCursorError(RepositoryError):
    """Raised when a caller-supplied search cursor cannot be decoded."""

    kind = "invalid_cursor"


def map_store_error(exc: PyMongoError, *, source: str) -> RepositoryError:
    """Translate a driver error into the repository error taxonomy."""

    if isinstance(exc, (ConnectionFailure, ExecutionTimeout)):
        return UnavailableRepositoryError(f"{source} unavailable: {exc}")
    if isinstance(exc, OperationFailure):
        code = exc.code
        if code in _PERMISSION_DENIED_CODES:
            return PermissionDeniedRepositoryError(f"{source} permission denied")
        if code in _NOT_FOUND_CODES:
            return NotFoundRepositoryError(f"{source} not found")
        if code in _UNAVAILABLE_CODES:
            return UnavailableRepositoryError(f"{source} unavailable: {exc}")
    LOGGER.error("Mongo search error on %s: %s", source, exc)
    return UnknownRepositoryError(f"{source} query failed")


__all__ = [
    "InvalidCursorError",
    "NotFoundRepositoryError",
    "PermissionDeniedRepositoryError",
    "RepositoryError",
    "UnavailableRepositoryError",
    "UnknownRepositoryError",
    "map_store_error",
]
