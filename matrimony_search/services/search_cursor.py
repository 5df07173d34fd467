"""Opaque cursor encoding for federated profile search."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from ..models.search import FederatedCursor, ResumeToken
from ..repositories.exceptions import InvalidCursorError

MAX_CURSOR_LENGTH = 4096


def encode_cursor(sources: Dict[str, Optional[ResumeToken]]) -> str:
    cursor = FederatedCursor(sources=sources)
    payload = cursor.model_dump(by_alias=True, mode="json")
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(
    cursor: Optional[str],
    known_sources: Iterable[str],
) -> Dict[str, Optional[ResumeToken]]:
    """Return the per-source resume state encoded in ``cursor``.

    ``None`` or a blank cursor starts every known source from the top.
    Anything else that does not decode cleanly raises ``InvalidCursorError``.
    """

    known = tuple(known_sources)
    if cursor is None or not cursor.strip():
        return {source: None for source in known}

    text = cursor.strip()
    if len(text) > MAX_CURSOR_LENGTH:
        raise InvalidCursorError("cursor too long")

    try:
        raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
        payload = json.loads(raw.decode("utf-8"))
        decoded = FederatedCursor.model_validate(payload)
    except (binascii.Error, UnicodeDecodeError, ValueError, ValidationError) as exc:
        raise InvalidCursorError("malformed cursor") from exc

    unknown = set(decoded.sources) - set(known)
    if unknown:
        raise InvalidCursorError(f"cursor references unknown sources: {sorted(unknown)}")

    return {source: decoded.sources[source] for source in known if source in decoded.sources}


__all__ = ["MAX_CURSOR_LENGTH", "decode_cursor", "encode_cursor"]
