from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .profile import ProfileRecord


def _clean_optional(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    text = value.strip()
    return text or None


class SearchFilters(BaseModel):
    """Caller-supplied profile search filters."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    free_text_query: Optional[str] = Field(default=None, alias="query")
    interests_required: List[str] = Field(default_factory=list, alias="interests")
    min_age: Optional[int] = Field(default=None, alias="minAge", ge=0)
    max_age: Optional[int] = Field(default=None, alias="maxAge", ge=0)
    preferred_gender: Optional[str] = Field(default=None, alias="preferredGender")
    city: Optional[str] = None

    @field_validator("free_text_query", "preferred_gender", "city", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return _clean_optional(value)

    @field_validator("interests_required", mode="before")
    @classmethod
    def _normalize_interests(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise ValueError("interests must be a list of strings")
        cleaned: List[str] = []
        seen: set[str] = set()
        for entry in value:
            text = _clean_optional(entry)
            if not text or text.lower() in seen:
                continue
            seen.add(text.lower())
            cleaned.append(text)
        return cleaned

    @property
    def has_post_merge_filters(self) -> bool:
        return bool(self.free_text_query or self.interests_required)


class SearchPage(BaseModel):
    """One page of federated search results."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[ProfileRecord] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


class ResumeToken(BaseModel):
    """Keyset position inside one profile collection.

    Identifies the last consumed record in the order
    ``(lastActiveAt desc, missing last, userId desc)``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    last_active_at: Optional[Union[int, float]] = Field(default=None, alias="t")
    profile_id: str = Field(alias="id", min_length=1)


class CollectionPage(BaseModel):
    """Raw page returned by one collection query."""

    source: str
    records: List[ProfileRecord] = Field(default_factory=list)
    resume_token: Optional[ResumeToken] = None

    @property
    def has_more(self) -> bool:
        return self.resume_token is not None


class FederatedCursor(BaseModel):
    """Per-source continuation state carried inside ``SearchPage.next_cursor``.

    A source mapped to ``None`` restarts from the top of its collection; a
    source missing from ``sources`` is exhausted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    version: int = Field(default=1, alias="v")
    sources: Dict[str, Optional[ResumeToken]] = Field(default_factory=dict, alias="s")

    @model_validator(mode="after")
    def _check_version(self) -> "FederatedCursor":
        if self.version != 1:
            raise ValueError(f"unsupported cursor version {self.version}")
        return self


__all__ = [
    "CollectionPage",
    "FederatedCursor",
    "ResumeToken",
    "SearchFilters",
    "SearchPage",
]
