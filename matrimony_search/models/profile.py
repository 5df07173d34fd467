"""Searchable profile summaries shared by both profile collections."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


class ProfileRecord(BaseModel):
    """One user's searchable summary, read from either profile collection.

    ``profiles`` documents carry ``displayName``/``avatarURL`` while
    ``dating_profiles`` documents carry ``firstName``/``primaryPhotoUrl``;
    both shapes validate into the same record.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("id", "userId"),
        serialization_alias="id",
    )
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("display_name", "displayName", "firstName"),
        serialization_alias="displayName",
    )
    age: Optional[int] = None
    location: Optional[str] = None
    interests: Tuple[str, ...] = ()
    last_active_at: Optional[Union[int, float]] = Field(
        default=None,
        validation_alias=AliasChoices("last_active_at", "lastActiveAt"),
        serialization_alias="lastActiveAt",
    )
    is_active: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_active", "isActive"),
        serialization_alias="isActive",
    )
    preferred_gender: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("preferred_gender", "preferredGender"),
        serialization_alias="preferredGender",
    )
    bio: Optional[str] = None
    avatar_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("avatar_url", "avatarUrl", "avatarURL", "primaryPhotoUrl"),
        serialization_alias="avatarUrl",
    )
    photos: Tuple[str, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("display_name", mode="before")
    @classmethod
    def _coerce_display_name(cls, value: Any) -> str:
        return _clean_str(value) or ""

    @field_validator("location", "preferred_gender", "bio", "avatar_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        return _clean_str(value)

    @field_validator("interests", "photos", mode="before")
    @classmethod
    def _clean_str_list(cls, value: Any) -> Tuple[str, ...]:
        if not isinstance(value, (list, tuple)):
            return ()
        cleaned: List[str] = []
        for entry in value:
            text = _clean_str(entry)
            if text and text not in cleaned:
                cleaned.append(text)
        return tuple(cleaned)

    @field_validator("last_active_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        # Kept exactly as stored; resume tokens compare against the raw value.
        if value is None or isinstance(value, bool):
            return None
        return value


__all__ = ["ProfileRecord"]
