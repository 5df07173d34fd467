from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

MIN_SEARCH_AGE = 18

DEFAULT_CITIES = [
    "Kabul",
    "Herat",
    "Mazar-i-Sharif",
    "Kandahar",
    "Nangarhar",
    "Balkh",
    "Kunduz",
    "Ghazni",
]

DEFAULT_INTERESTS = [
    "Faith",
    "Family",
    "Education",
    "Cooking",
    "Reading",
    "Travel",
    "Community",
    "Volunteering",
    "Sports",
    "Art",
]


def _normalized(values: List[str]) -> List[str]:
    cleaned = [value.strip() for value in values if isinstance(value, str) and value.strip()]
    return sorted(cleaned, key=str.casefold)


class SearchFilterMetadata(BaseModel):
    """Options offered to clients when building search filters."""

    model_config = ConfigDict(populate_by_name=True)

    cities: List[str] = Field(default_factory=lambda: list(DEFAULT_CITIES))
    interests: List[str] = Field(default_factory=lambda: list(DEFAULT_INTERESTS))
    min_age: int = Field(default=MIN_SEARCH_AGE, alias="minAge")
    max_age: int = Field(default=70, alias="maxAge")

    @classmethod
    def default(cls) -> "SearchFilterMetadata":
        return cls().normalized()

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "SearchFilterMetadata":
        """Build metadata from a stored document, falling back to defaults per field."""

        defaults = cls()
        cities = data.get("cities") if isinstance(data.get("cities"), list) else []
        interests = data.get("interests") if isinstance(data.get("interests"), list) else []

        min_age = data.get("minAge")
        max_age = data.get("maxAge")
        age_range = data.get("ageRange")
        if isinstance(age_range, dict):
            if isinstance(age_range.get("min"), int):
                min_age = age_range["min"]
            if isinstance(age_range.get("max"), int):
                max_age = age_range["max"]

        metadata = cls(
            cities=_normalized(cities) or defaults.cities,
            interests=_normalized(interests) or defaults.interests,
            min_age=min_age if isinstance(min_age, int) and not isinstance(min_age, bool) else defaults.min_age,
            max_age=max_age if isinstance(max_age, int) and not isinstance(max_age, bool) else defaults.max_age,
        )
        return metadata.normalized()

    def normalized(self) -> "SearchFilterMetadata":
        min_age = max(self.min_age, MIN_SEARCH_AGE)
        return SearchFilterMetadata(
            cities=_normalized(self.cities),
            interests=_normalized(self.interests),
            min_age=min_age,
            max_age=max(self.max_age, min_age + 1),
        )


__all__ = [
    "DEFAULT_CITIES",
    "DEFAULT_INTERESTS",
    "MIN_SEARCH_AGE",
    "SearchFilterMetadata",
]
