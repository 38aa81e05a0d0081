"""
Validation and canonicalisation of raw story generation requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from storytime.common.errors import StoryValidationError
from storytime.curriculum import MAX_AGE, MIN_AGE

MIN_CHARACTERS = 3
MAX_CHARACTERS = 5
MIN_SETTING_LENGTH = 10

STORY_LENGTHS = ("5min", "10min")

AUTO_MORAL_SENTINEL = "auto"


def _normalize_characters(value: Any) -> tuple[str, ...]:
    if value is None:
        raise StoryValidationError("characters is required.")

    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise StoryValidationError("characters must be a list of strings.")

    if len(value) > MAX_CHARACTERS:
        raise StoryValidationError(
            f"At most {MAX_CHARACTERS} characters are allowed, received {len(value)}."
        )

    cleaned: list[str] = []
    for item in value:
        if item is None:
            continue
        if not isinstance(item, str):
            raise StoryValidationError("characters must be a list of strings.")
        text = item.strip()
        if text:
            cleaned.append(text)

    if len(cleaned) < MIN_CHARACTERS:
        raise StoryValidationError(
            f"At least {MIN_CHARACTERS} characters are required, received {len(cleaned)}."
        )

    return tuple(cleaned)


def _normalize_setting(value: Any) -> str:
    if not isinstance(value, str):
        raise StoryValidationError("setting must be a string.")

    text = value.strip()
    if len(text) < MIN_SETTING_LENGTH:
        raise StoryValidationError(
            f"setting must be at least {MIN_SETTING_LENGTH} characters long."
        )
    return text


def _coerce_age(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise StoryValidationError(f"age must be an integer, got {value!r}.")

    if isinstance(value, int):
        age = value
    elif isinstance(value, float) and value.is_integer():
        age = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        age = int(value.strip())
    else:
        raise StoryValidationError(f"age must be an integer, got {value!r}.")

    if not MIN_AGE <= age <= MAX_AGE:
        raise StoryValidationError(f"age must be between {MIN_AGE} and {MAX_AGE}, got {age}.")
    return age


def _normalize_story_length(value: Any) -> str:
    if value not in STORY_LENGTHS:
        raise StoryValidationError(
            f"storyLength must be one of {', '.join(STORY_LENGTHS)}, got {value!r}."
        )
    return value


def _normalize_moral_theme(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise StoryValidationError("moralTheme must be a string.")

    text = value.strip()
    if not text or text.lower() == AUTO_MORAL_SENTINEL:
        return None
    return text


@dataclass(frozen=True)
class StoryRequest:
    """
    A validated story request.

    ``moral_theme`` is ``None`` when the provider should choose the moral.
    """

    characters: tuple[str, ...]
    setting: str
    age: int
    story_length: str
    moral_theme: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoryRequest":
        """
        Build a request from a JSON-like mapping using the API's camelCase keys.

        ``story_length`` and ``moral_theme`` are accepted as aliases so YAML request
        files can use snake_case.
        """
        if not isinstance(data, Mapping):
            raise StoryValidationError("Story request must be a JSON object.")

        story_length = data.get("storyLength", data.get("story_length"))
        moral_theme = data.get("moralTheme", data.get("moral_theme"))

        return cls(
            characters=_normalize_characters(data.get("characters")),
            setting=_normalize_setting(data.get("setting")),
            age=_coerce_age(data.get("age")),
            story_length=_normalize_story_length(story_length),
            moral_theme=_normalize_moral_theme(moral_theme),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "characters": list(self.characters),
            "setting": self.setting,
            "age": self.age,
            "storyLength": self.story_length,
            "moralTheme": self.moral_theme,
        }


def normalize_story_request(raw: Mapping[str, Any]) -> StoryRequest:
    """
    Validate ``raw`` and return the canonical :class:`StoryRequest`.

    Raises
    ------
    StoryValidationError
        When any field is missing, malformed, or out of range.
    """
    return StoryRequest.from_mapping(raw)
