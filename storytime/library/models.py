"""
Persisted entities owned by the library store.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Sequence

from storytime.ai_generation import ILLUSTRATION_STYLES
from storytime.common.errors import StoryValidationError
from storytime.curriculum import MAX_AGE, MIN_AGE
from storytime.story_generation import STORY_LENGTHS

PREFERENCES_ID = 1

DEFAULT_FAVOURITE_THEMES = ("animals", "magic", "friendship")

DEFAULT_CHARACTER_SUGGESTIONS = (
    "A brave little mouse",
    "A wise old owl",
    "A friendly dragon",
    "A curious rabbit",
    "A kind fairy",
    "A sleepy bear",
    "A clever fox",
    "A helpful hedgehog",
    "A singing bird",
    "A gentle giant",
    "A playful kitten",
    "A magical unicorn",
)


@dataclass(frozen=True)
class StoryDraft:
    """
    A fully assembled story that has not been given an id yet.
    """

    title: str
    content: str
    characters: tuple[str, ...]
    setting: str
    age: int
    story_length: str
    curriculum_stage: str
    created_at: datetime
    moral_theme: str | None = None
    illustration_url: str | None = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError("Story title must be non-empty.")
        if not self.content.strip():
            raise ValueError("Story content must be non-empty.")


@dataclass(frozen=True)
class Story:
    """
    A saved bedtime story. Stories are never edited after creation.
    """

    id: int
    title: str
    content: str
    characters: tuple[str, ...]
    setting: str
    age: int
    story_length: str
    curriculum_stage: str
    created_at: datetime
    moral_theme: str | None = None
    illustration_url: str | None = None

    @classmethod
    def from_draft(cls, story_id: int, draft: StoryDraft) -> "Story":
        return cls(
            id=story_id,
            title=draft.title,
            content=draft.content,
            characters=tuple(draft.characters),
            setting=draft.setting,
            age=draft.age,
            story_length=draft.story_length,
            curriculum_stage=draft.curriculum_stage,
            created_at=draft.created_at,
            moral_theme=draft.moral_theme,
            illustration_url=draft.illustration_url,
        )

    @property
    def paragraphs(self) -> list[str]:
        return [block.strip() for block in self.content.split("\n\n") if block.strip()]

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "characters": list(self.characters),
            "setting": self.setting,
            "age": self.age,
            "storyLength": self.story_length,
            "moralTheme": self.moral_theme,
            "illustrationUrl": self.illustration_url,
            "curriculumStage": self.curriculum_stage,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Story":
        try:
            return cls(
                id=int(payload["id"]),
                title=str(payload["title"]),
                content=str(payload["content"]),
                characters=tuple(str(item) for item in payload["characters"]),
                setting=str(payload["setting"]),
                age=int(payload["age"]),
                story_length=str(payload["storyLength"]),
                curriculum_stage=str(payload["curriculumStage"]),
                created_at=datetime.fromisoformat(str(payload["createdAt"])),
                moral_theme=payload.get("moralTheme"),
                illustration_url=payload.get("illustrationUrl"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid story payload: {exc}") from exc


def _optional_text(value: Any, name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise StoryValidationError(f"{name} must be a string.")
    return value.strip() or None


def _optional_bool(value: Any, name: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise StoryValidationError(f"{name} must be true or false.")


def _optional_age(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise StoryValidationError("defaultAge must be an integer.")
    if not MIN_AGE <= value <= MAX_AGE:
        raise StoryValidationError(f"defaultAge must be between {MIN_AGE} and {MAX_AGE}.")
    return value


def _optional_length(value: Any) -> str | None:
    if value is None:
        return None
    # The settings form historically sent whole minutes (5 or 10).
    if isinstance(value, int) and not isinstance(value, bool):
        value = f"{value}min"
    if value not in STORY_LENGTHS:
        raise StoryValidationError(
            f"preferredLength must be one of {', '.join(STORY_LENGTHS)}, got {value!r}."
        )
    return value


def _optional_themes(value: Any) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise StoryValidationError("favouriteThemes must be a list of strings.")

    themes: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise StoryValidationError("favouriteThemes must be a list of strings.")
        text = item.strip()
        if text and text not in themes:
            themes.append(text)
    return tuple(themes)


def _optional_style(value: Any) -> str | None:
    style = _optional_text(value, "illustrationStyle")
    if style is not None and style not in ILLUSTRATION_STYLES:
        raise StoryValidationError(
            f"illustrationStyle must be one of {', '.join(ILLUSTRATION_STYLES)}, got {style!r}."
        )
    return style


@dataclass(frozen=True)
class UserPreferences:
    """
    The single preferences record. Updates replace every field.
    """

    child_name: str | None = None
    default_age: int | None = 5
    preferred_length: str | None = "5min"
    favourite_themes: tuple[str, ...] | None = DEFAULT_FAVOURITE_THEMES
    language_enrichment: bool | None = True
    auto_save: bool | None = True
    illustration_style: str | None = "soft"
    id: int = PREFERENCES_ID

    @classmethod
    def defaults(cls) -> "UserPreferences":
        return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UserPreferences":
        """
        Parse a full replacement payload. Omitted fields become ``None``.
        """
        if not isinstance(data, Mapping):
            raise StoryValidationError("Preferences must be a JSON object.")

        return cls(
            child_name=_optional_text(data.get("childName"), "childName"),
            default_age=_optional_age(data.get("defaultAge")),
            preferred_length=_optional_length(data.get("preferredLength")),
            favourite_themes=_optional_themes(data.get("favouriteThemes")),
            language_enrichment=_optional_bool(data.get("languageEnrichment"), "languageEnrichment"),
            auto_save=_optional_bool(data.get("autoSave"), "autoSave"),
            illustration_style=_optional_style(data.get("illustrationStyle")),
        )

    def with_identity(self) -> "UserPreferences":
        return self if self.id == PREFERENCES_ID else replace(self, id=PREFERENCES_ID)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "childName": self.child_name,
            "defaultAge": self.default_age,
            "preferredLength": self.preferred_length,
            "favouriteThemes": (
                list(self.favourite_themes) if self.favourite_themes is not None else None
            ),
            "languageEnrichment": self.language_enrichment,
            "autoSave": self.auto_save,
            "illustrationStyle": self.illustration_style,
        }


@dataclass(frozen=True)
class CharacterSuggestion:
    """A character description and how often it has been used in a story."""

    id: int
    character: str
    usage_count: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "character": self.character,
            "usageCount": self.usage_count,
        }
