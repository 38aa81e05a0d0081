"""
Library store interface and the in-memory backend.
"""

from __future__ import annotations

import abc
import itertools
import threading
from typing import Iterable

from .models import (
    CharacterSuggestion,
    Story,
    StoryDraft,
    UserPreferences,
)


class LibraryStore(abc.ABC):
    """
    Persistence contract for stories, the preferences singleton, and character usage.

    Implementations must be safe to call from several threads at once.
    """

    # stories

    @abc.abstractmethod
    def create_story(self, draft: StoryDraft) -> Story:
        """Persist ``draft`` under a new id. Ids are never reused."""

    @abc.abstractmethod
    def get_all_stories(self) -> list[Story]:
        """All stories, most recently created first."""

    @abc.abstractmethod
    def get_story(self, story_id: int) -> Story | None:
        """The story with ``story_id``, or ``None`` when it does not exist."""

    @abc.abstractmethod
    def delete_story(self, story_id: int) -> bool:
        """Permanently delete a story. ``False`` means it was already absent."""

    # preferences

    @abc.abstractmethod
    def get_user_preferences(self) -> UserPreferences:
        """The preferences singleton, created with defaults on first access."""

    @abc.abstractmethod
    def update_user_preferences(self, preferences: UserPreferences) -> UserPreferences:
        """Replace the preferences singleton wholesale."""

    # character suggestions

    @abc.abstractmethod
    def get_character_suggestions(self) -> list[CharacterSuggestion]:
        """All suggestions, most used first."""

    @abc.abstractmethod
    def add_character_suggestion(self, character: str, usage_count: int = 1) -> CharacterSuggestion:
        """Insert a new suggestion row."""

    @abc.abstractmethod
    def increment_character_usage(self, character: str) -> CharacterSuggestion:
        """Atomically add one use to ``character``, creating it with a count of 1."""

    def seed_character_suggestions(
        self,
        characters: Iterable[str],
        *,
        usage_count: int = 0,
    ) -> int:
        """
        Seed suggestions when none exist yet. Returns the number of rows inserted.
        """
        if self.get_character_suggestions():
            return 0

        inserted = 0
        for character in characters:
            text = character.strip()
            if text:
                self.add_character_suggestion(text, usage_count=usage_count)
                inserted += 1
        return inserted

    def close(self) -> None:
        """Release backend resources."""


def _suggestion_rank(item: CharacterSuggestion) -> tuple[int, int]:
    return (-item.usage_count, item.id)


class InMemoryLibraryStore(LibraryStore):
    """
    Process-local store. A single lock serialises every mutation, which also makes
    character usage increments atomic per key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stories: dict[int, Story] = {}
        self._story_ids = itertools.count(1)
        self._preferences: UserPreferences | None = None
        self._suggestions: dict[str, CharacterSuggestion] = {}
        self._suggestion_ids = itertools.count(1)

    def create_story(self, draft: StoryDraft) -> Story:
        with self._lock:
            story = Story.from_draft(next(self._story_ids), draft)
            self._stories[story.id] = story
        return story

    def get_all_stories(self) -> list[Story]:
        with self._lock:
            stories = list(self._stories.values())
        return sorted(stories, key=lambda item: (item.created_at, item.id), reverse=True)

    def get_story(self, story_id: int) -> Story | None:
        with self._lock:
            return self._stories.get(story_id)

    def delete_story(self, story_id: int) -> bool:
        with self._lock:
            return self._stories.pop(story_id, None) is not None

    def get_user_preferences(self) -> UserPreferences:
        with self._lock:
            if self._preferences is None:
                self._preferences = UserPreferences.defaults()
            return self._preferences

    def update_user_preferences(self, preferences: UserPreferences) -> UserPreferences:
        with self._lock:
            self._preferences = preferences.with_identity()
            return self._preferences

    def get_character_suggestions(self) -> list[CharacterSuggestion]:
        with self._lock:
            suggestions = list(self._suggestions.values())
        return sorted(suggestions, key=_suggestion_rank)

    def add_character_suggestion(self, character: str, usage_count: int = 1) -> CharacterSuggestion:
        with self._lock:
            if character in self._suggestions:
                raise ValueError(f"Character suggestion {character!r} already exists.")
            suggestion = CharacterSuggestion(
                id=next(self._suggestion_ids),
                character=character,
                usage_count=usage_count,
            )
            self._suggestions[character] = suggestion
        return suggestion

    def increment_character_usage(self, character: str) -> CharacterSuggestion:
        with self._lock:
            existing = self._suggestions.get(character)
            if existing is None:
                updated = CharacterSuggestion(
                    id=next(self._suggestion_ids),
                    character=character,
                    usage_count=1,
                )
            else:
                updated = CharacterSuggestion(
                    id=existing.id,
                    character=character,
                    usage_count=existing.usage_count + 1,
                )
            self._suggestions[character] = updated
        return updated
