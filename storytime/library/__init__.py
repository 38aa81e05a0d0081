"""
Personal story library: persisted entities and store backends.
"""

from __future__ import annotations

from .models import (
    DEFAULT_CHARACTER_SUGGESTIONS,
    DEFAULT_FAVOURITE_THEMES,
    PREFERENCES_ID,
    CharacterSuggestion,
    Story,
    StoryDraft,
    UserPreferences,
)
from .sql_store import SqlLibraryStore, create_library_engine
from .store import InMemoryLibraryStore, LibraryStore


def create_library_store(database_url: str | None = None, *, seed: bool = True) -> LibraryStore:
    """
    Build the configured store. Without a database URL the library lives in memory.
    """
    store: LibraryStore
    if database_url:
        sql_store = SqlLibraryStore(database_url)
        sql_store.create_schema()
        store = sql_store
    else:
        store = InMemoryLibraryStore()

    if seed:
        store.seed_character_suggestions(DEFAULT_CHARACTER_SUGGESTIONS)
    return store


__all__ = [
    "DEFAULT_CHARACTER_SUGGESTIONS",
    "DEFAULT_FAVOURITE_THEMES",
    "PREFERENCES_ID",
    "CharacterSuggestion",
    "Story",
    "StoryDraft",
    "UserPreferences",
    "LibraryStore",
    "InMemoryLibraryStore",
    "SqlLibraryStore",
    "create_library_engine",
    "create_library_store",
]
