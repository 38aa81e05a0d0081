"""
Exception taxonomy shared by the storytime pipeline, library store, and API.
"""

from __future__ import annotations


class StorytimeError(Exception):
    """Base class for every error raised deliberately by storytime."""


class StoryValidationError(StorytimeError, ValueError):
    """A story request is malformed or out of range. The caller can correct it."""


class ProviderError(StorytimeError, RuntimeError):
    """The content provider failed to generate text. Fatal for the request."""


class IllustrationError(ProviderError):
    """The illustration backend failed. The story is still saved without an image."""


class StoryNotFoundError(StorytimeError, LookupError):
    """A referenced story id does not exist."""

    def __init__(self, story_id: int) -> None:
        super().__init__(f"Story {story_id} not found")
        self.story_id = story_id


class StoreError(StorytimeError, RuntimeError):
    """The persistence backend is unavailable or rejected an operation."""
