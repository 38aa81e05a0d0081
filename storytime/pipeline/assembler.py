"""
Turns provider output into a persisted library story.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from storytime.curriculum import resolve_curriculum_profile
from storytime.library import LibraryStore, Story, StoryDraft
from storytime.story_generation import GeneratedStory, StoryRequest

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def effective_moral(request: StoryRequest, generated: GeneratedStory) -> str | None:
    """
    The moral actually used: the provider's stated moral, else the requested theme.
    """
    return generated.moral or request.moral_theme


class StoryRecordAssembler:
    """
    Stamps the curriculum stage, persists the story, then records character usage.
    """

    def __init__(self, store: LibraryStore, *, clock: Clock | None = None) -> None:
        self._store = store
        self._clock: Clock = clock or utc_now

    def assemble(
        self,
        request: StoryRequest,
        generated: GeneratedStory,
        illustration_url: str | None = None,
    ) -> Story:
        draft = StoryDraft(
            title=generated.title,
            content=generated.content,
            characters=request.characters,
            setting=request.setting,
            age=request.age,
            story_length=request.story_length,
            curriculum_stage=resolve_curriculum_profile(request.age).stage,
            created_at=self._clock(),
            moral_theme=effective_moral(request, generated),
            illustration_url=illustration_url or None,
        )
        story = self._store.create_story(draft)
        logger.info("Saved story %s (%s, %s).", story.id, story.title, story.curriculum_stage)

        self._record_character_usage(request.characters)
        return story

    def _record_character_usage(self, characters: tuple[str, ...]) -> None:
        # Usage counts only drive suggestion ranking; a failed increment never
        # undoes the story or stops the remaining characters.
        for character in characters:
            try:
                self._store.increment_character_usage(character)
            except Exception:
                logger.exception("Failed to record usage for character %r.", character)
