"""
Story generation utilities: request validation, prompt building, and the story writer.
"""

from .prompting import (
    TARGET_WORD_COUNTS,
    ProviderSpec,
    StoryPrompt,
    build_character_suggestion_prompt,
    build_provider_spec,
    build_story_prompt,
    target_word_count,
)
from .request import STORY_LENGTHS, StoryRequest, normalize_story_request
from .story_service import BedtimeStoryWriter, GeneratedStory

__all__ = [
    "STORY_LENGTHS",
    "StoryRequest",
    "normalize_story_request",
    "TARGET_WORD_COUNTS",
    "ProviderSpec",
    "StoryPrompt",
    "build_provider_spec",
    "build_story_prompt",
    "build_character_suggestion_prompt",
    "target_word_count",
    "BedtimeStoryWriter",
    "GeneratedStory",
]
