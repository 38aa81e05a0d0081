"""
End-to-end orchestration from a raw story request to a saved library story.
"""

from .assembler import StoryRecordAssembler, effective_moral, utc_now
from .pipeline import (
    FALLBACK_CHARACTERS,
    BedtimeStoryOrchestrator,
    GenerationOutcome,
    load_mapping_file,
)
from .provider import (
    ContentProvider,
    IllustrationResult,
    LiteLLMContentProvider,
    build_content_provider,
)

__all__ = [
    "ContentProvider",
    "IllustrationResult",
    "LiteLLMContentProvider",
    "build_content_provider",
    "StoryRecordAssembler",
    "effective_moral",
    "utc_now",
    "FALLBACK_CHARACTERS",
    "BedtimeStoryOrchestrator",
    "GenerationOutcome",
    "load_mapping_file",
]
