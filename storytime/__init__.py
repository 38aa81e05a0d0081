"""
Storytime package: curriculum-aware bedtime story generation, library and PDF export.
"""

from .common import ServiceSettings
from .library import Story, UserPreferences, create_library_store
from .pdf_generation import StoryPDFBuilder
from .pipeline import (
    BedtimeStoryOrchestrator,
    GenerationOutcome,
    LiteLLMContentProvider,
    build_content_provider,
)

__all__ = [
    "BedtimeStoryOrchestrator",
    "GenerationOutcome",
    "LiteLLMContentProvider",
    "ServiceSettings",
    "Story",
    "StoryPDFBuilder",
    "UserPreferences",
    "build_content_provider",
    "create_library_store",
]
