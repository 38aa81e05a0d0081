"""
Common utilities shared across storytime modules.
"""

from .errors import (
    IllustrationError,
    ProviderError,
    StoreError,
    StoryNotFoundError,
    StorytimeError,
    StoryValidationError,
)
from .llm import (
    ChatResult,
    CompletionCallable,
    ImageCallable,
    ImageResult,
    call_chat_completion,
    call_image_generation,
    parse_json_object,
)
from .settings import ServiceSettings

__all__ = [
    "ChatResult",
    "CompletionCallable",
    "ImageCallable",
    "ImageResult",
    "call_chat_completion",
    "call_image_generation",
    "parse_json_object",
    "ServiceSettings",
    "StorytimeError",
    "StoryValidationError",
    "ProviderError",
    "IllustrationError",
    "StoryNotFoundError",
    "StoreError",
]
