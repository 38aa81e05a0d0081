"""
AI illustration generation for storytime.
"""

from .image_service import ImageGenerator, LiteLLMImageGenerator
from .prompting import (
    ILLUSTRATION_STYLES,
    IllustrationPrompt,
    build_illustration_prompt,
    describe_style,
)
from .replicate_service import ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "ILLUSTRATION_STYLES",
    "IllustrationPrompt",
    "build_illustration_prompt",
    "describe_style",
    "ImageGenerator",
    "LiteLLMImageGenerator",
    "ReplicateImageGenerator",
    "normalize_image_outputs",
]
