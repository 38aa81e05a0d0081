"""
LiteLLM-backed illustration generator (DALL-E 3 and other LiteLLM image models).
"""

from __future__ import annotations

import os
from typing import Any, Protocol

from storytime.common import ImageCallable, ImageResult, call_image_generation
from storytime.common.settings import DEFAULT_IMAGE_MODEL

from .prompting import IllustrationPrompt


class ImageGenerator(Protocol):
    """Anything that can turn an illustration prompt into an image URL."""

    def generate_image(self, prompt: IllustrationPrompt, **model_kwargs: Any) -> str:
        ...


class LiteLLMImageGenerator:
    """
    Generate illustrations through ``litellm.image_generation``.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        image_fn: ImageCallable | None = None,
        size: str = "1024x1024",
        quality: str = "standard",
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("STORYTIME_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = model or os.getenv("STORYTIME_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL
        self._image_fn: ImageCallable = image_fn or call_image_generation
        self._size = size
        self._quality = quality
        self._timeout = timeout

    @property
    def model(self) -> str:
        return self._model

    def generate_image(self, prompt: IllustrationPrompt, **model_kwargs: Any) -> str:
        if self._timeout is not None:
            model_kwargs.setdefault("timeout", self._timeout)

        result: ImageResult = self._image_fn(
            model=self._model,
            prompt=prompt.positive,
            size=self._size,
            quality=self._quality,
            api_key=self._api_key,
            **model_kwargs,
        )
        return result.url
