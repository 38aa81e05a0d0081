"""
Content provider capability interface and its LiteLLM-based implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from storytime.ai_generation import (
    ImageGenerator,
    LiteLLMImageGenerator,
    ReplicateImageGenerator,
    build_illustration_prompt,
)
from storytime.common import CompletionCallable, IllustrationError, ImageCallable, ServiceSettings
from storytime.story_generation import BedtimeStoryWriter, GeneratedStory, ProviderSpec


@dataclass(frozen=True)
class IllustrationResult:
    url: str


class ContentProvider(Protocol):
    """
    What the pipeline needs from a text-and-image generation service.
    """

    def generate_story(self, spec: ProviderSpec) -> GeneratedStory:
        ...

    def generate_illustration(
        self,
        title: str,
        characters: Sequence[str],
        setting: str,
        age: int,
        *,
        style: str | None = None,
    ) -> IllustrationResult:
        ...

    def suggest_characters(self, count: int) -> list[str]:
        ...


class LiteLLMContentProvider:
    """
    Story text through a LiteLLM chat model, illustrations through any :class:`ImageGenerator`.
    """

    def __init__(
        self,
        *,
        story_writer: BedtimeStoryWriter,
        image_generator: ImageGenerator,
    ) -> None:
        self._story_writer = story_writer
        self._image_generator = image_generator

    def generate_story(self, spec: ProviderSpec) -> GeneratedStory:
        return self._story_writer.generate_story(spec)

    def generate_illustration(
        self,
        title: str,
        characters: Sequence[str],
        setting: str,
        age: int,
        *,
        style: str | None = None,
    ) -> IllustrationResult:
        try:
            prompt = build_illustration_prompt(title, characters, setting, age, style=style)
            url = self._image_generator.generate_image(prompt)
        except Exception as exc:
            raise IllustrationError(f"Failed to generate illustration: {exc}") from exc

        if not url:
            raise IllustrationError("Failed to generate illustration: empty image reference.")
        return IllustrationResult(url=url)

    def suggest_characters(self, count: int) -> list[str]:
        return self._story_writer.suggest_characters(count)


def build_content_provider(
    settings: ServiceSettings,
    *,
    completion_fn: CompletionCallable | None = None,
    image_fn: ImageCallable | None = None,
) -> LiteLLMContentProvider:
    """
    Assemble the provider selected by ``settings``.
    """
    story_writer = BedtimeStoryWriter(
        api_key=settings.api_key,
        model=settings.story_model,
        completion_fn=completion_fn,
        timeout=settings.provider_timeout,
    )

    image_generator: ImageGenerator
    if settings.image_backend == "replicate":
        image_generator = ReplicateImageGenerator(
            api_token=settings.replicate_api_token,
            model_identifier=settings.image_model,
        )
    else:
        image_generator = LiteLLMImageGenerator(
            api_key=settings.api_key,
            model=settings.image_model,
            image_fn=image_fn,
            timeout=settings.provider_timeout,
        )

    return LiteLLMContentProvider(story_writer=story_writer, image_generator=image_generator)
