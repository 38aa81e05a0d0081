# tests/test_providers.py
"""Tests for ai_generation/ and pipeline/provider.py - illustration backends and the content provider."""

from dataclasses import dataclass
from typing import Any

import pytest
from conftest import STORY_REPLY, FakeCompletion, FakeImage

from storytime.ai_generation import (
    LiteLLMImageGenerator,
    ReplicateImageGenerator,
    build_illustration_prompt,
    describe_style,
    normalize_image_outputs,
)
from storytime.common import IllustrationError, ProviderError, ServiceSettings
from storytime.curriculum import resolve_curriculum_profile
from storytime.pipeline import LiteLLMContentProvider, build_content_provider
from storytime.story_generation import BedtimeStoryWriter, build_provider_spec, normalize_story_request


@dataclass
class _FileOutput:
    url: str


class FakeReplicateClient:
    def __init__(self, output: Any) -> None:
        self.output = output
        self.runs: list[tuple[str, dict[str, Any]]] = []

    def run(self, model: str, input: dict[str, Any]) -> Any:  # noqa: A002 - replicate API
        self.runs.append((model, input))
        return self.output


class TestIllustrationPrompt:
    def test_explicit_style_wins(self) -> None:
        assert describe_style(3, "cartoon") == "friendly cartoon children's book illustration"

    def test_young_readers_default_to_watercolour(self) -> None:
        assert "watercolor" in describe_style(4)
        assert describe_style(9) == "gentle storybook illustration"

    def test_unknown_style_falls_back_to_age(self) -> None:
        assert describe_style(9, "neon") == "gentle storybook illustration"

    def test_prompt_mentions_title_setting_and_cast(self) -> None:
        prompt = build_illustration_prompt("The Lantern", ["Fox", " ", "Owl"], "A misty forest clearing", 5)

        assert '"The Lantern"' in prompt.positive
        assert "A misty forest clearing featuring Fox, Owl" in prompt.positive
        assert "scary" in prompt.negative

    @pytest.mark.parametrize(("title", "setting"), [("", "A misty forest"), ("The Lantern", "  ")])
    def test_title_and_setting_are_required(self, title: str, setting: str) -> None:
        with pytest.raises(ValueError):
            build_illustration_prompt(title, ["Fox"], setting, 5)


class TestImageGenerators:
    def test_litellm_generator_forwards_prompt_and_timeout(self) -> None:
        image_fn = FakeImage()
        generator = LiteLLMImageGenerator(model="dall-e-3", image_fn=image_fn, timeout=20.0)
        prompt = build_illustration_prompt("The Lantern", ["Fox"], "A misty forest clearing", 5)

        url = generator.generate_image(prompt)

        assert url == "https://images.example/lantern.png"
        (call,) = image_fn.calls
        assert call["model"] == "dall-e-3"
        assert call["prompt"] == prompt.positive
        assert call["timeout"] == 20.0

    def test_replicate_generator_returns_first_output(self) -> None:
        client = FakeReplicateClient([_FileOutput("https://replicate.example/1.png")])
        generator = ReplicateImageGenerator(client=client, model_identifier="black-forest-labs/flux-schnell")
        prompt = build_illustration_prompt("The Lantern", ["Fox"], "A misty forest clearing", 5)

        assert generator.generate_image(prompt) == "https://replicate.example/1.png"
        model, payload = client.runs[0]
        assert model == "black-forest-labs/flux-schnell"
        assert payload["prompt"] == prompt.positive

    def test_replicate_generator_rejects_empty_output(self) -> None:
        generator = ReplicateImageGenerator(client=FakeReplicateClient([]), model_identifier="stability-ai/sdxl")
        prompt = build_illustration_prompt("The Lantern", ["Fox"], "A misty forest clearing", 5)

        with pytest.raises(RuntimeError):
            generator.generate_image(prompt)

    def test_normalize_image_outputs(self) -> None:
        assert normalize_image_outputs(None) == []
        assert normalize_image_outputs("https://x/1.png") == ["https://x/1.png"]
        assert normalize_image_outputs(["https://x/1.png", _FileOutput("https://x/2.png")]) == [
            "https://x/1.png",
            "https://x/2.png",
        ]


class TestLiteLLMContentProvider:
    def _provider(self, image_fn: FakeImage, completion: FakeCompletion | None = None) -> LiteLLMContentProvider:
        return LiteLLMContentProvider(
            story_writer=BedtimeStoryWriter(model="gpt-4o", completion_fn=completion or FakeCompletion()),
            image_generator=LiteLLMImageGenerator(model="dall-e-3", image_fn=image_fn),
        )

    def test_generates_story_and_illustration(self, story_request) -> None:
        provider = self._provider(FakeImage())
        request = normalize_story_request(story_request)
        spec = build_provider_spec(request, resolve_curriculum_profile(request.age))

        story = provider.generate_story(spec)
        illustration = provider.generate_illustration(story.title, request.characters, request.setting, request.age)

        assert story.title == STORY_REPLY["title"]
        assert illustration.url == "https://images.example/lantern.png"

    def test_illustration_failure_is_an_illustration_error(self) -> None:
        provider = self._provider(FakeImage(error=RuntimeError("content policy")))

        with pytest.raises(IllustrationError) as excinfo:
            provider.generate_illustration("The Lantern", ["Fox"], "A misty forest clearing", 5)

        assert isinstance(excinfo.value, ProviderError)

    def test_empty_image_reference_is_an_error(self) -> None:
        provider = self._provider(FakeImage(url=""))

        with pytest.raises(IllustrationError):
            provider.generate_illustration("The Lantern", ["Fox"], "A misty forest clearing", 5)


class TestBuildContentProvider:
    def test_litellm_backend_uses_settings(self) -> None:
        completion = FakeCompletion(reply={"characters": ["A kind robot"]})
        image_fn = FakeImage()
        settings = ServiceSettings(story_model="gemini/gemini-2.0-flash", image_model="dall-e-3", provider_timeout=9.0)

        provider = build_content_provider(settings, completion_fn=completion, image_fn=image_fn)
        provider.generate_illustration("The Lantern", ["Fox"], "A misty forest clearing", 5, style="cartoon")
        characters = provider.suggest_characters(3)

        assert characters == ["A kind robot"]
        assert completion.calls[0]["model"] == "gemini/gemini-2.0-flash"
        assert image_fn.calls[0]["model"] == "dall-e-3"
        assert image_fn.calls[0]["timeout"] == 9.0
        assert "cartoon" in image_fn.calls[0]["prompt"]

    def test_replicate_backend_requires_token(self, monkeypatch) -> None:
        monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
        settings = ServiceSettings(image_backend="replicate", image_model="black-forest-labs/flux-schnell")

        with pytest.raises(ValueError):
            build_content_provider(settings)
