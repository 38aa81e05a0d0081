# tests/test_story_service.py
"""Tests for story_generation/story_service.py - the LiteLLM story writer."""

import json

import pytest
from conftest import STORY_REPLY, FakeCompletion

from storytime.common import ProviderError, llm
from storytime.common.llm import parse_json_object
from storytime.curriculum import resolve_curriculum_profile
from storytime.story_generation import (
    BedtimeStoryWriter,
    GeneratedStory,
    build_provider_spec,
    normalize_story_request,
)


@pytest.fixture
def spec(story_request):
    request = normalize_story_request(story_request)
    return build_provider_spec(request, resolve_curriculum_profile(request.age))


class TestGenerateStory:
    def test_parses_json_reply(self, spec) -> None:
        completion = FakeCompletion()
        writer = BedtimeStoryWriter(model="gemini/gemini-2.0-flash", completion_fn=completion)

        story = writer.generate_story(spec)

        assert story.title == STORY_REPLY["title"]
        assert story.content.endswith("The End")
        assert story.moral == STORY_REPLY["moral"]
        assert story.suggested_titles == tuple(STORY_REPLY["suggestedTitles"])

    def test_single_call_with_json_response_format(self, spec) -> None:
        completion = FakeCompletion()
        writer = BedtimeStoryWriter(model="gpt-4o", completion_fn=completion, timeout=12.5)

        writer.generate_story(spec)

        assert len(completion.calls) == 1
        call = completion.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["response_format"] == {"type": "json_object"}
        assert call["timeout"] == 12.5
        assert [message["role"] for message in call["messages"]] == ["system", "user"]

    def test_code_fenced_reply_is_accepted(self, spec) -> None:
        completion = FakeCompletion(reply="```json\n" + json.dumps(STORY_REPLY) + "\n```")
        story = BedtimeStoryWriter(model="gpt-4o", completion_fn=completion).generate_story(spec)
        assert story.title == STORY_REPLY["title"]

    def test_transport_failure_becomes_provider_error(self, spec) -> None:
        completion = FakeCompletion(error=TimeoutError("took too long"))
        writer = BedtimeStoryWriter(model="gpt-4o", completion_fn=completion)

        with pytest.raises(ProviderError, match="took too long"):
            writer.generate_story(spec)
        assert len(completion.calls) == 1

    @pytest.mark.parametrize(
        "reply",
        ["not json at all", "[1, 2, 3]", {"title": "", "content": "Once upon a time"}, {"title": "Only a title"}],
    )
    def test_malformed_reply_becomes_provider_error(self, spec, reply) -> None:
        writer = BedtimeStoryWriter(model="gpt-4o", completion_fn=FakeCompletion(reply=reply))

        with pytest.raises(ProviderError):
            writer.generate_story(spec)

    def test_missing_moral_is_none(self) -> None:
        story = GeneratedStory.from_mapping({"title": "T", "content": "C", "moral": "  "})
        assert story.moral is None
        assert story.suggested_titles == ()


class TestSuggestCharacters:
    def test_returns_trimmed_characters(self) -> None:
        completion = FakeCompletion(reply={"characters": [" A shy hedgehog ", "", "A jolly whale"]})
        writer = BedtimeStoryWriter(model="gpt-4o", completion_fn=completion)

        assert writer.suggest_characters(2) == ["A shy hedgehog", "A jolly whale"]

    @pytest.mark.parametrize("reply", [{"characters": []}, {"names": ["A fox"]}])
    def test_empty_or_missing_list_is_an_error(self, reply) -> None:
        writer = BedtimeStoryWriter(model="gpt-4o", completion_fn=FakeCompletion(reply=reply))

        with pytest.raises(ProviderError):
            writer.suggest_characters()


class TestParseJsonObject:
    def test_rejects_non_object(self) -> None:
        with pytest.raises(ValueError):
            parse_json_object('"just a string"')


class TestLiteLLMHelpers:
    def test_chat_completion_omits_unset_options(self, monkeypatch) -> None:
        captured: dict = {}

        def fake_completion(**kwargs):
            captured.update(kwargs)
            return {"choices": [{"message": {"content": "  hello  "}}]}

        monkeypatch.setattr(llm, "completion", fake_completion)

        result = llm.call_chat_completion(model="gpt-4o", messages=[{"role": "user", "content": "hi"}], temperature=0.5)

        assert result.text == "hello"
        assert captured == {"model": "gpt-4o", "messages": [{"role": "user", "content": "hi"}], "temperature": 0.5}

    def test_image_generation_builds_data_uri_from_base64(self, monkeypatch) -> None:
        monkeypatch.setattr(llm, "image_generation", lambda **kwargs: {"data": [{"url": None, "b64_json": "AAAA"}]})

        result = llm.call_image_generation(model="dall-e-3", prompt="a sleepy moon")

        assert result.url == "data:image/png;base64,AAAA"

    def test_image_generation_without_image_is_an_error(self, monkeypatch) -> None:
        monkeypatch.setattr(llm, "image_generation", lambda **kwargs: {"data": []})

        with pytest.raises(RuntimeError):
            llm.call_image_generation(model="dall-e-3", prompt="a sleepy moon")
