"""
Service layer for producing bedtime stories via LiteLLM-compatible models.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from storytime.common import (
    ChatResult,
    CompletionCallable,
    ProviderError,
    call_chat_completion,
    parse_json_object,
)
from storytime.common.settings import DEFAULT_STORY_MODEL

from .prompting import (
    DEFAULT_SUGGESTION_COUNT,
    ProviderSpec,
    StoryPrompt,
    build_character_suggestion_prompt,
    build_story_prompt,
)

JSON_RESPONSE_FORMAT = {"type": "json_object"}


@dataclass(frozen=True)
class GeneratedStory:
    """
    Story text returned by the provider, before it is stamped and persisted.
    """

    title: str
    content: str
    moral: str | None = None
    suggested_titles: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GeneratedStory":
        title = str(data.get("title") or "").strip()
        content = str(data.get("content") or "").strip()
        if not title or not content:
            raise ValueError("Story reply is missing title or content.")

        moral = str(data.get("moral") or "").strip() or None

        raw_titles = data.get("suggestedTitles") or data.get("suggested_titles") or []
        if isinstance(raw_titles, str):
            raw_titles = [raw_titles]
        suggested = tuple(
            text for text in (str(item).strip() for item in raw_titles if item is not None) if text
        )

        return cls(title=title, content=content, moral=moral, suggested_titles=suggested)


class BedtimeStoryWriter:
    """
    Turns a provider spec into a complete bedtime story using a chat model.

    The backend is chosen by the LiteLLM model string (``gpt-4o``,
    ``gemini/gemini-2.0-flash`` ...); the prompt is always the one built by
    :func:`build_story_prompt`.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        completion_fn: CompletionCallable | None = None,
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("STORYTIME_API_KEY") or os.getenv("LITELLM_API_KEY")
        self._model = (
            model
            or os.getenv("STORYTIME_STORY_MODEL")
            or os.getenv("LITELLM_STORY_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_STORY_MODEL
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._timeout = timeout

    @property
    def model(self) -> str:
        """Return the model identifier in use."""
        return self._model

    def generate_story(
        self,
        spec: ProviderSpec,
        *,
        temperature: float = 0.8,
        max_output_tokens: int = 2000,
        **response_kwargs: Any,
    ) -> GeneratedStory:
        """
        Invoke the configured LLM once and parse its JSON story reply.

        Raises
        ------
        ProviderError
            When the call fails or the reply lacks a title or content.
        """
        prompt: StoryPrompt = build_story_prompt(spec)
        data = self._request_json(
            prompt,
            temperature=temperature,
            max_tokens=max_output_tokens,
            failure_message="Failed to generate story",
            **response_kwargs,
        )

        try:
            return GeneratedStory.from_mapping(data)
        except ValueError as exc:
            raise ProviderError(f"Failed to generate story: {exc}") from exc

    def suggest_characters(
        self,
        count: int = DEFAULT_SUGGESTION_COUNT,
        *,
        temperature: float = 0.9,
        max_output_tokens: int = 1000,
    ) -> list[str]:
        """
        Ask the model for fresh character ideas.
        """
        prompt = build_character_suggestion_prompt(count)
        data = self._request_json(
            prompt,
            temperature=temperature,
            max_tokens=max_output_tokens,
            failure_message="Failed to generate character suggestions",
        )

        raw = data.get("characters")
        if not isinstance(raw, list):
            raise ProviderError("Failed to generate character suggestions: reply has no 'characters' list.")

        characters = [text for text in (str(item).strip() for item in raw if item is not None) if text]
        if not characters:
            raise ProviderError("Failed to generate character suggestions: reply list is empty.")
        return characters

    def _request_json(
        self,
        prompt: StoryPrompt,
        *,
        temperature: float,
        max_tokens: int | None,
        failure_message: str,
        **response_kwargs: Any,
    ) -> dict[str, Any]:
        messages = [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": prompt.user},
        ]

        call_kwargs: dict[str, Any] = dict(response_kwargs)
        call_kwargs.setdefault("response_format", JSON_RESPONSE_FORMAT)
        if self._timeout is not None:
            call_kwargs.setdefault("timeout", self._timeout)

        try:
            result: ChatResult = self._completion_fn(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                api_key=self._api_key,
                **call_kwargs,
            )
        except Exception as exc:
            raise ProviderError(f"{failure_message}: {exc}") from exc

        if not result.text:
            raise ProviderError(f"{failure_message}: LLM response did not contain any text content.")

        try:
            return parse_json_object(result.text)
        except ValueError as exc:
            raise ProviderError(f"{failure_message}: {exc}") from exc
