"""
LiteLLM-powered chat completion and image generation helpers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from litellm import completion, image_generation

ChatMessage = Mapping[str, Any]


@dataclass
class ChatResult:
    """
    Structured response returned from an LLM chat completion.
    """

    text: str
    raw: Any


@dataclass
class ImageResult:
    """
    First image returned by an image generation call.

    ``url`` holds either a hosted URL or a ``data:`` URI built from base64 output.
    """

    url: str
    raw: Any


CompletionCallable = Callable[..., ChatResult]
ImageCallable = Callable[..., ImageResult]


def _litellm_kwargs(required: Mapping[str, Any], optional: Mapping[str, Any]) -> dict[str, Any]:
    # Options left as None are omitted.
    kwargs = dict(required)
    kwargs.update({key: value for key, value in optional.items() if value is not None})
    return kwargs


def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Run one LiteLLM ``completion`` call and return the assistant text.

    The provider is picked by the model string (``gpt-4o``, ``gemini/...``).
    """
    response = completion(
        **_litellm_kwargs(
            {"model": model, "messages": list(messages)},
            {"temperature": temperature, "max_tokens": max_tokens, "api_key": api_key, **extra_kwargs},
        )
    )

    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("LiteLLM completion response had no message content.") from exc

    return ChatResult(text=str(content or "").strip(), raw=response)


def call_image_generation(
    *,
    model: str,
    prompt: str,
    size: str | None = "1024x1024",
    quality: str | None = "standard",
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ImageResult:
    """
    Run one LiteLLM ``image_generation`` call and return the first image reference.
    """
    response = image_generation(
        **_litellm_kwargs(
            {"model": model, "prompt": prompt, "n": 1},
            {"size": size, "quality": quality, "api_key": api_key, **extra_kwargs},
        )
    )

    try:
        first = _image_field(response, "data")[0]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected LiteLLM image response format.") from exc

    url = _image_field(first, "url")
    if not url:
        encoded = _image_field(first, "b64_json")
        if encoded:
            url = f"data:image/png;base64,{encoded}"

    if not url:
        raise RuntimeError("LiteLLM image response did not include a URL or base64 payload.")

    return ImageResult(url=str(url), raw=response)


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """
    Parse a JSON object from a model reply, tolerating Markdown code fences.
    """
    text = raw_text.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
        text = text.strip()

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError("Model reply is not valid JSON.") from exc

    if not isinstance(parsed, dict):
        raise ValueError("Model reply JSON must be an object.")

    return parsed


def _image_field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)
