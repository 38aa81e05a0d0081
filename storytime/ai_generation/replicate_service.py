"""
Integration with Replicate for bedtime story illustrations.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any

import replicate

from storytime.common.settings import DEFAULT_REPLICATE_MODEL

from .prompting import IllustrationPrompt

# Square cover art for every supported model. ``negative`` marks models that
# accept a negative prompt.
_MODEL_DEFAULTS: dict[str, dict[str, Any]] = {
    "black-forest-labs/flux-schnell": {
        "aspect_ratio": "1:1",
        "output_format": "png",
        "num_outputs": 1,
    },
    "black-forest-labs/flux-dev": {
        "aspect_ratio": "1:1",
        "output_format": "png",
        "num_outputs": 1,
        "guidance": 3.5,
    },
    "stability-ai/sdxl": {
        "width": 1024,
        "height": 1024,
        "num_outputs": 1,
        "negative": True,
    },
}


def replicate_input_for(model_identifier: str, prompt: IllustrationPrompt) -> dict[str, Any]:
    """
    Build the ``input`` mapping for ``model_identifier``.

    Versioned identifiers (``owner/model:sha``) use the defaults of their base model.
    """
    base = model_identifier.strip().lower().split(":", 1)[0]
    try:
        defaults = dict(_MODEL_DEFAULTS[base])
    except KeyError:
        raise ValueError(
            f"Replicate model {model_identifier!r} is not supported for illustrations. "
            f"Choose one of: {', '.join(sorted(_MODEL_DEFAULTS))}."
        ) from None

    payload: dict[str, Any] = {"prompt": prompt.positive}
    if defaults.pop("negative", False):
        payload["negative_prompt"] = prompt.negative
    payload.update(defaults)
    return payload


class ReplicateImageGenerator:
    """
    Illustration backend that runs an image model on Replicate.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN``.
    model_identifier:
        ``owner/model`` or ``owner/model:version``. Falls back to ``REPLICATE_MODEL``
        and then to FLUX schnell.
    client:
        Pre-built :class:`replicate.Client`, used instead of creating one from the token.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
    ) -> None:
        token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if client is None:
            if not token:
                raise ValueError("A Replicate API token is needed: set REPLICATE_API_TOKEN or pass api_token.")
            client = replicate.Client(api_token=token)

        self._client = client
        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_REPLICATE_MODEL
        )

    @property
    def model_identifier(self) -> str:
        return self._model_identifier

    def generate_image(self, prompt: IllustrationPrompt, **model_kwargs: Any) -> str:
        """
        Run the model once and return the URL of its first image.
        """
        model_input = replicate_input_for(self._model_identifier, prompt)
        model_input.update(model_kwargs)

        urls = normalize_image_outputs(self._client.run(self._model_identifier, input=model_input))
        if not urls:
            raise RuntimeError(f"Replicate model {self._model_identifier} produced no image.")
        return urls[0]


def normalize_image_outputs(raw: Any) -> list[str]:
    """
    Flatten whatever ``replicate.run`` returned into a list of URL strings.

    Handles plain strings, ``FileOutput`` objects (anything with a ``url``),
    mappings with a ``url`` key, and lists or iterators of any of these.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw else []
    if isinstance(raw, bytes):
        return [raw.decode("utf-8", errors="ignore")]
    if isinstance(raw, Mapping):
        url = raw.get("url")
        return [str(url)] if url else []

    url = getattr(raw, "url", None)
    if isinstance(url, str):
        return [url]

    if isinstance(raw, Iterable):
        urls: list[str] = []
        for item in raw:
            urls.extend(normalize_image_outputs(item))
        return urls

    return [str(raw)]
