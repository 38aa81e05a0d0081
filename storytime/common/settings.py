"""
Environment-driven configuration for the storytime service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

IMAGE_BACKENDS = ("litellm", "replicate")

DEFAULT_STORY_MODEL = "gpt-4o"
DEFAULT_IMAGE_MODEL = "dall-e-3"
DEFAULT_REPLICATE_MODEL = "black-forest-labs/flux-schnell"


def _first_env(env: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = env.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _optional_float(value: str | None, name: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from exc


@dataclass(frozen=True)
class ServiceSettings:
    """
    Resolved service configuration.

    Attributes
    ----------
    story_model:
        LiteLLM model string for story text and character suggestions. The
        provider prefix (``gemini/``, ``anthropic/`` ...) selects the backend.
    api_key:
        Optional API key forwarded to LiteLLM. When absent LiteLLM reads the
        provider's own environment variable.
    image_backend:
        ``litellm`` or ``replicate``.
    image_model:
        Model identifier used by the selected image backend.
    replicate_api_token:
        Token for the Replicate backend.
    database_url:
        SQLAlchemy URL for the library store. ``None`` keeps the library in memory.
    provider_timeout:
        Optional per-call timeout (seconds) forwarded to the provider backends.
    log_level:
        Root logging level for the API entry point.
    """

    story_model: str = DEFAULT_STORY_MODEL
    api_key: str | None = None
    image_backend: str = "litellm"
    image_model: str = DEFAULT_IMAGE_MODEL
    replicate_api_token: str | None = None
    database_url: str | None = None
    provider_timeout: float | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ServiceSettings":
        """
        Build settings from environment variables (``os.environ`` by default).
        """
        env = os.environ if env is None else env

        image_backend = (_first_env(env, "STORYTIME_IMAGE_BACKEND") or "litellm").lower()
        if image_backend not in IMAGE_BACKENDS:
            raise ValueError(
                f"STORYTIME_IMAGE_BACKEND must be one of {', '.join(IMAGE_BACKENDS)}, "
                f"got {image_backend!r}."
            )

        if image_backend == "replicate":
            image_model = (
                _first_env(env, "STORYTIME_IMAGE_MODEL", "REPLICATE_MODEL")
                or DEFAULT_REPLICATE_MODEL
            )
        else:
            image_model = _first_env(env, "STORYTIME_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL

        return cls(
            story_model=(
                _first_env(env, "STORYTIME_STORY_MODEL", "LITELLM_STORY_MODEL", "LITELLM_MODEL")
                or DEFAULT_STORY_MODEL
            ),
            api_key=_first_env(env, "STORYTIME_API_KEY", "LITELLM_API_KEY"),
            image_backend=image_backend,
            image_model=image_model,
            replicate_api_token=_first_env(env, "REPLICATE_API_TOKEN"),
            database_url=_first_env(env, "STORYTIME_DATABASE_URL", "DATABASE_URL"),
            provider_timeout=_optional_float(
                _first_env(env, "STORYTIME_PROVIDER_TIMEOUT"), "STORYTIME_PROVIDER_TIMEOUT"
            ),
            log_level=(_first_env(env, "STORYTIME_LOG_LEVEL") or "INFO").upper(),
        )
