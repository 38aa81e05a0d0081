"""
Orchestrates a bedtime story request from raw input to a saved library story.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from storytime.common import ProviderError
from storytime.curriculum import resolve_curriculum_profile
from storytime.library import LibraryStore, Story
from storytime.story_generation import (
    GeneratedStory,
    ProviderSpec,
    StoryRequest,
    build_provider_spec,
    normalize_story_request,
)
from storytime.story_generation.prompting import DEFAULT_SUGGESTION_COUNT

from .assembler import Clock, StoryRecordAssembler
from .provider import ContentProvider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]

FALLBACK_CHARACTERS = (
    "A curious little rabbit",
    "A wise old owl",
    "A friendly dragon",
    "A brave young knight",
    "A magical fairy",
    "A sleepy bear",
    "A clever fox",
    "A kind grandmother",
    "A playful puppy",
    "A gentle giant",
    "A singing bird",
    "A helpful mouse",
)


@dataclass
class GenerationOutcome:
    """Result of one successful story generation."""

    story: Story
    suggested_titles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "story": self.story.as_dict(),
            "suggestedTitles": list(self.suggested_titles),
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)


class BedtimeStoryOrchestrator:
    """
    High-level coordinator: normalize, build, generate, illustrate, assemble.

    Provider calls happen before anything touches the store, so no store lock is
    ever held while waiting on the provider.
    """

    def __init__(
        self,
        *,
        provider: ContentProvider,
        store: LibraryStore,
        assembler: StoryRecordAssembler | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._provider = provider
        self._store = store
        self._assembler = assembler or StoryRecordAssembler(store, clock=clock)

    def run_from_mapping(
        self,
        raw: Mapping[str, Any],
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> GenerationOutcome:
        """
        Validate a raw request body and run the full pipeline.

        Raises
        ------
        StoryValidationError
            When the request is malformed. Nothing is generated or saved.
        ProviderError
            When story text generation fails. Nothing is saved.
        """
        self._notify(progress_callback, "request:validating")
        request = normalize_story_request(raw)
        self._notify(
            progress_callback,
            "request:ready",
            characters=list(request.characters),
            age=request.age,
        )
        return self.run(request, progress_callback=progress_callback)

    def run_from_file(
        self,
        request_path: Path | str,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> GenerationOutcome:
        """
        Load a request from a YAML or JSON file and run the pipeline.
        """
        request_path = Path(request_path)
        data = load_mapping_file(request_path)
        return self.run_from_mapping(data, progress_callback=progress_callback)

    def run(
        self,
        request: StoryRequest,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> GenerationOutcome:
        preferences = self._store.get_user_preferences()
        profile = resolve_curriculum_profile(request.age)
        spec = build_provider_spec(
            request,
            profile,
            language_enrichment=preferences.language_enrichment is not False,
        )

        self._notify(
            progress_callback,
            "story:generating",
            stage=profile.stage,
            target_word_count=spec.target_word_count,
        )
        generated = self._generate_story(spec)
        self._notify(
            progress_callback,
            "story:generated",
            title=generated.title,
            word_count=len(generated.content.split()),
        )

        self._notify(progress_callback, "illustration:generating")
        illustration_url = self._generate_illustration(
            request,
            generated,
            style=preferences.illustration_style,
        )
        self._notify(
            progress_callback,
            "illustration:done",
            illustrated=illustration_url is not None,
        )

        story = self._assembler.assemble(request, generated, illustration_url)
        self._notify(progress_callback, "story:saved", story_id=story.id)

        return GenerationOutcome(story=story, suggested_titles=list(generated.suggested_titles))

    def suggest_characters(self, count: int = DEFAULT_SUGGESTION_COUNT) -> list[str]:
        """
        Fresh character ideas from the provider, or a fixed list when it fails.
        """
        try:
            characters = self._provider.suggest_characters(count)
        except Exception:
            logger.exception("Character suggestion failed; using the fallback list.")
            return list(FALLBACK_CHARACTERS)

        if not characters:
            logger.warning("Provider returned no character suggestions; using the fallback list.")
            return list(FALLBACK_CHARACTERS)
        return characters

    def _generate_story(self, spec: ProviderSpec) -> GeneratedStory:
        try:
            return self._provider.generate_story(spec)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"Failed to generate story: {exc}") from exc

    def _generate_illustration(
        self,
        request: StoryRequest,
        generated: GeneratedStory,
        *,
        style: str | None,
    ) -> str | None:
        try:
            result = self._provider.generate_illustration(
                generated.title,
                request.characters,
                request.setting,
                request.age,
                style=style,
            )
        except Exception:
            logger.exception("Illustration failed for %r; saving without an image.", generated.title)
            return None
        return result.url or None

    @staticmethod
    def _notify(
        callback: ProgressCallback | None,
        stage: str,
        /,
        **payload: Any,
    ) -> None:
        if callback is not None:
            callback(stage, payload)


def load_mapping_file(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported request file format. Use YAML or JSON.")

    if not isinstance(data, Mapping):
        raise ValueError("Request file must deserialize to a mapping.")
    return data
