"""
Generate one bedtime story from a request file and save it to the library.

Usage:
    python scripts/generate_story.py \
        --request story_request.yaml \
        --output generated_story.yaml
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storytime import (  # noqa: E402
    BedtimeStoryOrchestrator,
    ServiceSettings,
    build_content_provider,
    create_library_store,
)
from storytime.common import ProviderError, StoryValidationError  # noqa: E402


class ProgressTracker:
    """
    Command-line progress updates for the story pipeline.
    """

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "request:validating":
                self._write("[1/4] Checking the story request...")
            case "request:ready":
                characters = ", ".join(payload.get("characters", []))
                self._write(f"[1/4] Request ready: {characters} (age {payload.get('age')}).")
            case "story:generating":
                target = payload.get("target_word_count")
                self._write(
                    f"[2/4] Writing a {payload.get('stage')} story"
                    + (f" (~{target} words)..." if target else "...")
                )
            case "story:generated":
                self._write(
                    f"[2/4] \"{payload.get('title')}\" drafted ({payload.get('word_count')} words)."
                )
            case "illustration:generating":
                self._write("[3/4] Painting the cover illustration...")
            case "illustration:done":
                if payload.get("illustrated"):
                    self._write("[3/4] Illustration ready.")
                else:
                    self._write("[3/4] Illustration unavailable; continuing without one.")
            case "story:saved":
                self._write(f"[4/4] Saved to the library as story #{payload.get('story_id')}.")

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a bedtime story and save it to the library.")
    parser.add_argument(
        "--request",
        required=True,
        help="Path to the story request YAML/JSON file (characters, setting, age, storyLength).",
    )
    parser.add_argument(
        "--output",
        default="generated_story.yaml",
        help="Output YAML file for the saved story and suggested titles.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL of the library (default: STORYTIME_DATABASE_URL or in-memory).",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Override the LiteLLM model used for the story text.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    settings = ServiceSettings.from_env()
    if args.model:
        settings = replace(settings, story_model=args.model)

    store = create_library_store(args.database_url or settings.database_url)
    orchestrator = BedtimeStoryOrchestrator(provider=build_content_provider(settings), store=store)

    try:
        outcome = orchestrator.run_from_file(args.request, progress_callback=ProgressTracker())
    except (StoryValidationError, ProviderError) as exc:
        tqdm.write(f"Story generation failed: {exc}")
        return 1
    finally:
        store.close()

    output_path = Path(args.output)
    output_path.write_text(outcome.to_yaml(), encoding="utf-8")
    tqdm.write(f"Story written to {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
