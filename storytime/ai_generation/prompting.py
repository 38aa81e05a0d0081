"""
Prompt construction for bedtime story illustrations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

ILLUSTRATION_STYLES = ("soft", "watercolor", "cartoon", "storybook")

_STYLE_DESCRIPTIONS = {
    "soft": "soft, dreamy children's book illustration",
    "watercolor": "soft watercolor children's book illustration",
    "cartoon": "friendly cartoon children's book illustration",
    "storybook": "classic storybook illustration",
}

NEGATIVE_PROMPT = (
    "scary, dark shadows, violence, harsh lighting, text, lettering, watermark, logo, "
    "cluttered background, realistic photo"
)


@dataclass(frozen=True)
class IllustrationPrompt:
    """Container for the positive and negative prompts passed to the image model."""

    positive: str
    negative: str = NEGATIVE_PROMPT


def describe_style(age: int, style: str | None = None) -> str:
    """
    Pick the art direction for the illustration.

    An explicit preference wins; otherwise the youngest readers get watercolour.
    """
    if style:
        description = _STYLE_DESCRIPTIONS.get(style.strip().lower())
        if description:
            return description
    if age <= 5:
        return _STYLE_DESCRIPTIONS["watercolor"]
    return "gentle storybook illustration"


def build_illustration_prompt(
    title: str,
    characters: Sequence[str],
    setting: str,
    age: int,
    *,
    style: str | None = None,
) -> IllustrationPrompt:
    """
    Build the prompt used to illustrate a finished bedtime story.
    """
    if not title or not title.strip():
        raise ValueError("title must be a non-empty string.")

    if not setting or not setting.strip():
        raise ValueError("setting must be a non-empty string.")

    cast = ", ".join(item.strip() for item in characters if item and item.strip())
    scene = f"{setting.strip()} featuring {cast}" if cast else setting.strip()

    positive = f"""Create a {describe_style(age, style)} for a bedtime story titled "{title.strip()}".
Scene: {scene}.
Style: Soft, muted colours perfect for bedtime, dreamy and calming atmosphere, child-friendly and non-scary, warm lighting suggesting evening or magical twilight.
Art style: Gentle, rounded shapes, pastel colour palette, cozy and reassuring mood."""

    return IllustrationPrompt(positive=positive)
