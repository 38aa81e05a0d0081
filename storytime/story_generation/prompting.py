"""
Prompt construction for bedtime story generation.

This is the only place that turns a request and curriculum profile into model
instructions; every provider backend receives the prompts built here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from storytime.curriculum import CurriculumProfile

from .request import StoryRequest

TARGET_WORD_COUNTS = {
    "5min": 400,
    "10min": 800,
}

PROVIDER_CHOOSES_MORAL = "Choose an age-appropriate moral lesson"

DEFAULT_SUGGESTION_COUNT = 12


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the chat model.
    """

    system: str
    user: str


@dataclass(frozen=True)
class ProviderSpec:
    """
    Everything the content provider needs to write one story.
    """

    characters: tuple[str, ...]
    setting: str
    age: int
    story_length: str
    target_word_count: int
    moral_theme: str | None
    curriculum: CurriculumProfile
    language_enrichment: bool = True

    @property
    def reading_minutes(self) -> int:
        return int(self.story_length.removesuffix("min"))

    def as_dict(self) -> dict[str, Any]:
        return {
            "characters": list(self.characters),
            "setting": self.setting,
            "age": self.age,
            "story_length": self.story_length,
            "target_word_count": self.target_word_count,
            "moral_theme": self.moral_theme,
            "curriculum_stage": self.curriculum.stage,
            "language_enrichment": self.language_enrichment,
        }


def target_word_count(story_length: str) -> int:
    try:
        return TARGET_WORD_COUNTS[story_length]
    except KeyError:
        raise ValueError(f"Unknown story length {story_length!r}.") from None


def build_provider_spec(
    request: StoryRequest,
    profile: CurriculumProfile,
    *,
    language_enrichment: bool = True,
) -> ProviderSpec:
    """
    Combine a validated request with its curriculum profile.
    """
    return ProviderSpec(
        characters=request.characters,
        setting=request.setting,
        age=request.age,
        story_length=request.story_length,
        target_word_count=target_word_count(request.story_length),
        moral_theme=request.moral_theme,
        curriculum=profile,
        language_enrichment=language_enrichment,
    )


def build_story_prompt(spec: ProviderSpec) -> StoryPrompt:
    """
    Build the prompt pair used to solicit a complete bedtime story as JSON.
    """
    curriculum = spec.curriculum
    curriculum_block = "\n".join(f"- {line}" for line in curriculum.prompt_bullets())

    language_lines = [
        "Use proper UK English spelling (colour, realise, centre, behaviour, etc.)",
        "Incorporate classic fable-style moral lessons",
        "Use Standard English with appropriate complexity for age",
        "Bedtime-appropriate tone (calming, reassuring, positive ending)",
    ]
    if spec.language_enrichment:
        language_lines.insert(1, 'Include age-appropriate "older" vocabulary for enrichment')
    language_block = "\n".join(f"- {line}" for line in language_lines)

    system_prompt = """You are a gentle children's author who writes calming bedtime stories aligned to the UK National Curriculum.
Stories must be safe, kind, and reassuring. Avoid frightening peril, violence, or mature themes.
Never mention that you are an AI and never include notes about your process.
Always reply with a single JSON object and nothing else."""

    user_prompt = f"""Create a bedtime story for a {spec.age}-year-old child following UK National Curriculum {curriculum.stage} standards.

STORY REQUIREMENTS:
- Characters: {", ".join(spec.characters)}
- Setting: {spec.setting}
- Length: Approximately {spec.target_word_count} words for a {spec.reading_minutes}-minute reading time
- Moral theme: {spec.moral_theme or PROVIDER_CHOOSES_MORAL}

UK CURRICULUM ALIGNMENT ({curriculum.stage}):
{curriculum_block}

LANGUAGE REQUIREMENTS:
{language_block}

STORY STRUCTURE:
- Begin with "Once upon a time" or similar classic opening
- Include all specified characters meaningfully
- Set the story in the described setting
- Build to a gentle conflict or challenge
- Resolve with the moral lesson naturally integrated
- End with a peaceful, satisfying conclusion
- Separate paragraphs with a blank line
- Include "The End" at the finish

Please respond with JSON in this exact format:
{{
  "title": "Generated story title",
  "content": "Full story text with proper UK spelling and age-appropriate language",
  "moral": "The moral lesson explained simply",
  "suggestedTitles": ["Alternative title 1", "Alternative title 2", "Alternative title 3"]
}}"""

    return StoryPrompt(system=system_prompt, user=user_prompt)


def build_character_suggestion_prompt(count: int = DEFAULT_SUGGESTION_COUNT) -> StoryPrompt:
    """
    Build the prompt pair asking for fresh bedtime story characters.
    """
    if count < 1:
        raise ValueError("count must be a positive integer.")

    system_prompt = (
        "You suggest gentle, child-friendly characters for bedtime stories. "
        "Always reply with a single JSON object and nothing else."
    )

    user_prompt = f"""Generate {count} creative, diverse characters suitable for children's bedtime stories. Include a mix of:
- Animals (domestic and woodland creatures)
- Fantasy characters (fairies, dragons, etc.)
- Human characters (children, adults in various professions)
- Magical beings

Each character should:
- Be child-friendly and non-scary
- Include the article (A/An) and a descriptive adjective
- Be described in 3-5 words

Examples: "A brave little hedgehog", "A wise old tortoise", "A magical singing bird"

Please respond with JSON in this format:
{{
  "characters": ["Character 1", "Character 2", ...]
}}"""

    return StoryPrompt(system=system_prompt, user=user_prompt)
