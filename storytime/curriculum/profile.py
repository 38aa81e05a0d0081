"""
Canonical age -> UK curriculum profile table.

Story generation, library display, and PDF export all read this one table so the
stage boundaries cannot drift between call sites.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MIN_AGE = 0
MAX_AGE = 12

EYFS = "EYFS"
KEY_STAGE_1 = "Key Stage 1"
KEY_STAGE_2 = "Key Stage 2"
KEY_STAGE_3 = "Key Stage 3"

CURRICULUM_STAGES = (EYFS, KEY_STAGE_1, KEY_STAGE_2, KEY_STAGE_3)

_STAGE_CSS_CLASSES = {
    EYFS: "eyfs",
    KEY_STAGE_1: "ks1",
    KEY_STAGE_2: "ks2",
    KEY_STAGE_3: "ks3",
}


@dataclass(frozen=True)
class CurriculumProfile:
    """
    Reading, vocabulary, and moral-complexity descriptors for one age.

    Attributes
    ----------
    age:
        Age in years the profile was resolved for.
    stage:
        One of :data:`CURRICULUM_STAGES`.
    vocabulary_level, sentence_complexity, moral_reasoning_level, reading_level:
        Descriptors fed into the story prompt.
    title, description, key_skills:
        Human-facing copy for the age picker and exported documents.
    """

    age: int
    stage: str
    vocabulary_level: str
    sentence_complexity: str
    moral_reasoning_level: str
    reading_level: str
    title: str
    description: str
    key_skills: tuple[str, ...]

    @property
    def css_class(self) -> str:
        return stage_css_class(self.stage)

    def prompt_bullets(self) -> list[str]:
        """
        Bullet lines describing the language targets for the story prompt.
        """
        return [
            f"Vocabulary level: {self.vocabulary_level}",
            f"Sentence complexity: {self.sentence_complexity}",
            f"Moral reasoning: {self.moral_reasoning_level}",
            f"Reading level: {self.reading_level}",
        ]

    def as_dict(self) -> dict[str, Any]:
        return {
            "age": self.age,
            "stage": self.stage,
            "stageClass": self.css_class,
            "vocabularyLevel": self.vocabulary_level,
            "sentenceComplexity": self.sentence_complexity,
            "moralReasoningLevel": self.moral_reasoning_level,
            "readingLevel": self.reading_level,
            "title": self.title,
            "description": self.description,
            "keySkills": list(self.key_skills),
        }


_EARLY_YEARS_TITLE = "Early Years (Ages 0-3)"
_EARLY_YEARS_DESCRIPTION = "Simple words, basic communication, gentle moral concepts through actions."
_FOUNDATION_TITLE = "Early Years (Ages 3-5)"
_FOUNDATION_DESCRIPTION = "Foundation vocabulary, simple sentences, basic moral concepts about kindness."
_KS1_TITLE = "Key Stage 1 (Ages 5-7)"
_KS2_TITLE = "Key Stage 2 (Ages 7-11)"

# (stage, vocabulary, sentences, moral reasoning, reading, title, description, key skills)
_PROFILE_ROWS: dict[int, tuple[str, str, str, str, str, str, str, tuple[str, ...]]] = {
    0: (
        EYFS, "basic", "very simple", "concrete actions", "pre-reading",
        _EARLY_YEARS_TITLE, _EARLY_YEARS_DESCRIPTION,
        ("Basic vocabulary", "Simple sentences", "Listening skills"),
    ),
    1: (
        EYFS, "basic", "very simple", "concrete actions", "pre-reading",
        _EARLY_YEARS_TITLE, _EARLY_YEARS_DESCRIPTION,
        ("Basic vocabulary", "Simple sentences", "Listening skills"),
    ),
    2: (
        EYFS, "basic", "very simple", "concrete actions", "pre-reading",
        _EARLY_YEARS_TITLE, _EARLY_YEARS_DESCRIPTION,
        ("Basic vocabulary", "Simple sentences", "Listening skills"),
    ),
    3: (
        EYFS, "foundation", "simple", "basic kindness", "early phonics",
        _FOUNDATION_TITLE, _FOUNDATION_DESCRIPTION,
        ("Phonics awareness", "Story comprehension", "Basic emotions"),
    ),
    4: (
        EYFS, "foundation", "simple", "basic kindness", "developing phonics",
        _FOUNDATION_TITLE, _FOUNDATION_DESCRIPTION,
        ("Phonics awareness", "Story comprehension", "Basic emotions"),
    ),
    5: (
        KEY_STAGE_1, "phonics-based", "simple with basic punctuation",
        "sharing and kindness", "independent reading",
        _KS1_TITLE,
        "Simple sentences, basic punctuation, phonics-based vocabulary with moral lessons "
        "about kindness and sharing.",
        ("Phonics mastery", "Simple punctuation", "Character understanding"),
    ),
    6: (
        KEY_STAGE_1, "expanding", "simple with varied punctuation",
        "friendship and cooperation", "fluent reading",
        _KS1_TITLE,
        "Simple sentences, basic punctuation, phonics-based vocabulary with moral lessons "
        "about kindness and sharing.",
        ("Reading fluency", "Writing basics", "Moral reasoning"),
    ),
    7: (
        KEY_STAGE_1, "age-appropriate academic", "developing complexity",
        "basic figurative understanding", "confident reading",
        _KS1_TITLE,
        "Developing fluency, age-appropriate academic vocabulary, understanding of "
        "figurative language basics.",
        ("Independent reading", "Academic vocabulary", "Story structure"),
    ),
    8: (
        KEY_STAGE_2, "figurative language introduction", "complex sentences",
        "deeper moral reasoning", "advanced reading",
        _KS2_TITLE,
        "Complex sentences, figurative language, advanced vocabulary with deeper moral reasoning.",
        ("Figurative language", "Complex narratives", "Ethical understanding"),
    ),
    9: (
        KEY_STAGE_2, "advanced vocabulary", "varied sentence structures",
        "ethical understanding", "sophisticated reading",
        _KS2_TITLE,
        "Complex sentences, figurative language, advanced vocabulary with deeper moral reasoning.",
        ("Literary devices", "Character development", "Moral complexity"),
    ),
    10: (
        KEY_STAGE_2, "sophisticated", "nuanced expression",
        "complex moral concepts", "secondary preparation",
        _KS2_TITLE,
        "Sophisticated vocabulary, nuanced meaning, preparation for secondary curriculum complexity.",
        ("Advanced comprehension", "Nuanced themes", "Critical thinking"),
    ),
    11: (
        KEY_STAGE_2, "secondary preparation", "advanced structures",
        "ethical reasoning", "year 7 ready",
        _KS2_TITLE,
        "Reading and writing sufficiently fluent for year 7, advanced moral and ethical reasoning.",
        ("Secondary preparation", "Ethical reasoning", "Advanced literacy"),
    ),
    12: (
        KEY_STAGE_3, "standard English proficiency", "conscious language control",
        "philosophical concepts", "advanced secondary",
        "Key Stage 3 (Ages 11-14)",
        "Standard English proficiency, conscious language control, complex moral and "
        "philosophical concepts.",
        ("Standard English", "Philosophical thinking", "Advanced communication"),
    ),
}

_PROFILES: dict[int, CurriculumProfile] = {
    age: CurriculumProfile(
        age=age,
        stage=row[0],
        vocabulary_level=row[1],
        sentence_complexity=row[2],
        moral_reasoning_level=row[3],
        reading_level=row[4],
        title=row[5],
        description=row[6],
        key_skills=row[7],
    )
    for age, row in _PROFILE_ROWS.items()
}


def resolve_curriculum_profile(age: int) -> CurriculumProfile:
    """
    Return the curriculum profile for ``age``.

    Ages are validated upstream by the request normalizer; an age outside
    ``MIN_AGE..MAX_AGE`` here is a programming error.
    """
    try:
        return _PROFILES[age]
    except KeyError:
        raise ValueError(f"No curriculum profile for age {age!r}; expected {MIN_AGE}-{MAX_AGE}.") from None


def stage_for_age(age: int) -> str:
    return resolve_curriculum_profile(age).stage


def stage_css_class(stage: str) -> str:
    """Badge class used by the UI for a stage name. Unknown stages fall back to EYFS."""
    return _STAGE_CSS_CLASSES.get(stage, "eyfs")


def all_curriculum_profiles() -> list[CurriculumProfile]:
    return [_PROFILES[age] for age in range(MIN_AGE, MAX_AGE + 1)]
