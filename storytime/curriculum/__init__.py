"""
UK curriculum levelling for bedtime stories.
"""

from .profile import (
    CURRICULUM_STAGES,
    EYFS,
    KEY_STAGE_1,
    KEY_STAGE_2,
    KEY_STAGE_3,
    MAX_AGE,
    MIN_AGE,
    CurriculumProfile,
    all_curriculum_profiles,
    resolve_curriculum_profile,
    stage_css_class,
    stage_for_age,
)

__all__ = [
    "CURRICULUM_STAGES",
    "EYFS",
    "KEY_STAGE_1",
    "KEY_STAGE_2",
    "KEY_STAGE_3",
    "MAX_AGE",
    "MIN_AGE",
    "CurriculumProfile",
    "all_curriculum_profiles",
    "resolve_curriculum_profile",
    "stage_css_class",
    "stage_for_age",
]
