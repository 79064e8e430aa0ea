"""
Core Module - Shared domain models.

Components:
- mastery: Strength scoring, decay, lesson aggregation, StrengthLedger
- exercises: Exercise tagged union and Lesson records
- challenge: Challenge-mode configuration for mastery-level exercises
"""

from mastery_engine.core.challenge import (
    ChallengeConfig,
    apply_challenge,
    get_challenge_config,
    reverse_exercise,
)
from mastery_engine.core.exercises import (
    Exercise,
    ExerciseRef,
    ExerciseType,
    Lesson,
    exercise_from_dict,
    lesson_from_dict,
)
from mastery_engine.core.mastery import (
    MasteryLevel,
    StrengthLedger,
    StrengthRecord,
    challenge_strength_change,
    decay,
    lesson_strength,
    should_trigger_challenge,
    strength_change,
)

__all__ = [
    # Mastery
    "MasteryLevel",
    "StrengthLedger",
    "StrengthRecord",
    "challenge_strength_change",
    "decay",
    "lesson_strength",
    "should_trigger_challenge",
    "strength_change",
    # Exercises
    "Exercise",
    "ExerciseRef",
    "ExerciseType",
    "Lesson",
    "exercise_from_dict",
    "lesson_from_dict",
    # Challenge
    "ChallengeConfig",
    "apply_challenge",
    "get_challenge_config",
    "reverse_exercise",
]
