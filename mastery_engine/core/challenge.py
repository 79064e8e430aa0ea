"""
Challenge mode for mastery-level exercises.

An exercise becomes a challenge when ALL of its items have strength >= 80.
Challenges are scored with challenge_strength_change() (+15/-30) and, when
passed, mark the items as having proven mastery (slower decay).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable

from config import get_settings
from mastery_engine.core.exercises import (
    Exercise,
    MeaningToWordExercise,
    WordToMeaningExercise,
)
from mastery_engine.core.mastery import should_trigger_challenge

REVERSE_PROBABILITY = 0.5


@dataclass(frozen=True)
class ChallengeConfig:
    """Presentation settings for an exercise."""
    is_challenge: bool = False
    timer_seconds: int = 0
    require_tashkeel: bool = False
    hide_english_hint: bool = False
    reversed_direction: bool = False


DEFAULT_CONFIG = ChallengeConfig()


def _challenge_config(reversed_direction: bool) -> ChallengeConfig:
    return ChallengeConfig(
        is_challenge=True,
        timer_seconds=get_settings().challenge_timer_seconds,
        require_tashkeel=True,
        hide_english_hint=True,
        reversed_direction=reversed_direction,
    )


def get_challenge_config(
    exercise: Exercise,
    get_strength: Callable[[str], float],
    rng: random.Random | None = None,
) -> ChallengeConfig:
    """
    Get the challenge configuration for an exercise based on item strengths.

    Args:
        exercise: The exercise to check
        get_strength: Looks up an item's strength by id
        rng: Random source for direction reversal (defaults to module random)

    Returns:
        Challenge config if every item qualifies, else the default config
    """
    if not exercise.item_ids:
        return DEFAULT_CONFIG

    if not all(should_trigger_challenge(get_strength(item_id)) for item_id in exercise.item_ids):
        return DEFAULT_CONFIG

    can_reverse = isinstance(exercise, (WordToMeaningExercise, MeaningToWordExercise))
    should_reverse = can_reverse and (rng or random).random() < REVERSE_PROBABILITY

    return _challenge_config(reversed_direction=should_reverse)


def reverse_exercise(
    exercise: WordToMeaningExercise | MeaningToWordExercise,
) -> WordToMeaningExercise | MeaningToWordExercise:
    """
    Swap prompt and answer and flip the direction of a meaning exercise.

    word-to-meaning (Arabic prompt, English answer) becomes meaning-to-word
    and vice versa.
    """
    target_cls = MeaningToWordExercise if isinstance(exercise, WordToMeaningExercise) else WordToMeaningExercise
    return target_cls(
        id=exercise.id,
        item_ids=exercise.item_ids,
        prompt=exercise.answer,
        answer=exercise.prompt,
        prompt_en=exercise.prompt_en,
    )


def apply_challenge(exercise: Exercise, config: ChallengeConfig) -> Exercise:
    """Return the exercise as it should be presented under a config."""
    if not config.reversed_direction:
        return exercise

    if isinstance(exercise, (WordToMeaningExercise, MeaningToWordExercise)):
        return reverse_exercise(exercise)

    return exercise

