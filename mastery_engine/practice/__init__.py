"""
Practice Module - Session flow and learner feedback.

Components:
- session: PracticeSession state machine (answer, retry, feedback, review)
- retry_hints: Progressive answer reveal for immediate error retry
- calibration: Confidence calibration analysis
"""

from mastery_engine.practice.calibration import (
    CalibrationStats,
    CalibrationTendency,
    ConfidenceRecord,
    calculate_calibration_stats,
    calibration_score,
    get_calibration_trend,
    get_confidence_level_label,
)
from mastery_engine.practice.retry_hints import (
    MAX_RETRY_ATTEMPTS,
    RetryHint,
    get_first_character,
    get_progressive_reveal,
    get_retry_hint,
    is_arabic_text,
)
from mastery_engine.practice.session import (
    AnswerMetadata,
    AnswerOutcome,
    AnsweredCorrect,
    AnsweredIncorrectExhausted,
    AnsweredIncorrectRetryable,
    ExerciseResult,
    FinalExerciseResult,
    OutcomeKind,
    PracticeSession,
    RetryState,
    SessionSnapshot,
)

__all__ = [
    # Session
    "AnswerMetadata",
    "AnswerOutcome",
    "AnsweredCorrect",
    "AnsweredIncorrectExhausted",
    "AnsweredIncorrectRetryable",
    "ExerciseResult",
    "FinalExerciseResult",
    "OutcomeKind",
    "PracticeSession",
    "RetryState",
    "SessionSnapshot",
    # Retry hints
    "MAX_RETRY_ATTEMPTS",
    "RetryHint",
    "get_first_character",
    "get_progressive_reveal",
    "get_retry_hint",
    "is_arabic_text",
    # Calibration
    "CalibrationStats",
    "CalibrationTendency",
    "ConfidenceRecord",
    "calculate_calibration_stats",
    "calibration_score",
    "get_calibration_trend",
    "get_confidence_level_label",
]
