"""
Practice Session: state machine for one learner's pass through an exercise list.

States:
    Active          awaiting an answer for exercises[current_index]
    Retrying        wrong answer, attempts remain (caller triggers retry_exercise)
    ShowingFeedback correct, or wrong with all attempts used
    Complete        current_index >= len(exercises)

A parallel review mode lets the caller look at any earlier exercise
(view_index < current_index) without touching active progress.

Every answer attempt is appended to `results`, including each retry, so
mastery updates see every attempt. Invalid operations are silent no-ops.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from loguru import logger

from mastery_engine.core.exercises import Exercise
from mastery_engine.core.mastery import round_half_up
from mastery_engine.practice.calibration import ConfidenceRecord, calibration_score
from mastery_engine.practice.retry_hints import (
    MAX_RETRY_ATTEMPTS,
    RetryHint,
    get_retry_hint,
    is_arabic_text,
)

DEFAULT_MIN_RATED_ANSWERS = 3


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class AnswerMetadata:
    """Optional per-answer signals."""
    confidence: int | None = None  # 1-3
    generated_without_hints: bool | None = None
    response_time_ms: int | None = None


@dataclass(frozen=True)
class ExerciseResult:
    """One recorded answer attempt."""
    exercise_id: str
    is_correct: bool
    user_answer: str
    was_retry_attempt: bool = False
    confidence: int | None = None
    generated_without_hints: bool | None = None
    response_time_ms: int | None = None


@dataclass(frozen=True)
class RetryState:
    """Exists only while the current exercise is mid-retry."""
    attempt_count: int  # 1 = first wrong answer, MAX_RETRY_ATTEMPTS = exhausted
    hint: RetryHint
    last_incorrect_answer: str
    correct_answer: str


@dataclass(frozen=True)
class FinalExerciseResult:
    """Last recorded outcome for an exercise, paired with its answer."""
    exercise_id: str
    is_correct: bool
    user_answer: str
    correct_answer: str


class OutcomeKind(str, Enum):
    CORRECT = "correct"
    INCORRECT_RETRYABLE = "incorrect-retryable"
    INCORRECT_EXHAUSTED = "incorrect-exhausted"


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of a non-ignored record_answer() call."""
    user_answer: str

    kind = None  # set on each variant

    @property
    def is_correct(self) -> bool:
        return self.kind == OutcomeKind.CORRECT

    @property
    def is_terminal(self) -> bool:
        """Terminal outcomes wait for advance_to_next()."""
        return self.kind != OutcomeKind.INCORRECT_RETRYABLE


@dataclass(frozen=True)
class AnsweredCorrect(AnswerOutcome):
    attempt: int = 1
    kind = OutcomeKind.CORRECT


@dataclass(frozen=True)
class AnsweredIncorrectRetryable(AnswerOutcome):
    attempt: int = 1
    hint: RetryHint | None = None
    kind = OutcomeKind.INCORRECT_RETRYABLE


@dataclass(frozen=True)
class AnsweredIncorrectExhausted(AnswerOutcome):
    hint: RetryHint | None = None
    kind = OutcomeKind.INCORRECT_EXHAUSTED


@dataclass(frozen=True)
class GenerationStats:
    """Accuracy of answers produced without hints."""
    total_generated: int
    generated_correctly: int
    generation_rate: float


@dataclass(frozen=True)
class ConfidenceStats:
    """Session-level confidence calibration."""
    total_rated: int
    calibration_score: float


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for rendering."""
    current_exercise: Exercise | None
    current_index: int
    total_exercises: int
    is_complete: bool
    view_index: int
    viewing_exercise: Exercise | None
    is_reviewing: bool
    can_go_back: bool
    can_go_forward: bool
    outcome: AnswerOutcome | None
    showing_feedback: bool
    is_retrying: bool
    retry_attempt_count: int
    current_hint: RetryHint | None
    retry_trigger: int
    correct_count: int
    incorrect_count: int
    accuracy: int
    current_streak: int
    best_streak: int
    generation_stats: GenerationStats
    confidence_stats: ConfidenceStats
    results: tuple[ExerciseResult, ...] = field(default=())


# =============================================================================
# Session
# =============================================================================


class PracticeSession:
    """
    One learner's active attempt sequence over an ordered exercise list.

    Example:
        session = PracticeSession(exercises)
        outcome = session.record_answer(False, "pan")
        if outcome and not outcome.is_terminal:
            session.retry_exercise()
        ...
        session.advance_to_next()
    """

    def __init__(
        self,
        exercises: Sequence[Exercise],
        min_rated_answers: int = DEFAULT_MIN_RATED_ANSWERS,
    ):
        self.exercises: tuple[Exercise, ...] = tuple(exercises)
        self.min_rated_answers = min_rated_answers
        self._reset_state()

    def _reset_state(self) -> None:
        self._current_index = 0
        self._view_index = 0
        self._results: list[ExerciseResult] = []
        self._streak = 0
        self._best_streak = 0
        self._outcome: AnswerOutcome | None = None
        self._retry_state: RetryState | None = None
        self._retry_trigger = 0

    def _clear_feedback(self) -> None:
        self._outcome = None
        self._retry_state = None
        self._retry_trigger = 0

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    @property
    def total_exercises(self) -> int:
        return len(self.exercises)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def is_complete(self) -> bool:
        return self._current_index >= len(self.exercises)

    @property
    def current_exercise(self) -> Exercise | None:
        if self.is_complete:
            return None
        return self.exercises[self._current_index]

    # -------------------------------------------------------------------------
    # Review navigation
    # -------------------------------------------------------------------------

    @property
    def view_index(self) -> int:
        return self._view_index

    @property
    def viewing_exercise(self) -> Exercise | None:
        if 0 <= self._view_index < len(self.exercises):
            return self.exercises[self._view_index]
        return None

    @property
    def is_reviewing(self) -> bool:
        return self._view_index < self._current_index

    @property
    def can_go_back(self) -> bool:
        return self._view_index > 0

    @property
    def can_go_forward(self) -> bool:
        return self._view_index < self._current_index

    # -------------------------------------------------------------------------
    # Feedback / retry
    # -------------------------------------------------------------------------

    @property
    def outcome(self) -> AnswerOutcome | None:
        """Outcome of the last answer on the current exercise."""
        return self._outcome

    @property
    def showing_feedback(self) -> bool:
        return self._outcome is not None and self._outcome.is_terminal

    @property
    def is_retrying(self) -> bool:
        """True while a retry state exists (also on the exhausted outcome)."""
        return self._retry_state is not None

    @property
    def retry_state(self) -> RetryState | None:
        return self._retry_state

    @property
    def retry_attempt_count(self) -> int:
        return self._retry_state.attempt_count if self._retry_state else 0

    @property
    def current_hint(self) -> RetryHint | None:
        return self._retry_state.hint if self._retry_state else None

    @property
    def last_incorrect_answer(self) -> str | None:
        return self._retry_state.last_incorrect_answer if self._retry_state else None

    @property
    def retry_trigger(self) -> int:
        """Increments on every retry; consumers reset per-attempt input on change."""
        return self._retry_trigger

    @property
    def last_result(self) -> tuple[bool, str] | None:
        """(is_correct, user_answer) of the last answer on the current exercise."""
        if self._outcome is None:
            return None
        return self._outcome.is_correct, self._outcome.user_answer

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def record_answer(
        self,
        is_correct: bool,
        user_answer: str,
        metadata: AnswerMetadata | None = None,
    ) -> AnswerOutcome | None:
        """
        Record an answer attempt for the current exercise.

        Correct answers and exhausted retries end the exercise; the session then
        waits for advance_to_next(). A wrong answer with attempts left enters
        retry mode with a progressively stronger hint.

        Args:
            is_correct: Whether the answer was judged correct
            user_answer: The learner's answer
            metadata: Optional confidence / hint-free / timing signals

        Returns:
            The outcome, or None if the call was ignored
        """
        exercise = self.current_exercise
        if exercise is None:
            logger.debug("Ignoring answer: session complete")
            return None

        if self._outcome is not None and self._outcome.is_terminal:
            logger.debug(f"Ignoring answer for {exercise.id}: feedback already showing")
            return None

        metadata = metadata or AnswerMetadata()
        correct_answer = exercise.expected_answer
        answer_is_arabic = is_arabic_text(correct_answer)
        attempt = self.retry_attempt_count + 1

        self._results.append(
            ExerciseResult(
                exercise_id=exercise.id,
                is_correct=is_correct,
                user_answer=user_answer,
                was_retry_attempt=attempt > 1,
                confidence=metadata.confidence,
                generated_without_hints=metadata.generated_without_hints,
                response_time_ms=metadata.response_time_ms,
            )
        )

        if is_correct:
            self._streak += 1
            self._best_streak = max(self._best_streak, self._streak)
            self._retry_state = None
            self._outcome = AnsweredCorrect(user_answer=user_answer, attempt=attempt)

        elif attempt < MAX_RETRY_ATTEMPTS:
            hint = get_retry_hint(correct_answer, attempt, answer_is_arabic)
            self._retry_state = RetryState(
                attempt_count=attempt,
                hint=hint,
                last_incorrect_answer=user_answer,
                correct_answer=correct_answer,
            )
            if attempt == 1:
                self._streak = 0
            self._outcome = AnsweredIncorrectRetryable(user_answer=user_answer, attempt=attempt, hint=hint)

        else:
            hint = get_retry_hint(correct_answer, MAX_RETRY_ATTEMPTS, answer_is_arabic)
            self._retry_state = RetryState(
                attempt_count=MAX_RETRY_ATTEMPTS,
                hint=hint,
                last_incorrect_answer=user_answer,
                correct_answer=correct_answer,
            )
            self._outcome = AnsweredIncorrectExhausted(user_answer=user_answer, hint=hint)

        logger.debug(f"{exercise.id} attempt {attempt}: {self._outcome.kind.value}")
        return self._outcome

    def retry_exercise(self) -> None:
        """
        Signal a new attempt on the current exercise.

        A no-op unless retrying with attempts left; the exhausted outcome keeps
        a retry state for its hint but only advance_to_next() leaves it.
        """
        if not self.is_retrying or self.showing_feedback:
            logger.debug("Ignoring retry: not in retry mode")
            return
        self._retry_trigger += 1

    def advance_to_next(self) -> None:
        """Move to the next exercise and leave review mode."""
        if self.is_complete:
            logger.debug("Ignoring advance: session complete")
            return
        self._clear_feedback()
        self._current_index += 1
        self._view_index = self._current_index

    def restart(self) -> None:
        """Reset every piece of session state."""
        self._reset_state()

    def go_to_previous(self) -> None:
        """Step the review view back one exercise."""
        if self._view_index > 0:
            self._clear_feedback()
            self._view_index -= 1

    def go_to_next(self) -> None:
        """Step the review view forward, up to the active exercise."""
        if self._view_index < self._current_index:
            self._clear_feedback()
            self._view_index += 1

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    @property
    def results(self) -> tuple[ExerciseResult, ...]:
        return tuple(self._results)

    def get_result_for_exercise(self, index: int) -> FinalExerciseResult | None:
        """Last recorded result for the exercise at an index, if any."""
        if not 0 <= index < len(self.exercises):
            return None

        exercise = self.exercises[index]
        last = next((r for r in reversed(self._results) if r.exercise_id == exercise.id), None)
        if last is None:
            return None

        return FinalExerciseResult(
            exercise_id=exercise.id,
            is_correct=last.is_correct,
            user_answer=last.user_answer,
            correct_answer=exercise.expected_answer,
        )

    def get_incorrect_exercises(self) -> list[Exercise]:
        """Exercises whose most recent recorded outcome was incorrect."""
        outcomes: dict[str, bool] = {}
        for result in self._results:
            outcomes[result.exercise_id] = result.is_correct

        incorrect_ids = {ex_id for ex_id, was_correct in outcomes.items() if not was_correct}
        return [ex for ex in self.exercises if ex.id in incorrect_ids]

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self._results if r.is_correct)

    @property
    def incorrect_count(self) -> int:
        return sum(1 for r in self._results if not r.is_correct)

    @property
    def accuracy(self) -> int:
        """Percent of attempts that were correct (0 when nothing is recorded)."""
        if not self._results:
            return 0
        return round_half_up(self.correct_count / len(self._results) * 100)

    @property
    def current_streak(self) -> int:
        return self._streak

    @property
    def best_streak(self) -> int:
        return self._best_streak

    @property
    def generation_stats(self) -> GenerationStats:
        """Fraction of answers given without hints that were correct."""
        generated = [r for r in self._results if r.generated_without_hints is True]
        correct = sum(1 for r in generated if r.is_correct)
        return GenerationStats(
            total_generated=len(generated),
            generated_correctly=correct,
            generation_rate=correct / len(generated) if generated else 0.0,
        )

    @property
    def confidence_records(self) -> list[ConfidenceRecord]:
        return [
            ConfidenceRecord(rating=r.confidence, was_correct=r.is_correct)
            for r in self._results
            if r.confidence is not None
        ]

    @property
    def confidence_stats(self) -> ConfidenceStats:
        records = self.confidence_records
        return ConfidenceStats(
            total_rated=len(records),
            calibration_score=calibration_score(records, min_ratings=self.min_rated_answers),
        )

    def snapshot(self) -> SessionSnapshot:
        """Immutable view of the current state."""
        return SessionSnapshot(
            current_exercise=self.current_exercise,
            current_index=self._current_index,
            total_exercises=self.total_exercises,
            is_complete=self.is_complete,
            view_index=self._view_index,
            viewing_exercise=self.viewing_exercise,
            is_reviewing=self.is_reviewing,
            can_go_back=self.can_go_back,
            can_go_forward=self.can_go_forward,
            outcome=self._outcome,
            showing_feedback=self.showing_feedback,
            is_retrying=self.is_retrying,
            retry_attempt_count=self.retry_attempt_count,
            current_hint=self.current_hint,
            retry_trigger=self._retry_trigger,
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            accuracy=self.accuracy,
            current_streak=self._streak,
            best_streak=self._best_streak,
            generation_stats=self.generation_stats,
            confidence_stats=self.confidence_stats,
            results=self.results,
        )
