"""
Core Mastery Module.

Bounded per-item strength scoring, time decay and lesson-level aggregation.

Design:
- Pure numeric functions (strength_change, challenge_strength_change, decay,
  lesson_strength) taking and returning primitives
- MasteryLevel: Enum for categorizing effective strength
- StrengthRecord: Per-item mastery state handed to/from an external store
- StrengthLedger: Caller-owned map of item id -> StrengthRecord

Scoring:
    Regular exercise:   correct +10, incorrect -20
    Challenge exercise: correct +15, incorrect -30
    Strength is always clamped to [0, 100].

Decay:
    No decay during the grace period (3 days, or 5 once mastery has been
    proven by passing a challenge), then -5 per additional day.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Iterable, Iterator

from loguru import logger

STRENGTH_MIN = 0
STRENGTH_MAX = 100

# Regular exercise scoring
STRENGTH_INCREASE = 10
STRENGTH_DECREASE = 20
DECAY_GRACE_DAYS = 3
DECAY_RATE_PER_DAY = 5

# Challenge exercise scoring
CHALLENGE_STRENGTH_INCREASE = 15
CHALLENGE_STRENGTH_DECREASE = 30
CHALLENGE_DECAY_GRACE_DAYS = 5
CHALLENGE_THRESHOLD = 80

# Lesson strength weights
LESSON_VOCAB_WEIGHT = 0.5
LESSON_GRAMMAR_WEIGHT = 0.3
LESSON_ACCURACY_WEIGHT = 0.2

FAMILIAR_THRESHOLD = 40
MASTERED_THRESHOLD = 80


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return math.floor(value + 0.5)


# ============================================================================
# Strength Formulas
# ============================================================================


def strength_change(current: float, is_correct: bool) -> float:
    """
    Calculate new strength after a regular exercise attempt.

    Correct: +10 (capped at 100)
    Incorrect: -20 (minimum 0)
    """
    if is_correct:
        return min(current + STRENGTH_INCREASE, STRENGTH_MAX)
    return max(current - STRENGTH_DECREASE, STRENGTH_MIN)


def challenge_strength_change(current: float, is_correct: bool) -> float:
    """
    Calculate new strength after a CHALLENGE exercise attempt.

    Correct: +15 (capped at 100)
    Incorrect: -30 (minimum 0)
    """
    if is_correct:
        return min(current + CHALLENGE_STRENGTH_INCREASE, STRENGTH_MAX)
    return max(current - CHALLENGE_STRENGTH_DECREASE, STRENGTH_MIN)


def should_trigger_challenge(strength: float) -> bool:
    """Check if a strength qualifies for challenge mode."""
    return strength >= CHALLENGE_THRESHOLD


def decay(
    strength: float,
    days_since_practice: float,
    has_proven_mastery: bool = False,
) -> float:
    """
    Apply time decay to a strength value.

    Args:
        strength: Stored strength (0-100)
        days_since_practice: Days since the item was last practiced
        has_proven_mastery: Item has passed at least one challenge

    Returns:
        Effective strength, never below 0
    """
    grace_days = CHALLENGE_DECAY_GRACE_DAYS if has_proven_mastery else DECAY_GRACE_DAYS

    if days_since_practice <= grace_days:
        return strength

    decay_amount = (days_since_practice - grace_days) * DECAY_RATE_PER_DAY
    return max(strength - decay_amount, STRENGTH_MIN)


@dataclass
class LessonStrengthInput:
    """Inputs for the lesson strength aggregate (all on a 0-100 scale)."""

    avg_vocab: float = 0.0
    avg_grammar: float = 0.0
    exercise_accuracy: float = 0.0


def lesson_strength(
    avg_vocab: float,
    avg_grammar: float,
    exercise_accuracy: float,
) -> int:
    """
    Calculate overall lesson strength as a weighted average.

    Weights: 50% vocabulary, 30% grammar, 20% exercise accuracy.
    """
    weighted = (
        avg_vocab * LESSON_VOCAB_WEIGHT
        + avg_grammar * LESSON_GRAMMAR_WEIGHT
        + exercise_accuracy * LESSON_ACCURACY_WEIGHT
    )
    return round_half_up(weighted)


def lesson_strength_from(data: LessonStrengthInput) -> int:
    """Calculate lesson strength from a LessonStrengthInput record."""
    return lesson_strength(data.avg_vocab, data.avg_grammar, data.exercise_accuracy)


# ============================================================================
# Time Helpers
# ============================================================================


def _as_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def calculate_days_since(last_practiced: datetime | None, now: datetime | None = None) -> int:
    """
    Calculate whole calendar days elapsed since a practice.

    Args:
        last_practiced: Timestamp of last practice (can be naive or aware)
        now: Current time (defaults to UTC now)

    Returns:
        Calendar days elapsed (0 for same day or missing timestamp)
    """
    if last_practiced is None:
        return 0

    now = _as_aware(now or datetime.now(UTC))
    last_practiced = _as_aware(last_practiced).astimezone(now.tzinfo)

    return max((now.date() - last_practiced.date()).days, 0)


# ============================================================================
# Mastery Levels
# ============================================================================


class MasteryLevel(str, Enum):
    """Mastery level categorization for a single item."""

    NEW = "new"  # never practiced or strength 0
    LEARNING = "learning"  # 1-39
    FAMILIAR = "familiar"  # 40-79
    MASTERED = "mastered"  # 80-100
    DECAYING = "decaying"  # past the grace period

    @classmethod
    def from_strength(cls, effective_strength: float, days_since_practice: int = 0) -> MasteryLevel:
        """
        Convert an effective strength to a level.

        Args:
            effective_strength: Strength after decay (0-100)
            days_since_practice: Days since last practice

        Returns:
            Corresponding MasteryLevel
        """
        if effective_strength <= 0:
            return cls.NEW
        if days_since_practice > DECAY_GRACE_DAYS:
            return cls.DECAYING
        if effective_strength >= MASTERED_THRESHOLD:
            return cls.MASTERED
        if effective_strength >= FAMILIAR_THRESHOLD:
            return cls.FAMILIAR
        return cls.LEARNING

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryLevel.NEW: "dim",
            MasteryLevel.LEARNING: "red",
            MasteryLevel.FAMILIAR: "yellow",
            MasteryLevel.MASTERED: "green",
            MasteryLevel.DECAYING: "magenta",
        }[self]


# ============================================================================
# Strength Records
# ============================================================================


@dataclass
class StrengthRecord:
    """
    Mastery state for one item.

    Created on the first attempt at an item and mutated on every later one.
    Persistence is the caller's job: use to_dict()/from_dict().
    """

    strength: float = 0.0
    last_practiced: datetime | None = None
    times_correct: int = 0
    times_incorrect: int = 0
    challenges_passed: int = 0
    last_challenge_at: datetime | None = None

    @property
    def has_proven_mastery(self) -> bool:
        """True once the item has passed at least one challenge."""
        return self.challenges_passed > 0

    def apply_attempt(self, is_correct: bool, challenge: bool = False, now: datetime | None = None) -> float:
        """
        Apply one exercise attempt to this record.

        Returns:
            The new stored strength
        """
        now = now or datetime.now(UTC)

        if challenge:
            self.strength = challenge_strength_change(self.strength, is_correct)
            if is_correct:
                self.challenges_passed += 1
                self.last_challenge_at = now
        else:
            self.strength = strength_change(self.strength, is_correct)

        if is_correct:
            self.times_correct += 1
        else:
            self.times_incorrect += 1

        self.last_practiced = now
        return self.strength

    def days_since_practice(self, now: datetime | None = None) -> int:
        """Calendar days since this item was last practiced."""
        return calculate_days_since(self.last_practiced, now)

    def effective_strength(self, now: datetime | None = None) -> float:
        """Stored strength with decay applied."""
        return decay(self.strength, self.days_since_practice(now), self.has_proven_mastery)

    def level(self, now: datetime | None = None) -> MasteryLevel:
        """Mastery level from effective strength."""
        return MasteryLevel.from_strength(self.effective_strength(now), self.days_since_practice(now))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        for key in ("last_practiced", "last_challenge_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> StrengthRecord:
        """Create from dictionary."""
        values = dict(data)
        for key in ("last_practiced", "last_challenge_at"):
            if values.get(key):
                values[key] = datetime.fromisoformat(values[key])
        return cls(**values)


@dataclass
class StrengthLedger:
    """
    Caller-owned collection of strength records keyed by item id.

    The ledger never persists itself; the caller reads records back from its
    store before a session (from_dict) and writes them after (to_dict).
    """

    records: dict[str, StrengthRecord] = field(default_factory=dict)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self.records

    def __iter__(self) -> Iterator[str]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, item_id: str) -> StrengthRecord | None:
        """Get the record for an item, if one exists."""
        return self.records.get(item_id)

    def record_attempt(
        self,
        item_ids: Iterable[str],
        is_correct: bool,
        challenge: bool = False,
        now: datetime | None = None,
    ) -> dict[str, float]:
        """
        Apply an exercise outcome to every item the exercise references.

        Args:
            item_ids: Items exercised by the attempt
            is_correct: Whether the attempt was correct
            challenge: Use challenge scoring (+15/-30)
            now: Attempt timestamp (defaults to UTC now)

        Returns:
            Map of item id -> new stored strength
        """
        now = now or datetime.now(UTC)
        updated: dict[str, float] = {}

        for item_id in item_ids:
            record = self.records.setdefault(item_id, StrengthRecord(last_practiced=now))
            updated[item_id] = record.apply_attempt(is_correct, challenge=challenge, now=now)

        logger.debug(
            f"Recorded {'challenge ' if challenge else ''}attempt "
            f"({'correct' if is_correct else 'incorrect'}) for {len(updated)} items"
        )
        return updated

    def strength(self, item_id: str) -> float:
        """Stored strength for an item (0 when unseen)."""
        record = self.records.get(item_id)
        return record.strength if record else 0.0

    def effective_strength(self, item_id: str, now: datetime | None = None) -> float:
        """Decayed strength for an item (0 when unseen)."""
        record = self.records.get(item_id)
        return record.effective_strength(now) if record else 0.0

    def level(self, item_id: str, now: datetime | None = None) -> MasteryLevel:
        """Mastery level for an item."""
        record = self.records.get(item_id)
        return record.level(now) if record else MasteryLevel.NEW

    def average_strength(self, item_ids: Iterable[str], now: datetime | None = None) -> float:
        """Mean effective strength over a set of items (0 when empty)."""
        ids = list(item_ids)
        if not ids:
            return 0.0
        return sum(self.effective_strength(item_id, now) for item_id in ids) / len(ids)

    def reset(self) -> None:
        """Drop every record."""
        self.records.clear()

    def to_dict(self) -> dict[str, dict]:
        """Convert to a plain mapping for an external key-value store."""
        return {item_id: record.to_dict() for item_id, record in self.records.items()}

    @classmethod
    def from_dict(cls, data: dict[str, dict]) -> StrengthLedger:
        """Create from a plain mapping."""
        return cls(records={item_id: StrengthRecord.from_dict(rec) for item_id, rec in data.items()})
