"""
Confidence calibration analysis.

Measures how well a learner's self-rated confidence predicts correctness.
A well-calibrated learner is right about 33% of the time when "unsure" (1),
66% when "somewhat sure" (2) and 90% when "very sure" (3).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable

EXPECTED_ACCURACY: dict[int, float] = {
    1: 0.33,  # Unsure
    2: 0.66,  # Somewhat sure
    3: 0.90,  # Very sure
}

CONFIDENCE_LABELS: dict[int, str] = {
    1: "Unsure",
    2: "Somewhat sure",
    3: "Very sure",
}

MIN_RATINGS_FOR_CALIBRATION = 10
TENDENCY_THRESHOLD = 0.15
TREND_WINDOW = 20
TREND_THRESHOLD = 0.1


class CalibrationTendency(str, Enum):
    WELL_CALIBRATED = "well-calibrated"
    OVERCONFIDENT = "overconfident"
    UNDERCONFIDENT = "underconfident"
    INSUFFICIENT_DATA = "insufficient-data"


@dataclass(frozen=True)
class ConfidenceRecord:
    """One rated answer."""
    rating: int  # 1-3
    was_correct: bool
    timestamp: datetime | None = None


@dataclass
class LevelStats:
    """Calibration statistics for a single confidence level."""
    level: int
    count: int
    correct_count: int
    expected_accuracy: float
    actual_accuracy: float

    @property
    def difference(self) -> float:
        """Positive = more accurate than expected (underconfident)."""
        return self.actual_accuracy - self.expected_accuracy


@dataclass
class CalibrationStats:
    """Complete calibration statistics."""
    total_ratings: int
    calibration_score: float  # 0-1, 1 = perfectly calibrated
    tendency: CalibrationTendency
    by_level: list[LevelStats] = field(default_factory=list)
    feedback_message: str = ""


def get_confidence_level_label(level: int) -> str:
    """Display label for a confidence level."""
    return CONFIDENCE_LABELS.get(level, "Unknown")


def _level_stats(records: Iterable[ConfidenceRecord]) -> list[LevelStats]:
    totals = {level: [0, 0] for level in EXPECTED_ACCURACY}  # level -> [correct, total]

    for record in records:
        if record.rating not in totals:
            continue
        totals[record.rating][1] += 1
        if record.was_correct:
            totals[record.rating][0] += 1

    return [
        LevelStats(
            level=level,
            count=total,
            correct_count=correct,
            expected_accuracy=EXPECTED_ACCURACY[level],
            actual_accuracy=correct / total if total > 0 else 0.0,
        )
        for level, (correct, total) in totals.items()
    ]


def _weighted_mean(by_level: list[LevelStats], value) -> float | None:
    total_weight = sum(s.count for s in by_level)
    if total_weight == 0:
        return None
    return sum(value(s) * s.count for s in by_level if s.count > 0) / total_weight


def calibration_score(records: Iterable[ConfidenceRecord], min_ratings: int = 3) -> float:
    """
    Calibration score from rated answers.

    1 - (count-weighted mean absolute error between each level's actual and
    expected accuracy), floored at 0. Returns 0 when fewer than min_ratings
    records are available.
    """
    records = [r for r in records if r.rating in EXPECTED_ACCURACY]
    if len(records) < min_ratings:
        return 0.0

    mean_error = _weighted_mean(_level_stats(records), lambda s: abs(s.difference)) or 0.0
    return max(0.0, min(1.0, 1 - mean_error))


def _determine_tendency(by_level: list[LevelStats]) -> CalibrationTendency:
    avg_difference = _weighted_mean(by_level, lambda s: s.difference)
    if avg_difference is None:
        return CalibrationTendency.INSUFFICIENT_DATA

    if avg_difference < -TENDENCY_THRESHOLD:
        return CalibrationTendency.OVERCONFIDENT
    if avg_difference > TENDENCY_THRESHOLD:
        return CalibrationTendency.UNDERCONFIDENT
    return CalibrationTendency.WELL_CALIBRATED


def _feedback_message(tendency: CalibrationTendency, by_level: list[LevelStats], score: float) -> str:
    if tendency == CalibrationTendency.OVERCONFIDENT:
        worst = sorted(
            (s for s in by_level if s.count >= 3 and s.difference < 0),
            key=lambda s: s.difference,
        )
        if worst and worst[0].level == 3:
            return "When you feel 'very sure', pause and double-check. You might be overlooking something."
        return "Your confidence tends to exceed your accuracy. Take a moment to verify before answering."

    if tendency == CalibrationTendency.UNDERCONFIDENT:
        worst = sorted(
            (s for s in by_level if s.count >= 3 and s.difference > 0),
            key=lambda s: s.difference,
            reverse=True,
        )
        if worst and worst[0].level == 1:
            return "You know more than you think! Trust your instincts more when answering."
        return "You're more accurate than you believe. Have more confidence in your knowledge!"

    if tendency == CalibrationTendency.WELL_CALIBRATED:
        if score >= 0.85:
            return "Excellent metacognition! Your confidence accurately predicts your performance."
        return "Good calibration. Your confidence levels reasonably match your actual accuracy."

    return "Keep practicing with confidence ratings to unlock your calibration insights."


def calculate_calibration_stats(records: list[ConfidenceRecord]) -> CalibrationStats:
    """
    Full calibration analysis over a learner's rating history.

    Requires MIN_RATINGS_FOR_CALIBRATION ratings; otherwise reports
    insufficient data with a score of 0.
    """
    total = len(records)

    if total < MIN_RATINGS_FOR_CALIBRATION:
        return CalibrationStats(
            total_ratings=total,
            calibration_score=0.0,
            tendency=CalibrationTendency.INSUFFICIENT_DATA,
            feedback_message=(
                f"Need {MIN_RATINGS_FOR_CALIBRATION - total} more ratings for calibration analysis."
            ),
        )

    by_level = _level_stats(records)
    score = calibration_score(records, min_ratings=MIN_RATINGS_FOR_CALIBRATION)
    tendency = _determine_tendency(by_level)

    return CalibrationStats(
        total_ratings=total,
        calibration_score=score,
        tendency=tendency,
        by_level=by_level,
        feedback_message=_feedback_message(tendency, by_level, score),
    )


def get_calibration_trend(records: list[ConfidenceRecord]) -> str:
    """
    Compare the latest TREND_WINDOW ratings with the previous window.

    Args:
        records: Rating history, most recent first

    Returns:
        "improving", "declining", "stable" or "insufficient-data"
    """
    if len(records) < TREND_WINDOW * 2:
        return CalibrationTendency.INSUFFICIENT_DATA.value

    recent = calculate_calibration_stats(records[:TREND_WINDOW])
    previous = calculate_calibration_stats(records[TREND_WINDOW:TREND_WINDOW * 2])

    if CalibrationTendency.INSUFFICIENT_DATA in (recent.tendency, previous.tendency):
        return CalibrationTendency.INSUFFICIENT_DATA.value

    improvement = recent.calibration_score - previous.calibration_score
    if improvement > TREND_THRESHOLD:
        return "improving"
    if improvement < -TREND_THRESHOLD:
        return "declining"
    return "stable"
