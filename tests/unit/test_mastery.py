"""
Unit tests for the strength model.

Covers the pure scoring/decay formulas, mastery levels and the
caller-owned StrengthLedger.
"""

from datetime import UTC, datetime, timedelta

import pytest

from mastery_engine.core.mastery import (
    LessonStrengthInput,
    MasteryLevel,
    StrengthLedger,
    StrengthRecord,
    calculate_days_since,
    challenge_strength_change,
    decay,
    lesson_strength,
    lesson_strength_from,
    round_half_up,
    should_trigger_challenge,
    strength_change,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)


class TestStrengthChange:
    def test_correct_adds_ten(self):
        assert strength_change(50, True) == 60

    def test_incorrect_subtracts_twenty(self):
        assert strength_change(50, False) == 30

    def test_clamped_to_bounds(self):
        assert strength_change(95, True) == 100
        assert strength_change(10, False) == 0

    def test_challenge_magnitudes(self):
        assert challenge_strength_change(80, True) == 95
        assert challenge_strength_change(80, False) == 50

    def test_challenge_clamped(self):
        assert challenge_strength_change(90, True) == 100
        assert challenge_strength_change(20, False) == 0

    @pytest.mark.parametrize("current", [0, 15, 42.5, 80, 100])
    def test_result_stays_in_range(self, current):
        for is_correct in (True, False):
            assert 0 <= strength_change(current, is_correct) <= 100
            assert 0 <= challenge_strength_change(current, is_correct) <= 100


class TestChallengeTrigger:
    def test_threshold_is_inclusive(self):
        assert should_trigger_challenge(80) is True
        assert should_trigger_challenge(79.9) is False
        assert should_trigger_challenge(100) is True


class TestDecay:
    def test_no_decay_within_grace(self):
        assert decay(70, 0) == 70
        assert decay(70, 3) == 70

    def test_decay_after_grace(self):
        # 2 days past the 3-day grace
        assert decay(70, 5) == 60

    def test_proven_mastery_extends_grace(self):
        assert decay(90, 5, has_proven_mastery=True) == 90
        assert decay(90, 7, has_proven_mastery=True) == 80

    def test_floored_at_zero(self):
        assert decay(20, 100) == 0

    def test_never_increases(self):
        for days in range(0, 30):
            assert decay(55, days) <= 55


class TestLessonStrength:
    def test_weighted_average(self):
        assert lesson_strength(80, 60, 50) == 68

    def test_rounds_half_up(self):
        # 0.5*1 + 0.3*0 + 0.2*0 = 0.5
        assert lesson_strength(1, 0, 0) == 1

    def test_from_record(self):
        assert lesson_strength_from(LessonStrengthInput(100, 100, 100)) == 100

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


class TestDaysSince:
    def test_missing_timestamp(self):
        assert calculate_days_since(None, NOW) == 0

    def test_calendar_days(self):
        last = NOW - timedelta(days=4, hours=1)
        assert calculate_days_since(last, NOW) == 4

    def test_naive_timestamps_treated_as_utc(self):
        last = datetime(2024, 3, 8, 23, 0)
        assert calculate_days_since(last, NOW) == 2


class TestMasteryLevel:
    def test_levels_by_strength(self):
        assert MasteryLevel.from_strength(0) == MasteryLevel.NEW
        assert MasteryLevel.from_strength(25) == MasteryLevel.LEARNING
        assert MasteryLevel.from_strength(40) == MasteryLevel.FAMILIAR
        assert MasteryLevel.from_strength(80) == MasteryLevel.MASTERED

    def test_decaying_after_grace(self):
        assert MasteryLevel.from_strength(60, days_since_practice=4) == MasteryLevel.DECAYING

    def test_display(self):
        assert MasteryLevel.MASTERED.display_name == "Mastered"
        assert MasteryLevel.MASTERED.color == "green"


class TestStrengthRecord:
    def test_apply_regular_attempt(self):
        record = StrengthRecord(strength=50)
        assert record.apply_attempt(True, now=NOW) == 60
        assert record.times_correct == 1
        assert record.last_practiced == NOW

    def test_passed_challenge_proves_mastery(self):
        record = StrengthRecord(strength=85)
        record.apply_attempt(True, challenge=True, now=NOW)

        assert record.strength == 100
        assert record.has_proven_mastery
        assert record.last_challenge_at == NOW

    def test_failed_challenge_does_not_prove_mastery(self):
        record = StrengthRecord(strength=85)
        record.apply_attempt(False, challenge=True, now=NOW)

        assert record.strength == 55
        assert not record.has_proven_mastery
        assert record.times_incorrect == 1

    def test_effective_strength_uses_decay(self):
        record = StrengthRecord(strength=70, last_practiced=NOW - timedelta(days=5))
        assert record.effective_strength(NOW) == 60

    def test_dict_round_trip(self):
        record = StrengthRecord(strength=40, last_practiced=NOW, times_correct=4)
        restored = StrengthRecord.from_dict(record.to_dict())
        assert restored == record


class TestStrengthLedger:
    def test_first_attempt_creates_records(self):
        ledger = StrengthLedger()
        updated = ledger.record_attempt(["a", "b"], True, now=NOW)

        assert updated == {"a": 10, "b": 10}
        assert "a" in ledger and len(ledger) == 2

    def test_unseen_item_defaults(self):
        ledger = StrengthLedger()
        assert ledger.strength("missing") == 0
        assert ledger.effective_strength("missing") == 0
        assert ledger.level("missing") == MasteryLevel.NEW
        assert ledger.get("missing") is None

    def test_average_strength(self):
        ledger = StrengthLedger()
        ledger.record_attempt(["a"], True, now=NOW)
        ledger.record_attempt(["a"], True, now=NOW)
        assert ledger.average_strength(["a", "b"], NOW) == 10
        assert ledger.average_strength([], NOW) == 0

    def test_round_trip_and_reset(self):
        ledger = StrengthLedger()
        ledger.record_attempt(["a"], True, challenge=True, now=NOW)

        restored = StrengthLedger.from_dict(ledger.to_dict())
        assert restored.get("a") == ledger.get("a")

        ledger.reset()
        assert len(ledger) == 0
