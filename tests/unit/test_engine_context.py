"""
Unit tests for EngineContext.
"""

from datetime import UTC, datetime

from config import Settings
from mastery_engine.context import EngineContext
from mastery_engine.core.exercises import ExerciseRef, FillBlankExercise, Lesson
from mastery_engine.core.mastery import StrengthLedger
from mastery_engine.graph.encompassing import EncompassingEdge

NOW = datetime(2024, 3, 10, tzinfo=UTC)


def _context(**overrides) -> EngineContext:
    return EngineContext(settings=Settings(_env_file=None, **overrides))


class TestGraphLifecycle:
    def test_rebuild_uses_settings(self, sample_lessons):
        ctx = _context(graph_adjacent_lesson_weight=0.8)
        graph = ctx.rebuild_graph(sample_lessons)

        assert ctx.graph is graph
        assert graph.edge_weight("b1-l02", "b1-l01") == 0.8
        assert ctx.lessons == sample_lessons

    def test_manual_overrides(self, sample_lessons):
        ctx = _context()
        ctx.rebuild_graph(sample_lessons, manual_overrides=[EncompassingEdge("v-bayt", "v-hadha", 0.02)])
        assert ctx.graph.edge_weight("v-bayt", "v-hadha") == 0.02

    def test_cooccurrence_edges(self):
        lesson = Lesson(
            id="l1",
            book=1,
            lesson=1,
            exercises=tuple(ExerciseRef(f"e{i}", ("a", "b")) for i in range(5)),
        )
        ctx = _context()
        ctx.rebuild_graph([lesson], include_cooccurrence=True)

        assert ctx.graph.edge_weight("a", "b") == 0.5
        assert ctx.graph.edge_weight("b", "a") == 0.5

    def test_reach_and_high_reach(self, sample_lessons):
        ctx = _context()
        ctx.rebuild_graph(sample_lessons)

        assert ctx.reach("b1-l01") == 3
        assert ctx.high_reach_items(["v-bayt", "b1-l02"]) == ["b1-l02", "v-bayt"]
        assert len(ctx.high_reach_items(top_n=3)) == 3

    def test_reset(self, sample_lessons):
        ctx = _context()
        ctx.rebuild_graph(sample_lessons)
        ctx.ledger.record_attempt(["v-bayt"], True, now=NOW)

        ctx.reset()

        assert ctx.graph.edge_count == 0
        assert ctx.lessons == []
        assert len(ctx.ledger) == 0


class TestSessions:
    def test_commit_results(self, scenario_exercises):
        ctx = _context()
        session = ctx.start_session(scenario_exercises)

        session.record_answer(False, "x")
        session.retry_exercise()
        session.record_answer(True, "هَذَا")
        session.advance_to_next()
        session.record_answer(True, "pen")

        updated = ctx.commit_results(session, now=NOW)

        # v-hadha: -20 from 0 stays 0, then +10
        assert updated == {"v-hadha": 10, "v-pen": 10}
        assert ctx.ledger.get("v-hadha").times_incorrect == 1

    def test_commit_challenge(self):
        ledger = StrengthLedger()
        for _ in range(9):
            ledger.record_attempt(["a"], True)

        ctx = EngineContext(settings=Settings(_env_file=None), ledger=ledger)
        exercise = FillBlankExercise(id="c1", item_ids=("a",), answer="x")
        assert ctx.challenge_config(exercise).is_challenge

        session = ctx.start_session([exercise])
        session.record_answer(True, "x")
        ctx.commit_results(session, challenge_ids={"c1"})

        assert ledger.strength("a") == 100
        assert ledger.get("a").has_proven_mastery

    def test_session_calibration_minimum_from_settings(self):
        ctx = _context(calibration_min_session_ratings=5)
        assert ctx.start_session([]).min_rated_answers == 5
