"""
Engine context: explicit owner of loaded content and learner progress.

Consumers receive an EngineContext instead of importing module-level caches.
The context holds the current encompassing graph, the loaded lessons and the
caller-owned strength ledger; reset() returns it to its initial state.

Usage:
    ctx = EngineContext()
    ctx.rebuild_graph(lessons)
    session = ctx.start_session(exercises)
    ...
    ctx.commit_results(session)
    store.save(ctx.ledger.to_dict())
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import Iterable, Sequence

from loguru import logger

from config import Settings, get_settings
from mastery_engine.core.challenge import ChallengeConfig, get_challenge_config
from mastery_engine.core.exercises import Exercise, Lesson
from mastery_engine.core.mastery import StrengthLedger
from mastery_engine.graph.analysis import calculate_reach, find_high_reach_items
from mastery_engine.graph.cooccurrence import analyze_co_occurrence, co_occurrence_to_edges
from mastery_engine.graph.encompassing import (
    BuildGraphOptions,
    EncompassingEdge,
    EncompassingGraph,
    GraphBuilder,
    build_graph,
    create_empty_graph,
    merge_graphs,
)
from mastery_engine.practice.session import PracticeSession


class EngineContext:
    """Service object for graph, progress and session lifecycle."""

    def __init__(
        self,
        settings: Settings | None = None,
        ledger: StrengthLedger | None = None,
        graph: EncompassingGraph | None = None,
    ):
        self.settings = settings or get_settings()
        self.ledger = ledger if ledger is not None else StrengthLedger()
        self.graph = graph or create_empty_graph()
        self.lessons: list[Lesson] = []

    def graph_options(self, manual_overrides: Iterable[EncompassingEdge] = ()) -> BuildGraphOptions:
        """Build options from settings."""
        return BuildGraphOptions(
            **self.settings.get_graph_options(),
            manual_overrides=tuple(manual_overrides),
        )

    def rebuild_graph(
        self,
        lessons: Iterable[Lesson],
        manual_overrides: Iterable[EncompassingEdge] = (),
        include_cooccurrence: bool = False,
    ) -> EncompassingGraph:
        """
        Replace the loaded lessons and rebuild the encompassing graph.

        Args:
            lessons: Lessons to build from
            manual_overrides: Edges applied last with threshold 0
            include_cooccurrence: Merge in edges from exercise co-occurrence

        Returns:
            The new graph (also stored on the context)
        """
        self.lessons = list(lessons)
        graph = build_graph(self.lessons, self.graph_options(manual_overrides))

        if include_cooccurrence:
            counts = analyze_co_occurrence(ex for lesson in self.lessons for ex in lesson.exercises)
            builder = GraphBuilder()
            builder.add_edges(
                co_occurrence_to_edges(
                    counts,
                    max_count=self.settings.cooccurrence_max_count,
                    min_weight=self.settings.cooccurrence_min_weight,
                ),
                min_weight=0,
            )
            graph = merge_graphs(graph, builder.build())
            logger.info(f"Merged co-occurrence edges from {len(counts)} item pairs")

        self.graph = graph
        return graph

    def start_session(self, exercises: Sequence[Exercise]) -> PracticeSession:
        """Create a practice session over an ordered exercise list."""
        logger.debug(f"Starting practice session with {len(exercises)} exercises")
        return PracticeSession(
            exercises,
            min_rated_answers=self.settings.calibration_min_session_ratings,
        )

    def challenge_config(self, exercise: Exercise, rng: random.Random | None = None) -> ChallengeConfig:
        """Challenge settings for an exercise from current effective strengths."""
        return get_challenge_config(exercise, self.ledger.effective_strength, rng=rng)

    def commit_results(
        self,
        session: PracticeSession,
        challenge_ids: Iterable[str] = (),
        now: datetime | None = None,
    ) -> dict[str, float]:
        """
        Apply every recorded attempt of a session to the strength ledger.

        Call once per session; each attempt (including retries) is applied.

        Args:
            session: Finished or in-progress session
            challenge_ids: Exercise ids presented as challenges
            now: Timestamp for the updates

        Returns:
            Map of item id -> final stored strength
        """
        challenge_ids = set(challenge_ids)
        exercises = {ex.id: ex for ex in session.exercises}
        updated: dict[str, float] = {}

        for result in session.results:
            exercise = exercises.get(result.exercise_id)
            if exercise is None:
                continue
            updated.update(
                self.ledger.record_attempt(
                    exercise.item_ids,
                    result.is_correct,
                    challenge=exercise.id in challenge_ids,
                    now=now,
                )
            )

        logger.info(f"Committed {len(session.results)} attempts covering {len(updated)} items")
        return updated

    def reach(self, item_id: str) -> int:
        """Reach of an item in the current graph."""
        return calculate_reach(item_id, self.graph)

    def high_reach_items(self, item_ids: Iterable[str] | None = None, top_n: int = 10) -> list[str]:
        """Highest-reach ids (defaults to every item of the loaded lessons)."""
        if item_ids is None:
            item_ids = list(dict.fromkeys(i for lesson in self.lessons for i in lesson.item_ids))
        return find_high_reach_items(item_ids, self.graph, top_n)

    def reset(self) -> None:
        """Drop loaded lessons, the graph and all strength records."""
        self.lessons = []
        self.graph = create_empty_graph()
        self.ledger.reset()
        logger.debug("Engine context reset")
