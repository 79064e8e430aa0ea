"""
Co-occurrence analysis.

Items that frequently appear together in the same exercise likely have a
conceptual relationship; co-occurrence counts are turned into weak
bidirectional encompassing edges.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from mastery_engine.core.exercises import Exercise, ExerciseRef
from mastery_engine.graph.encompassing import EncompassingEdge

PAIR_SEPARATOR = "::"


def pair_key(a: str, b: str) -> str:
    """Canonical key for an unordered pair."""
    first, second = sorted((a, b))
    return f"{first}{PAIR_SEPARATOR}{second}"


def analyze_co_occurrence(exercises: Iterable[Exercise | ExerciseRef]) -> Counter[str]:
    """
    Count how often each unordered item pair appears in the same exercise.

    Returns:
        Counter keyed by pair_key(a, b)
    """
    counts: Counter[str] = Counter()

    for exercise in exercises:
        items = exercise.item_ids
        for i in range(len(items)):
            for j in range(i + 1, len(items)):
                counts[pair_key(items[i], items[j])] += 1

    return counts


def co_occurrence_to_edges(
    co_occurrence: dict[str, int],
    max_count: int = 10,
    min_weight: float = 0.1,
) -> list[EncompassingEdge]:
    """
    Convert co-occurrence counts to bidirectional edges.

    Args:
        co_occurrence: Pair key -> count
        max_count: Count that maps to weight 1.0
        min_weight: Minimum normalized weight to emit

    Returns:
        Two edges (one per direction) for every pair at or above min_weight
    """
    edges: list[EncompassingEdge] = []

    for key, count in co_occurrence.items():
        weight = min(1.0, count / max_count)
        if weight < min_weight:
            continue

        first, second = key.split(PAIR_SEPARATOR, 1)
        edges.append(EncompassingEdge(first, second, weight))
        edges.append(EncompassingEdge(second, first, weight))

    return edges
