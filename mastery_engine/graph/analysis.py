"""
Encompassing graph analysis: traversal and reach.

Reach is how many other items receive implicit credit when an item is
practiced. Items with higher reach are more valuable to practice.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable

from mastery_engine.graph.encompassing import EncompassingGraph, WeightedTarget

REACH_THRESHOLD = 0.5


def get_all_encompassed(
    item_id: str,
    graph: EncompassingGraph,
    min_weight: float = REACH_THRESHOLD,
) -> set[str]:
    """
    Get all ids reachable from an item through sufficiently heavy edges.

    Breadth-first over `encompasses`. Each edge is filtered on its own weight;
    weight is not discounted across hops, so two 0.6 edges in a row count the
    same as one.

    Args:
        item_id: Starting id
        graph: Encompassing graph
        min_weight: Minimum weight for an edge to be traversed

    Returns:
        Reachable ids. The start id is only included if a cycle leads back to it.
    """
    result: set[str] = set()
    visited: set[str] = set()
    queue = deque([item_id])

    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)

        for target, weight in graph.targets_of(current):
            if weight < min_weight:
                continue
            result.add(target)
            if target not in visited:
                queue.append(target)

    return result


def get_encompassing_items(item_id: str, graph: EncompassingGraph) -> list[WeightedTarget]:
    """Items that directly encompass an item (its incoming edges)."""
    return list(graph.sources_of(item_id))


def calculate_reach(item_id: str, graph: EncompassingGraph) -> int:
    """Number of ids encompassed directly or transitively (edges >= 0.5)."""
    return len(get_all_encompassed(item_id, graph, REACH_THRESHOLD))


def find_high_reach_items(
    item_ids: Iterable[str],
    graph: EncompassingGraph,
    top_n: int = 10,
) -> list[str]:
    """
    Rank items by reach, highest first.

    Ties keep their input order.
    """
    with_reach = [(item_id, calculate_reach(item_id, graph)) for item_id in item_ids]
    with_reach.sort(key=lambda pair: pair[1], reverse=True)
    return [item_id for item_id, _ in with_reach[:top_n]]
