"""
Credit-propagation graph.

Components:
- encompassing: Graph types, construction, merging and JSON serialization
- analysis: Breadth-first traversal, reach and high-reach ranking
- cooccurrence: Item pair co-occurrence counts -> edges
"""

from mastery_engine.graph.analysis import (
    calculate_reach,
    find_high_reach_items,
    get_all_encompassed,
    get_encompassing_items,
)
from mastery_engine.graph.cooccurrence import analyze_co_occurrence, co_occurrence_to_edges
from mastery_engine.graph.encompassing import (
    BuildGraphOptions,
    EncompassingEdge,
    EncompassingGraph,
    GraphBuilder,
    WeightedTarget,
    build_exercise_encompassing,
    build_graph,
    create_empty_graph,
    deserialize_graph,
    get_exercise_encompasses,
    merge_graphs,
    serialize_graph,
)

__all__ = [
    "BuildGraphOptions",
    "EncompassingEdge",
    "EncompassingGraph",
    "GraphBuilder",
    "WeightedTarget",
    "build_exercise_encompassing",
    "build_graph",
    "create_empty_graph",
    "deserialize_graph",
    "get_exercise_encompasses",
    "merge_graphs",
    "serialize_graph",
    "calculate_reach",
    "find_high_reach_items",
    "get_all_encompassed",
    "get_encompassing_items",
    "analyze_co_occurrence",
    "co_occurrence_to_edges",
]
