"""
Unit tests for graph traversal, reach and co-occurrence.
"""

from mastery_engine.core.exercises import ExerciseRef
from mastery_engine.graph.analysis import (
    calculate_reach,
    find_high_reach_items,
    get_all_encompassed,
    get_encompassing_items,
)
from mastery_engine.graph.cooccurrence import analyze_co_occurrence, co_occurrence_to_edges, pair_key
from mastery_engine.graph.encompassing import GraphBuilder


def _graph(*edges):
    builder = GraphBuilder()
    for source, target, weight in edges:
        builder.add_edge(source, target, weight, min_weight=0)
    return builder.build()


class TestGetAllEncompassed:
    def test_transitive(self):
        graph = _graph(("a", "b", 0.9), ("b", "c", 0.8), ("c", "d", 0.7))
        assert get_all_encompassed("a", graph) == {"b", "c", "d"}

    def test_filters_each_edge(self):
        graph = _graph(("a", "b", 0.9), ("a", "x", 0.4), ("b", "c", 0.3))
        assert get_all_encompassed("a", graph) == {"b"}
        assert get_all_encompassed("a", graph, min_weight=0.3) == {"b", "x", "c"}

    def test_weight_not_discounted_across_hops(self):
        """Two 0.6 edges in a row still reach the far node at threshold 0.5."""
        graph = _graph(("a", "b", 0.6), ("b", "c", 0.6))
        assert "c" in get_all_encompassed("a", graph, min_weight=0.5)

    def test_start_excluded_without_cycle(self):
        graph = _graph(("a", "b", 1.0))
        assert "a" not in get_all_encompassed("a", graph)

    def test_start_included_through_cycle(self):
        graph = _graph(("a", "b", 1.0), ("b", "a", 1.0))
        assert get_all_encompassed("a", graph) == {"a", "b"}

    def test_unknown_item(self):
        assert get_all_encompassed("nope", _graph()) == set()

    def test_incoming_edges(self):
        graph = _graph(("l2", "v1", 1.0), ("l3", "v1", 0.5))
        assert [t.target for t in get_encompassing_items("v1", graph)] == ["l2", "l3"]


class TestReach:
    def test_reach_uses_half_threshold(self):
        graph = _graph(("a", "b", 0.5), ("a", "c", 0.49), ("b", "d", 1.0))
        assert calculate_reach("a", graph) == 2

    def test_high_reach_ranking(self):
        graph = _graph(("a", "b", 1.0), ("c", "a", 1.0), ("c", "d", 1.0))
        assert find_high_reach_items(["a", "b", "c"], graph) == ["c", "a", "b"]

    def test_ties_keep_input_order(self):
        graph = _graph(("x", "z", 1.0), ("y", "z", 1.0))
        assert find_high_reach_items(["y", "x", "z"], graph) == ["y", "x", "z"]
        assert find_high_reach_items(["x", "y", "z"], graph, top_n=2) == ["x", "y"]


class TestCoOccurrence:
    def test_pair_key_is_order_independent(self):
        assert pair_key("b", "a") == pair_key("a", "b") == "a::b"

    def test_counts_pairs(self):
        counts = analyze_co_occurrence([
            ExerciseRef("e1", ("a", "b", "c")),
            ExerciseRef("e2", ("b", "a")),
            ExerciseRef("e3", ("c",)),
        ])
        assert counts == {"a::b": 2, "a::c": 1, "b::c": 1}

    def test_edges_are_normalized_and_bidirectional(self):
        edges = co_occurrence_to_edges({"a::b": 5, "a::c": 20, "b::c": 0})

        weights = {(e.source, e.target): e.weight for e in edges}
        assert weights == {("a", "b"): 0.5, ("b", "a"): 0.5, ("a", "c"): 1.0, ("c", "a"): 1.0}

    def test_min_weight(self):
        assert co_occurrence_to_edges({"a::b": 1}, max_count=10, min_weight=0.2) == []
