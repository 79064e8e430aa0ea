"""
Encompassing Graph construction and serialization.

The encompassing graph defines which lessons/items implicitly practice other
items, so that credit for practicing one can flow to the ones it contains.

Edges are derived from:
1. Lesson -> its items (weight 1.0)
2. Lesson -> earlier lessons in the same book (adjacent_lesson_weight / distance)
3. Lesson -> every lesson of every earlier book (flat cross_book_weight)
4. Item <-> item taught in the same lesson (same_lesson_item_weight, both ways)
5. Manual overrides (applied last, bypass the min_weight filter)

Invariants:
- No self-loops
- One edge per ordered pair; the maximum weight ever seen is kept
- `encompasses` and `encompassed_by` always describe the same edge set
- A built graph is immutable
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mastery_engine.core.exercises import Exercise, ExerciseRef, Lesson
from mastery_engine.errors import GraphParseError

DEFAULT_MIN_WEIGHT = 0.05
LESSON_ITEM_WEIGHT = 1.0


# =============================================================================
# DATA MODELS
# =============================================================================


class WeightedTarget(NamedTuple):
    """One adjacency entry: the node on the other end and the edge weight."""
    target: str
    weight: float


@dataclass(frozen=True)
class EncompassingEdge:
    """Directed edge: practicing `source` implicitly practices `target`."""
    source: str
    target: str
    weight: float


@dataclass(frozen=True)
class EncompassingGraph:
    """
    Immutable adjacency-map graph.

    encompasses[id]    -> outgoing (target, weight) entries
    encompassed_by[id] -> incoming (source, weight) entries

    Iteration follows insertion order; edges() returns a sorted view.
    """

    encompasses: Mapping[str, tuple[WeightedTarget, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    encompassed_by: Mapping[str, tuple[WeightedTarget, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def targets_of(self, node_id: str) -> tuple[WeightedTarget, ...]:
        """Outgoing edges of a node (empty when unknown)."""
        return self.encompasses.get(node_id, ())

    def sources_of(self, node_id: str) -> tuple[WeightedTarget, ...]:
        """Incoming edges of a node (empty when unknown)."""
        return self.encompassed_by.get(node_id, ())

    def edge_weight(self, source: str, target: str) -> float | None:
        """Weight of source -> target, or None if there is no such edge."""
        for entry in self.targets_of(source):
            if entry.target == target:
                return entry.weight
        return None

    def edges(self) -> list[EncompassingEdge]:
        """All edges sorted by (source, target)."""
        return sorted(
            (
                EncompassingEdge(source, entry.target, entry.weight)
                for source, entries in self.encompasses.items()
                for entry in entries
            ),
            key=lambda e: (e.source, e.target),
        )

    @property
    def edge_count(self) -> int:
        return sum(len(entries) for entries in self.encompasses.values())

    @property
    def node_ids(self) -> set[str]:
        return set(self.encompasses) | set(self.encompassed_by)

    def to_dict(self) -> dict[str, dict[str, list[dict[str, float | str]]]]:
        """Plain nested record (JSON-compatible)."""
        return {
            "encompasses": _view_to_dict(self.encompasses),
            "encompassedBy": _view_to_dict(self.encompassed_by),
        }


def _view_to_dict(view: Mapping[str, tuple[WeightedTarget, ...]]) -> dict[str, list[dict]]:
    return {
        node_id: [{"target": e.target, "weight": e.weight} for e in entries]
        for node_id, entries in view.items()
    }


class BuildGraphOptions(BaseModel):
    """Options for building the encompassing graph."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    include_lesson_encompassing: bool = Field(
        default=True,
        description="Add lesson -> earlier lesson edges (same book and cross book)",
    )
    adjacent_lesson_weight: float = Field(
        default=0.5,
        ge=0.0,
        description="Weight for the immediately preceding lesson; divided by distance",
    )
    min_weight: float = Field(
        default=DEFAULT_MIN_WEIGHT,
        ge=0.0,
        description="Automatically derived edges below this weight are dropped",
    )
    same_lesson_item_weight: float = Field(
        default=0.3,
        ge=0.0,
        description="Weak mutual credit between items taught together",
    )
    cross_book_weight: float = Field(
        default=0.2,
        ge=0.0,
        description="Flat weight from a later book's lessons to earlier books' lessons",
    )
    manual_overrides: tuple[EncompassingEdge, ...] = Field(
        default=(),
        description="Edges applied last with threshold 0",
    )


# =============================================================================
# BUILDER
# =============================================================================


class GraphBuilder:
    """
    Mutable accumulator for encompassing edges.

    Usage:
        builder = GraphBuilder()
        builder.add_edge("b1-l02", "b1-l01", 0.5)
        graph = builder.build()
    """

    def __init__(self):
        self._encompasses: dict[str, dict[str, float]] = {}
        self._encompassed_by: dict[str, dict[str, float]] = {}

    def add_edge(
        self,
        source: str,
        target: str,
        weight: float,
        min_weight: float = DEFAULT_MIN_WEIGHT,
    ) -> bool:
        """
        Add an edge, keeping the higher weight if the pair already exists.

        Args:
            source: Encompassing id
            target: Encompassed id
            weight: Edge weight (0-1)
            min_weight: Reject weights below this value

        Returns:
            True if the edge was inserted or merged, False if rejected
        """
        if weight < min_weight:
            return False
        if source == target:
            return False

        forward = self._encompasses.setdefault(source, {})
        reverse = self._encompassed_by.setdefault(target, {})

        merged = max(forward.get(target, weight), weight)
        forward[target] = merged
        reverse[source] = merged
        return True

    def add_edges(self, edges: Iterable[EncompassingEdge], min_weight: float = DEFAULT_MIN_WEIGHT) -> int:
        """Add several edges; returns how many were accepted."""
        return sum(1 for e in edges if self.add_edge(e.source, e.target, e.weight, min_weight))

    def build(self) -> EncompassingGraph:
        """Freeze the accumulated edges into an EncompassingGraph."""
        return EncompassingGraph(
            encompasses=_freeze(self._encompasses),
            encompassed_by=_freeze(self._encompassed_by),
        )


def _freeze(view: dict[str, dict[str, float]]) -> Mapping[str, tuple[WeightedTarget, ...]]:
    return MappingProxyType({
        node_id: tuple(WeightedTarget(target, weight) for target, weight in targets.items())
        for node_id, targets in view.items()
    })


# =============================================================================
# GRAPH CONSTRUCTION
# =============================================================================


def build_graph(
    lessons: Iterable[Lesson],
    options: BuildGraphOptions | None = None,
) -> EncompassingGraph:
    """
    Build the encompassing graph from lesson data.

    Args:
        lessons: Lessons with items and exercises
        options: Build options (defaults to BuildGraphOptions())

    Returns:
        A fresh, immutable EncompassingGraph
    """
    opts = options or BuildGraphOptions()
    lessons = list(lessons)
    builder = GraphBuilder()

    lessons_by_book: dict[int, list[Lesson]] = defaultdict(list)
    for lesson in lessons:
        lessons_by_book[lesson.book].append(lesson)
    for book_lessons in lessons_by_book.values():
        book_lessons.sort(key=lambda l: l.lesson)

    if opts.include_lesson_encompassing:
        for book_num, book_lessons in lessons_by_book.items():
            # Linear decay with distance inside a book
            for i, current in enumerate(book_lessons):
                for j in range(i):
                    weight = opts.adjacent_lesson_weight / (i - j)
                    builder.add_edge(current.id, book_lessons[j].id, weight, opts.min_weight)

            # Flat weight to every lesson of every earlier book
            for prev_book in range(1, book_num):
                for current in book_lessons:
                    for prev in lessons_by_book.get(prev_book, ()):
                        builder.add_edge(current.id, prev.id, opts.cross_book_weight, opts.min_weight)

    for lesson in lessons:
        items = lesson.item_ids

        for item_id in items:
            builder.add_edge(lesson.id, item_id, LESSON_ITEM_WEIGHT, opts.min_weight)

        for i in range(len(items)):
            for j in range(i + 1, len(items)):
                builder.add_edge(items[i], items[j], opts.same_lesson_item_weight, opts.min_weight)
                builder.add_edge(items[j], items[i], opts.same_lesson_item_weight, opts.min_weight)

    builder.add_edges(opts.manual_overrides, min_weight=0)

    graph = builder.build()
    logger.info(
        f"Built encompassing graph from {len(lessons)} lessons: "
        f"{len(graph.node_ids)} nodes, {graph.edge_count} edges"
    )
    return graph


def create_empty_graph() -> EncompassingGraph:
    """Create an empty encompassing graph."""
    return GraphBuilder().build()


def merge_graphs(*graphs: EncompassingGraph) -> EncompassingGraph:
    """
    Merge several graphs into one.

    Every edge is kept (threshold 0); conflicting pairs keep the higher weight.
    """
    builder = GraphBuilder()
    for graph in graphs:
        for source, entries in graph.encompasses.items():
            for entry in entries:
                builder.add_edge(source, entry.target, entry.weight, min_weight=0)
    return builder.build()


# =============================================================================
# EXERCISE-LEVEL ENCOMPASSING
# =============================================================================


def get_exercise_encompasses(exercise: Exercise | ExerciseRef) -> list[WeightedTarget]:
    """Items an exercise practices; each at full weight."""
    return [WeightedTarget(item_id, LESSON_ITEM_WEIGHT) for item_id in exercise.item_ids]


def build_exercise_encompassing(
    exercises: Iterable[Exercise | ExerciseRef],
) -> dict[str, list[WeightedTarget]]:
    """Map of exercise id -> encompassed items."""
    return {exercise.id: get_exercise_encompasses(exercise) for exercise in exercises}


# =============================================================================
# SERIALIZATION
# =============================================================================


class _TargetModel(BaseModel):
    target: str
    weight: float = Field(ge=0.0)


class _GraphDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    encompasses: dict[str, list[_TargetModel]]
    encompassed_by: dict[str, list[_TargetModel]] = Field(alias="encompassedBy")


def serialize_graph(graph: EncompassingGraph) -> str:
    """Serialize the graph to indented JSON text."""
    return _GraphDocument.model_validate(graph.to_dict()).model_dump_json(by_alias=True, indent=2)


def _edge_map(view: dict[str, list[_TargetModel]], reverse: bool = False) -> dict[tuple[str, str], float]:
    """Flatten one adjacency view to {(source, target): weight}."""
    edges: dict[tuple[str, str], float] = {}
    for node_id, entries in view.items():
        for entry in entries:
            pair = (entry.target, node_id) if reverse else (node_id, entry.target)
            if pair[0] == pair[1]:
                raise GraphParseError(f"Invalid encompassing graph document: self-loop on {node_id!r}")
            if pair in edges:
                raise GraphParseError(f"Invalid encompassing graph document: duplicate edge {pair[0]!r} -> {pair[1]!r}")
            edges[pair] = entry.weight
    return edges


def deserialize_graph(text: str) -> EncompassingGraph:
    """
    Parse JSON text produced by serialize_graph().

    Both adjacency views keep their stored order, but must describe the same
    edges with no self-loops and at most one edge per pair.

    Raises:
        GraphParseError: Text is not valid JSON, not a graph document, or the
            two views disagree
    """
    try:
        document = _GraphDocument.model_validate_json(text)
    except ValidationError as e:
        logger.warning(f"Failed to parse serialized graph: {e.error_count()} errors")
        raise GraphParseError(f"Invalid encompassing graph document: {e}") from e

    if _edge_map(document.encompasses) != _edge_map(document.encompassed_by, reverse=True):
        logger.warning("Serialized graph views are inconsistent")
        raise GraphParseError("Invalid encompassing graph document: encompassedBy does not mirror encompasses")

    def restore(view: dict[str, list[_TargetModel]]) -> Mapping[str, tuple[WeightedTarget, ...]]:
        return MappingProxyType({
            node_id: tuple(WeightedTarget(t.target, t.weight) for t in entries)
            for node_id, entries in view.items()
        })

    return EncompassingGraph(
        encompasses=restore(document.encompasses),
        encompassed_by=restore(document.encompassed_by),
    )
