"""
Typer CLI for the mastery engine.

Commands:
    mastery-engine graph build     - Build the encompassing graph from lesson JSON
    mastery-engine graph reach     - Show what practicing one item reaches
    mastery-engine graph top       - Rank items by reach
    mastery-engine hint            - Show the retry hint for an attempt
    mastery-engine strength        - Apply a strength update and/or decay
    mastery-engine practice        - Run an interactive practice session

Usage:
    mastery-engine --help
    mastery-engine graph build data/lessons.json -o data/graph.json
    mastery-engine graph reach data/graph.json b1-l03
    mastery-engine hint "hello" --attempt 3
    mastery-engine practice data/exercises.json --ledger data/strength.json

The engine itself never touches the filesystem; this CLI is the caller that
reads content and writes progress.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from config import get_settings
from mastery_engine.context import EngineContext
from mastery_engine.core.challenge import apply_challenge
from mastery_engine.core.exercises import Exercise, exercise_from_dict, lesson_from_dict
from mastery_engine.core.mastery import (
    StrengthLedger,
    challenge_strength_change,
    decay,
    should_trigger_challenge,
    strength_change,
)
from mastery_engine.errors import EngineError
from mastery_engine.graph.analysis import calculate_reach, find_high_reach_items, get_all_encompassed
from mastery_engine.graph.encompassing import EncompassingEdge, deserialize_graph, serialize_graph
from mastery_engine.practice.calibration import get_confidence_level_label
from mastery_engine.practice.retry_hints import get_retry_hint, is_arabic_text
from mastery_engine.practice.session import AnswerMetadata, PracticeSession

app = typer.Typer(
    name="mastery-engine",
    help="Mastery engine: credit-propagation graph, strength model and practice sessions",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

graph_app = typer.Typer(help="Encompassing graph operations", no_args_is_help=True)
app.add_typer(graph_app, name="graph")

console = Console()


# =============================================================================
# Helpers
# =============================================================================


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found:[/] {escape(str(path))}")
        raise typer.Exit(code=1)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {escape(str(path))}:[/] {escape(str(e))}")
        raise typer.Exit(code=1)


def _records(data: Any, key: str) -> list[dict]:
    """Accept either a bare list or {key: [...]}."""
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        console.print(f"[red]Expected a list of {key}[/]")
        raise typer.Exit(code=1)
    return data


def _load_graph(path: Path):
    try:
        return deserialize_graph(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found:[/] {escape(str(path))}")
        raise typer.Exit(code=1)
    except EngineError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=1)


def _normalize(answer: str) -> str:
    return " ".join(answer.split()).casefold()


# =============================================================================
# GRAPH COMMANDS
# =============================================================================


@graph_app.command("build")
def graph_build(
    lessons_file: Annotated[Path, typer.Argument(help="JSON file with lesson records")],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the graph JSON here")
    ] = None,
    overrides: Annotated[
        Path | None, typer.Option("--overrides", help="JSON list of {from, to, weight} edges")
    ] = None,
    cooccurrence: Annotated[
        bool, typer.Option("--cooccurrence", help="Merge edges from exercise co-occurrence")
    ] = False,
) -> None:
    """
    Build the encompassing graph from lesson data.

    Examples:
        mastery-engine graph build lessons.json
        mastery-engine graph build lessons.json -o graph.json --cooccurrence
    """
    try:
        lessons = [lesson_from_dict(rec) for rec in _records(_read_json(lessons_file), "lessons")]
    except EngineError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=1)

    manual: list[EncompassingEdge] = []
    if overrides is not None:
        try:
            for rec in _records(_read_json(overrides), "overrides"):
                manual.append(EncompassingEdge(rec["from"], rec["to"], float(rec["weight"])))
        except (KeyError, TypeError, ValueError) as e:
            console.print(f"[red]Invalid override record in {escape(str(overrides))}:[/] {escape(str(e))}")
            raise typer.Exit(code=1)

    ctx = EngineContext()
    graph = ctx.rebuild_graph(lessons, manual_overrides=manual, include_cooccurrence=cooccurrence)

    table = Table(title="Encompassing Graph", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Lessons", str(len(lessons)))
    table.add_row("Nodes", str(len(graph.node_ids)))
    table.add_row("Edges", str(graph.edge_count))
    table.add_row("Manual overrides", str(len(manual)))
    console.print(table)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(serialize_graph(graph), encoding="utf-8")
        console.print(f"[green]Graph written to {escape(str(output))}[/]")


@graph_app.command("reach")
def graph_reach(
    graph_file: Annotated[Path, typer.Argument(help="Serialized graph JSON")],
    item_id: Annotated[str, typer.Argument(help="Item or lesson id")],
) -> None:
    """Show the reach of an item and everything it encompasses."""
    graph = _load_graph(graph_file)
    reached = sorted(get_all_encompassed(item_id, graph))

    console.print(f"[bold cyan]{escape(item_id)}[/] reach: [bold]{calculate_reach(item_id, graph)}[/]")
    for target in reached:
        console.print(f"  - {escape(target)}")


@graph_app.command("top")
def graph_top(
    graph_file: Annotated[Path, typer.Argument(help="Serialized graph JSON")],
    top_n: Annotated[int, typer.Option("--top", "-n", help="Number of items to show")] = 10,
    items: Annotated[
        list[str] | None, typer.Option("--item", "-i", help="Candidate ids (default: all nodes)")
    ] = None,
) -> None:
    """Rank items by reach, highest first."""
    graph = _load_graph(graph_file)
    candidates = items or sorted(graph.node_ids)

    table = Table(title=f"Top {top_n} by reach", show_header=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Id", style="cyan")
    table.add_column("Reach", justify="right", style="green")

    for rank, node_id in enumerate(find_high_reach_items(candidates, graph, top_n), start=1):
        table.add_row(str(rank), escape(node_id), str(calculate_reach(node_id, graph)))

    console.print(table)


# =============================================================================
# HINT / STRENGTH
# =============================================================================


@app.command("hint")
def hint(
    answer: Annotated[str, typer.Argument(help="The correct answer")],
    attempt: Annotated[int, typer.Option("--attempt", "-a", help="Attempt number (1-5)")] = 1,
    arabic: Annotated[
        bool, typer.Option("--arabic", help="Reveal by Arabic letters (detected when omitted)")
    ] = False,
) -> None:
    """Show the retry hint for a wrong answer at a given attempt."""
    retry_hint = get_retry_hint(answer, attempt, arabic or is_arabic_text(answer))

    console.print(f"[dim]Level {retry_hint.level}[/] {escape(retry_hint.message)}")
    if retry_hint.hint_text is not None:
        style = "bold green" if retry_hint.show_full_answer else "yellow"
        console.print(f"[{style}]{escape(retry_hint.hint_text)}[/]")


@app.command("strength")
def strength(
    current: Annotated[float, typer.Argument(help="Current strength (0-100)")],
    incorrect: Annotated[bool, typer.Option("--incorrect", help="Apply an incorrect answer")] = False,
    challenge: Annotated[bool, typer.Option("--challenge", help="Use challenge scoring")] = False,
    days: Annotated[int, typer.Option("--days", help="Days since practice to decay over")] = 0,
    proven: Annotated[bool, typer.Option("--proven", help="Item has proven mastery")] = False,
    decay_only: Annotated[bool, typer.Option("--decay-only", help="Only apply decay")] = False,
) -> None:
    """Apply one strength update followed by decay."""
    value = current
    if not decay_only:
        change = challenge_strength_change if challenge else strength_change
        value = change(current, not incorrect)

    decayed = decay(value, days, has_proven_mastery=proven)

    console.print(
        Panel(
            f"Stored: [bold]{value:g}[/]\n"
            f"Effective after {days} days: [bold]{decayed:g}[/]\n"
            f"Challenge ready: {'yes' if should_trigger_challenge(decayed) else 'no'}",
            title="Strength",
            border_style="cyan",
        )
    )


# =============================================================================
# PRACTICE
# =============================================================================


def _prompt_text(exercise: Exercise) -> str:
    for attr in ("prompt", "correct_sentence"):
        text = getattr(exercise, attr, None)
        if text:
            return text
    words = getattr(exercise, "words", None)
    if words:
        return " / ".join(words)
    return exercise.id


def _run_session(session: PracticeSession, challenge_ids: set[str]) -> None:
    while not session.is_complete:
        exercise = session.current_exercise
        label = "CHALLENGE " if exercise.id in challenge_ids else ""
        console.print(
            Panel(
                escape(_prompt_text(exercise)),
                title=f"{label}{session.current_index + 1}/{session.total_exercises} ({exercise.kind.value})",
                border_style="magenta" if label else "cyan",
            )
        )

        outcome = None
        while outcome is None or not outcome.is_terminal:
            answer = Prompt.ask("Answer", default="").strip()
            confidence = IntPrompt.ask("Confidence (1-3)", choices=["1", "2", "3"], default=2)
            outcome = session.record_answer(
                _normalize(answer) == _normalize(exercise.expected_answer),
                answer,
                AnswerMetadata(confidence=confidence, generated_without_hints=session.retry_attempt_count == 0),
            )
            if outcome is None:
                break

            if outcome.is_correct:
                console.print("[green]Correct![/]")
            elif session.current_hint is not None:
                shown = session.current_hint
                console.print(f"[yellow]{escape(shown.message)}[/]")
                if shown.hint_text:
                    console.print(f"  Hint: [bold]{escape(shown.hint_text)}[/]")
                if not outcome.is_terminal:
                    session.retry_exercise()

            logger.debug(f"Confidence {get_confidence_level_label(confidence)} recorded")

        session.advance_to_next()


@app.command("practice")
def practice(
    exercises_file: Annotated[Path, typer.Argument(help="JSON file with exercise records")],
    ledger_file: Annotated[
        Path | None, typer.Option("--ledger", "-l", help="Strength ledger JSON (read and updated)")
    ] = None,
) -> None:
    """
    Run an interactive practice session.

    Exercises whose items are all at challenge strength are presented as
    challenges. Results are written back to the ledger file when given.
    """
    try:
        exercises = [exercise_from_dict(rec) for rec in _records(_read_json(exercises_file), "exercises")]
    except EngineError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(code=1)

    exercises = [ex for ex in exercises if ex.expected_answer]
    if not exercises:
        console.print("[yellow]No answerable exercises found.[/]")
        raise typer.Exit()

    ledger = StrengthLedger()
    if ledger_file is not None and ledger_file.exists():
        ledger = StrengthLedger.from_dict(_read_json(ledger_file))

    ctx = EngineContext(ledger=ledger)
    presented: list[Exercise] = []
    challenge_ids: set[str] = set()
    for exercise in exercises:
        challenge_config = ctx.challenge_config(exercise)
        if challenge_config.is_challenge:
            challenge_ids.add(exercise.id)
        presented.append(apply_challenge(exercise, challenge_config))

    session = ctx.start_session(presented)
    _run_session(session, challenge_ids)

    ctx.commit_results(session, challenge_ids=challenge_ids)

    stats = session.snapshot()
    table = Table(title="Session Summary", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Accuracy", f"{stats.accuracy}%")
    table.add_row("Correct / Incorrect", f"{stats.correct_count} / {stats.incorrect_count}")
    table.add_row("Best streak", str(stats.best_streak))
    table.add_row("Generation rate", f"{stats.generation_stats.generation_rate:.0%}")
    table.add_row("Calibration", f"{stats.confidence_stats.calibration_score:.2f}")
    console.print(table)

    review = session.get_incorrect_exercises()
    if review:
        console.print(f"[yellow]Review later:[/] {escape(', '.join(ex.id for ex in review))}")

    if ledger_file is not None:
        ledger_file.parent.mkdir(parents=True, exist_ok=True)
        ledger_file.write_text(json.dumps(ctx.ledger.to_dict(), indent=2), encoding="utf-8")
        console.print(f"[green]Ledger written to {escape(str(ledger_file))}[/]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB")

    app()


if __name__ == "__main__":
    main()
