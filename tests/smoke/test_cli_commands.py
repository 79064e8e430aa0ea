"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(*args: str, stdin: str | None = None, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m mastery_engine.cli.main'
        stdin: Text fed to the command's standard input
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    result = subprocess.run(
        [sys.executable, "-m", "mastery_engine.cli.main", *args],
        cwd=PROJECT_ROOT,
        input=stdin,
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=timeout,
        env={**os.environ, "PYTHONIOENCODING": "utf-8", "COLUMNS": "120"},
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def lessons_file(tmp_path, sample_lesson_records):
    path = tmp_path / "lessons.json"
    path.write_text(json.dumps({"lessons": sample_lesson_records}), encoding="utf-8")
    return path


@pytest.fixture
def graph_file(tmp_path, lessons_file):
    path = tmp_path / "graph.json"
    code, _, stderr = run_cli_command("graph", "build", str(lessons_file), "-o", str(path))
    assert code == 0, f"Graph build failed: {stderr}"
    return path


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        """Main help should display without errors."""
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "graph" in stdout
        assert "practice" in stdout

    def test_graph_help(self):
        code, stdout, stderr = run_cli_command("graph", "--help")

        assert code == 0, f"Graph help failed: {stderr}"
        assert "build" in stdout


class TestGraphCommands:
    def test_build_writes_graph(self, graph_file):
        document = json.loads(graph_file.read_text(encoding="utf-8"))

        assert set(document) == {"encompasses", "encompassedBy"}
        assert {"target": "b1-l01", "weight": 0.5} in document["encompasses"]["b1-l02"]

    def test_reach(self, graph_file):
        code, stdout, stderr = run_cli_command("graph", "reach", str(graph_file), "b1-l02")

        assert code == 0, f"Reach failed: {stderr}"
        assert "reach: 5" in stdout

    def test_top(self, graph_file):
        code, stdout, stderr = run_cli_command("graph", "top", str(graph_file), "--top", "2")

        assert code == 0, f"Top failed: {stderr}"
        assert "b1-l02" in stdout

    def test_malformed_graph_fails(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")

        code, stdout, _ = run_cli_command("graph", "reach", str(bad), "x")

        assert code == 1
        assert "Invalid encompassing graph" in stdout

    def test_missing_lessons_file(self, tmp_path):
        code, stdout, _ = run_cli_command("graph", "build", str(tmp_path / "missing.json"))

        assert code == 1
        assert "File not found" in stdout


class TestHintAndStrength:
    def test_hint(self):
        code, stdout, stderr = run_cli_command("hint", "hello", "--attempt", "3")

        assert code == 0, f"Hint failed: {stderr}"
        assert "he..." in stdout

    def test_hint_full_answer(self):
        code, stdout, _ = run_cli_command("hint", "هَذَا", "--attempt", "5")

        assert code == 0
        assert "هَذَا" in stdout

    def test_hint_with_brackets(self):
        code, stdout, stderr = run_cli_command("hint", "x[/b]", "--attempt", "5")

        assert code == 0, f"Hint failed: {stderr}"
        assert "x[/b]" in stdout

    def test_strength(self):
        code, stdout, stderr = run_cli_command("strength", "75", "--challenge")

        assert code == 0, f"Strength failed: {stderr}"
        assert "Stored: 90" in stdout


class TestPractice:
    def test_practice_session_updates_ledger(self, tmp_path):
        exercises = tmp_path / "exercises.json"
        exercises.write_text(
            json.dumps([
                {"id": "e1", "type": "translate-to-arabic", "itemIds": ["v-pen"], "prompt": "قَلَمٌ", "answer": "pen"},
            ]),
            encoding="utf-8",
        )
        ledger = tmp_path / "strength.json"

        code, stdout, stderr = run_cli_command(
            "practice", str(exercises), "--ledger", str(ledger), stdin="pen\n3\n"
        )

        assert code == 0, f"Practice failed: {stderr}"
        assert "Correct!" in stdout
        assert json.loads(ledger.read_text(encoding="utf-8"))["v-pen"]["strength"] == 10

    def test_practice_with_bracketed_text(self, tmp_path):
        exercises = tmp_path / "exercises.json"
        exercises.write_text(
            json.dumps([
                {"id": "e1", "type": "fill-blank", "itemIds": ["v-x"], "prompt": "[b]fill[/i] in", "answer": "a[/b]"},
            ]),
            encoding="utf-8",
        )

        code, stdout, stderr = run_cli_command("practice", str(exercises), stdin="[/b]\n2\na[/b]\n2\n")

        assert code == 0, f"Practice failed: {stderr}"
        assert "[b]fill[/i] in" in stdout
        assert "Correct!" in stdout
