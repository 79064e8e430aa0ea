"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mastery_engine.core.exercises import (  # noqa: E402
    FillBlankExercise,
    Lesson,
    TranslateExercise,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def scenario_exercises():
    """Three exercises: Arabic, English, Arabic phrase."""
    return [
        FillBlankExercise(id="ex-1", item_ids=("v-hadha",), prompt="___ كِتَابٌ", answer="هَذَا"),
        TranslateExercise(id="ex-2", item_ids=("v-pen",), prompt="قَلَمٌ", answer="pen"),
        TranslateExercise(
            id="ex-3",
            item_ids=("v-hadha", "v-bayt"),
            prompt="this is a house",
            answer="هَذَا بَيْتٌ",
        ),
    ]


@pytest.fixture
def sample_lessons():
    """Three lessons of book 1 and one lesson of book 2."""
    return [
        Lesson(id="b1-l01", book=1, lesson=1, vocabulary=("v-hadha", "v-kitab"), grammar_points=("g-nominal",)),
        Lesson(id="b1-l02", book=1, lesson=2, vocabulary=("v-bayt",)),
        Lesson(id="b1-l03", book=1, lesson=3, vocabulary=("v-qalam",)),
        Lesson(id="b2-l01", book=2, lesson=1, vocabulary=("v-madrasa",)),
    ]


@pytest.fixture
def sample_lesson_records():
    """Plain lesson records as the content collaborator hands them over."""
    return [
        {
            "id": "b1-l01",
            "book": 1,
            "lesson": 1,
            "vocabulary": ["v-hadha", "v-kitab"],
            "grammarPoints": ["g-nominal"],
            "exercises": [
                {"id": "b1-l01-ex1", "itemIds": ["v-hadha", "v-kitab"]},
                {
                    "id": "b1-l01-ex2",
                    "type": "fill-blank",
                    "itemIds": ["v-hadha", "g-nominal"],
                    "prompt": "___ كِتَابٌ",
                    "answer": "هَذَا",
                },
            ],
        },
        {
            "id": "b1-l02",
            "book": 1,
            "lesson": 2,
            "vocabulary": ["v-bayt"],
            "grammarPoints": [],
            "exercises": [],
        },
    ]
