"""
Unit tests for retry hints and progressive reveal.
"""

import math

import pytest

from mastery_engine.practice.retry_hints import (
    MAX_RETRY_ATTEMPTS,
    RETRY_MESSAGES,
    TASHKEEL_PATTERN,
    get_first_character,
    get_progressive_reveal,
    get_retry_hint,
    is_arabic_text,
)


def _base_letters(text: str) -> str:
    return TASHKEEL_PATTERN.sub("", text)


class TestGetRetryHint:
    def test_first_attempt_has_no_hint(self):
        hint = get_retry_hint("hello", 1, False)

        assert hint.level == 1
        assert hint.hint_text is None
        assert not hint.show_full_answer
        assert hint.message == RETRY_MESSAGES[0]

    def test_last_attempt_shows_answer(self):
        hint = get_retry_hint("hello", MAX_RETRY_ATTEMPTS, False)

        assert hint.hint_text == "hello"
        assert hint.show_full_answer

    @pytest.mark.parametrize("attempt,level", [(-3, 1), (0, 1), (3, 3), (9, 5)])
    def test_attempt_is_clamped(self, attempt, level):
        assert get_retry_hint("answer", attempt, False).level == level

    def test_intermediate_levels_reveal_progressively(self):
        texts = [get_retry_hint("abcdefghij", n, False).hint_text for n in (2, 3, 4)]
        assert texts == ["ab...", "abcd...", "abcdef..."]


class TestProgressiveReveal:
    def test_scenario_plain(self):
        assert get_progressive_reveal("hello", 0.4, False) == "he..."
        assert get_progressive_reveal("hello", 1.0, False) == "hello"

    def test_empty_input(self):
        assert get_progressive_reveal("", 0.5, False) == ""
        assert get_progressive_reveal("   ", 0.5, False) == ""

    def test_always_reveals_something(self):
        assert get_progressive_reveal("hello", 0.0001, False) == "h..."
        assert get_progressive_reveal("hello", -1, False) == "h..."

    def test_percentage_clamped_above_one(self):
        assert get_progressive_reveal("hello", 7, False) == "hello"

    def test_spaces_do_not_count(self):
        # 10 letters, 40% -> 4 letters
        assert get_progressive_reveal("hello world", 0.4, False) == "hell..."
        assert get_progressive_reveal("ab cd ef", 0.5, False) == "ab c..."

    def test_arabic_scenario(self):
        # هَذَا has 3 base letters; 40% -> 2
        assert get_progressive_reveal("هَذَا", 0.4, True) == "هَذَ..."

    @pytest.mark.parametrize("pct", [0.01, 0.15, 0.4, 0.6, 0.9])
    def test_arabic_counts_base_letters(self, pct):
        answer = "هَذَا بَيْتٌ كَبِيرٌ"
        revealed = get_progressive_reveal(answer, pct, True)
        base_total = len(_base_letters(answer))
        expected = max(1, math.ceil(base_total * pct))

        assert revealed.endswith("...")
        assert len(_base_letters(revealed[:-3])) == expected

    def test_arabic_keeps_attached_diacritics_only(self):
        revealed = get_progressive_reveal("بَيْتٌ", 0.5, True)
        # 3 base letters, 2 revealed with their marks
        assert revealed == "بَيْ..."

    def test_arabic_full_reveal(self):
        assert get_progressive_reveal("هَذَا", 1, True) == "هَذَا"


class TestFirstCharacter:
    def test_plain(self):
        assert get_first_character("  hello", False) == "h"
        assert get_first_character("", False) == ""

    def test_arabic_with_diacritics(self):
        assert get_first_character("هَذَا", True) == "هَ"

    def test_arabic_skips_leading_diacritics(self):
        assert get_first_character("َبِنْت", True) == "بِ"


class TestIsArabicText:
    def test_detects_arabic(self):
        assert is_arabic_text("هذا")
        assert is_arabic_text("pen قلم")

    def test_arabic_indic_digits(self):
        assert is_arabic_text("٣")

    def test_latin(self):
        assert not is_arabic_text("hello")
        assert not is_arabic_text("")
