"""
Retry hints for immediate error retry.

A wrong answer is retried up to MAX_RETRY_ATTEMPTS times with progressively
more of the answer revealed:

    Attempt 1: encouragement only
    Attempt 2: ~15% revealed (at least one character)
    Attempt 3: ~40% revealed
    Attempt 4: ~60% revealed
    Attempt 5: full answer

Arabic answers are revealed by base letter; tashkeel (diacritics) do not count
toward the reveal budget and stay attached to the letter they follow.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

MAX_RETRY_ATTEMPTS = 5

ELLIPSIS = "..."

# Arabic diacritical marks (tashkeel)
TASHKEEL_PATTERN = re.compile(r"[\u064B-\u065F\u0670]")

# Arabic (0600-06FF) and Arabic Supplement (0750-077F)
ARABIC_PATTERN = re.compile(r"[\u0600-\u06FF\u0750-\u077F]")

RETRY_MESSAGES: tuple[str, ...] = (
    "Errors are part of learning! Each attempt strengthens your memory.",
    "You're building neural pathways. Try again!",
    "Retrieval practice works best when it's challenging. Keep going!",
    "Almost there! Struggling now means remembering later.",
    "Here's the answer. Study it carefully for next time.",
)

# attempt number -> fraction of the answer revealed
REVEAL_SCHEDULE = {
    2: 0.15,
    3: 0.4,
    4: 0.6,
}


@dataclass(frozen=True)
class RetryHint:
    """Hint shown after a wrong answer."""
    level: int  # 1-5, equals the clamped attempt number
    message: str
    hint_text: str | None  # None on the first attempt
    show_full_answer: bool


def _is_tashkeel(char: str) -> bool:
    return TASHKEEL_PATTERN.match(char) is not None


def is_arabic_text(text: str) -> bool:
    """True if the text contains any Arabic or Arabic Supplement character."""
    return bool(text) and ARABIC_PATTERN.search(text) is not None


def get_retry_hint(answer: str, attempt_number: int, is_arabic: bool) -> RetryHint:
    """
    Generate the hint for a retry attempt.

    Args:
        answer: The correct answer
        attempt_number: Attempt number, clamped to [1, MAX_RETRY_ATTEMPTS]
        is_arabic: Reveal by Arabic base letters

    Returns:
        RetryHint with encouragement and the partial (or full) answer
    """
    attempt = max(1, min(attempt_number, MAX_RETRY_ATTEMPTS))
    message = RETRY_MESSAGES[attempt - 1]

    if attempt == 1:
        return RetryHint(level=attempt, message=message, hint_text=None, show_full_answer=False)

    if attempt == MAX_RETRY_ATTEMPTS:
        return RetryHint(level=attempt, message=message, hint_text=answer, show_full_answer=True)

    return RetryHint(
        level=attempt,
        message=message,
        hint_text=get_progressive_reveal(answer, REVEAL_SCHEDULE[attempt], is_arabic),
        show_full_answer=False,
    )


def get_progressive_reveal(answer: str, percentage: float, is_arabic: bool) -> str:
    """
    Reveal a fraction of the answer, followed by "..." if anything is hidden.

    At least one unit is always revealed for non-empty input.

    Args:
        answer: Full answer text
        percentage: Fraction to reveal, clamped to [0, 1]
        is_arabic: Count Arabic base letters instead of characters

    Returns:
        Partially revealed answer ("" for empty/blank input)
    """
    if not answer or not answer.strip():
        return ""

    pct = max(0.0, min(1.0, percentage))
    if pct >= 1:
        return answer

    if is_arabic:
        return _reveal_arabic(answer, pct)
    return _reveal_plain(answer, pct)


def _reveal_arabic(text: str, pct: float) -> str:
    base_count = sum(1 for char in text if not _is_tashkeel(char))
    to_reveal = max(1, math.ceil(base_count * pct))

    parts: list[str] = []
    revealed = 0
    attached = False  # last base letter seen was revealed

    for char in text:
        if _is_tashkeel(char):
            if attached:
                parts.append(char)
        elif revealed < to_reveal:
            parts.append(char)
            revealed += 1
            attached = True
        else:
            attached = False

    if revealed < base_count:
        parts.append(ELLIPSIS)

    return "".join(parts)


def _reveal_plain(text: str, pct: float) -> str:
    non_space_count = sum(1 for char in text if char != " ")
    to_reveal = max(1, math.ceil(non_space_count * pct))

    parts: list[str] = []
    revealed = 0

    for char in text:
        if char == " ":
            parts.append(char)
        elif revealed < to_reveal:
            parts.append(char)
            revealed += 1

    result = "".join(parts)
    if revealed < non_space_count:
        result = result.rstrip() + ELLIPSIS

    return result


def get_first_character(text: str, is_arabic: bool) -> str:
    """
    First meaningful character of a text.

    Arabic: the first base letter plus any tashkeel directly after it
    (leading tashkeel is skipped). Other text: the first non-space character.
    """
    if not text or not text.strip():
        return ""

    if not is_arabic:
        return text.lstrip()[0]

    result = ""
    for char in text:
        if _is_tashkeel(char):
            if result:
                result += char
        elif result:
            break
        else:
            result = char

    return result or text[0]
