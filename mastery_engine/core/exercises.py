"""
Exercise and lesson records.

Exercises are a tagged union keyed by ExerciseType. Each variant carries only
the fields it needs and exposes `expected_answer`, so consumers never check
whether an `answer` field is present.

Plain records (as handed over by the content collaborator) are converted with
exercise_from_dict() / lesson_from_dict(). Each variant registers its loader
with the @register decorator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from mastery_engine.errors import ExerciseFormatError


class ExerciseType(str, Enum):
    """Supported exercise kinds."""
    FILL_BLANK = "fill-blank"
    TRANSLATE_TO_ARABIC = "translate-to-arabic"
    WORD_TO_MEANING = "word-to-meaning"
    MEANING_TO_WORD = "meaning-to-word"
    CONSTRUCT_SENTENCE = "construct-sentence"
    GRAMMAR_APPLY = "grammar-apply"
    ERROR_CORRECTION = "error-correction"
    MULTI_CLOZE = "multi-cloze"
    SEMANTIC_FIELD = "semantic-field"
    SENTENCE_UNSCRAMBLE = "sentence-unscramble"


# =============================================================================
# Variants
# =============================================================================


@dataclass(frozen=True)
class Exercise:
    """Fields shared by every exercise kind."""
    id: str
    item_ids: tuple[str, ...]

    kind = None  # set on each variant

    @property
    def expected_answer(self) -> str:
        """The text a correct answer must match ("" when there is none)."""
        return ""


@dataclass(frozen=True)
class PromptAnswerExercise(Exercise):
    """Prompt/answer pair (fill-blank, translate, word/meaning, grammar-apply)."""
    prompt: str = ""
    answer: str = ""
    prompt_en: str | None = None

    @property
    def expected_answer(self) -> str:
        return self.answer


@dataclass(frozen=True)
class FillBlankExercise(PromptAnswerExercise):
    kind = ExerciseType.FILL_BLANK


@dataclass(frozen=True)
class TranslateExercise(PromptAnswerExercise):
    kind = ExerciseType.TRANSLATE_TO_ARABIC


@dataclass(frozen=True)
class WordToMeaningExercise(PromptAnswerExercise):
    kind = ExerciseType.WORD_TO_MEANING


@dataclass(frozen=True)
class MeaningToWordExercise(PromptAnswerExercise):
    kind = ExerciseType.MEANING_TO_WORD


@dataclass(frozen=True)
class GrammarApplyExercise(PromptAnswerExercise):
    kind = ExerciseType.GRAMMAR_APPLY


@dataclass(frozen=True)
class ConstructSentenceExercise(Exercise):
    kind = ExerciseType.CONSTRUCT_SENTENCE
    words: tuple[str, ...] = ()
    answer: str = ""

    @property
    def expected_answer(self) -> str:
        return self.answer


@dataclass(frozen=True)
class ErrorCorrectionExercise(Exercise):
    kind = ExerciseType.ERROR_CORRECTION
    sentence_with_error: str = ""
    correct_sentence: str = ""
    error_word: str = ""
    correct_word: str = ""
    error_type: str = ""
    english_hint: str | None = None
    explanation: str | None = None

    @property
    def expected_answer(self) -> str:
        return self.correct_sentence


@dataclass(frozen=True)
class ClozeBlank:
    position: int
    answer: str
    hint: str | None = None


@dataclass(frozen=True)
class MultiClozeExercise(Exercise):
    kind = ExerciseType.MULTI_CLOZE
    prompt: str = ""
    blanks: tuple[ClozeBlank, ...] = ()
    complete_sentence: str = ""
    prompt_en: str | None = None

    @property
    def expected_answer(self) -> str:
        return self.complete_sentence


@dataclass(frozen=True)
class SemanticWord:
    arabic: str
    english: str
    category: str


@dataclass(frozen=True)
class SemanticFieldExercise(Exercise):
    """Categorization exercise; has no single textual answer."""
    kind = ExerciseType.SEMANTIC_FIELD
    categories: tuple[str, ...] = ()
    words: tuple[SemanticWord, ...] = ()
    instruction: str | None = None


@dataclass(frozen=True)
class SentenceUnscrambleExercise(Exercise):
    kind = ExerciseType.SENTENCE_UNSCRAMBLE
    correct_sentence: str = ""
    words: tuple[str, ...] = ()
    distractor_count: int = 0
    english_hint: str | None = None

    @property
    def expected_answer(self) -> str:
        return self.correct_sentence


# =============================================================================
# Loading from plain records
# =============================================================================

# Loader registry - populated by @register decorator
LOADERS: dict[ExerciseType, Callable[[dict[str, Any], str, tuple[str, ...]], Exercise]] = {}


def register(*kinds: ExerciseType):
    """Decorator to register a loader for one or more exercise kinds."""
    def decorator(func):
        for kind in kinds:
            LOADERS[kind] = func
        return func
    return decorator


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ExerciseFormatError(f"Exercise {data.get('id', '?')!r} is missing field {key!r}")
    return data[key]


_PROMPT_ANSWER_CLASSES = {
    ExerciseType.FILL_BLANK: FillBlankExercise,
    ExerciseType.TRANSLATE_TO_ARABIC: TranslateExercise,
    ExerciseType.WORD_TO_MEANING: WordToMeaningExercise,
    ExerciseType.MEANING_TO_WORD: MeaningToWordExercise,
    ExerciseType.GRAMMAR_APPLY: GrammarApplyExercise,
}


@register(*_PROMPT_ANSWER_CLASSES)
def _load_prompt_answer(data: dict[str, Any], ex_id: str, item_ids: tuple[str, ...]) -> Exercise:
    cls = _PROMPT_ANSWER_CLASSES[ExerciseType(data["type"])]
    return cls(
        id=ex_id,
        item_ids=item_ids,
        prompt=data.get("prompt", ""),
        answer=_require(data, "answer"),
        prompt_en=data.get("promptEn") or data.get("prompt_en"),
    )


@register(ExerciseType.CONSTRUCT_SENTENCE)
def _load_construct(data: dict[str, Any], ex_id: str, item_ids: tuple[str, ...]) -> Exercise:
    return ConstructSentenceExercise(
        id=ex_id,
        item_ids=item_ids,
        words=tuple(data.get("words", ())),
        answer=_require(data, "answer"),
    )


@register(ExerciseType.ERROR_CORRECTION)
def _load_error_correction(data: dict[str, Any], ex_id: str, item_ids: tuple[str, ...]) -> Exercise:
    return ErrorCorrectionExercise(
        id=ex_id,
        item_ids=item_ids,
        sentence_with_error=data.get("sentenceWithError", data.get("sentence_with_error", "")),
        correct_sentence=_require_any(data, "correctSentence", "correct_sentence"),
        error_word=data.get("errorWord", data.get("error_word", "")),
        correct_word=data.get("correctWord", data.get("correct_word", "")),
        error_type=data.get("errorType", data.get("error_type", "")),
        english_hint=data.get("englishHint", data.get("english_hint")),
        explanation=data.get("explanation"),
    )


@register(ExerciseType.MULTI_CLOZE)
def _load_multi_cloze(data: dict[str, Any], ex_id: str, item_ids: tuple[str, ...]) -> Exercise:
    blanks = tuple(
        ClozeBlank(position=int(b["position"]), answer=b["answer"], hint=b.get("hint"))
        for b in data.get("blanks", ())
    )
    return MultiClozeExercise(
        id=ex_id,
        item_ids=item_ids,
        prompt=data.get("prompt", ""),
        blanks=blanks,
        complete_sentence=_require_any(data, "completeSentence", "complete_sentence"),
        prompt_en=data.get("promptEn") or data.get("prompt_en"),
    )


@register(ExerciseType.SEMANTIC_FIELD)
def _load_semantic_field(data: dict[str, Any], ex_id: str, item_ids: tuple[str, ...]) -> Exercise:
    categories = tuple(
        c["id"] if isinstance(c, dict) else str(c) for c in data.get("categories", ())
    )
    words = tuple(
        SemanticWord(arabic=w["arabic"], english=w["english"], category=w["category"])
        for w in data.get("words", ())
    )
    return SemanticFieldExercise(
        id=ex_id,
        item_ids=item_ids,
        categories=categories,
        words=words,
        instruction=data.get("instruction"),
    )


@register(ExerciseType.SENTENCE_UNSCRAMBLE)
def _load_unscramble(data: dict[str, Any], ex_id: str, item_ids: tuple[str, ...]) -> Exercise:
    words = tuple(w["text"] if isinstance(w, dict) else str(w) for w in data.get("words", ()))
    return SentenceUnscrambleExercise(
        id=ex_id,
        item_ids=item_ids,
        correct_sentence=_require_any(data, "correctSentence", "correct_sentence"),
        words=words,
        distractor_count=int(data.get("distractorCount", data.get("distractor_count", 0))),
        english_hint=data.get("englishHint", data.get("english_hint")),
    )


def _require_any(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    raise ExerciseFormatError(f"Exercise {data.get('id', '?')!r} is missing field {keys[0]!r}")


def _item_ids(data: dict[str, Any]) -> tuple[str, ...]:
    return tuple(data.get("itemIds", data.get("item_ids", ())))


def exercise_from_dict(data: dict[str, Any]) -> Exercise:
    """
    Build a typed exercise from a plain record.

    Accepts both camelCase (itemIds, promptEn) and snake_case keys.

    Raises:
        ExerciseFormatError: Unknown type or missing required field
    """
    ex_id = data.get("id")
    if not ex_id:
        raise ExerciseFormatError("Exercise record has no id")

    try:
        kind = ExerciseType(data.get("type", ""))
    except ValueError as e:
        raise ExerciseFormatError(f"Exercise {ex_id!r} has unknown type {data.get('type')!r}") from e

    return LOADERS[kind](data, ex_id, _item_ids(data))


# =============================================================================
# Lessons
# =============================================================================


@dataclass(frozen=True)
class ExerciseRef:
    """Minimal exercise reference used for graph construction."""
    id: str
    item_ids: tuple[str, ...]


@dataclass(frozen=True)
class Lesson:
    """A lesson with its taught items and exercises."""
    id: str
    book: int
    lesson: int
    vocabulary: tuple[str, ...] = ()
    grammar_points: tuple[str, ...] = ()
    exercises: tuple[Exercise | ExerciseRef, ...] = field(default=())

    @property
    def item_ids(self) -> list[str]:
        """Vocabulary then grammar points, in order."""
        return [*self.vocabulary, *self.grammar_points]


def lesson_from_dict(data: dict[str, Any]) -> Lesson:
    """
    Build a Lesson from a plain record.

    Exercises with a known `type` become typed exercises; bare
    {id, itemIds} records become ExerciseRef.

    Raises:
        ExerciseFormatError: Missing id/book/lesson or malformed exercise
    """
    for key in ("id", "book", "lesson"):
        if key not in data:
            raise ExerciseFormatError(f"Lesson record is missing field {key!r}")

    exercises: list[Exercise | ExerciseRef] = []
    for ex in data.get("exercises", ()):
        if "type" in ex:
            exercises.append(exercise_from_dict(ex))
        else:
            exercises.append(ExerciseRef(id=_require(ex, "id"), item_ids=_item_ids(ex)))

    return Lesson(
        id=data["id"],
        book=int(data["book"]),
        lesson=int(data["lesson"]),
        vocabulary=tuple(data.get("vocabulary") or ()),
        grammar_points=tuple(data.get("grammarPoints", data.get("grammar_points")) or ()),
        exercises=tuple(exercises),
    )
