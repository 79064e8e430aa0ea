"""
Engine exceptions.

The engine clamps and degrades gracefully for in-process misuse. Only
failures at the data boundary (loading serialized graphs or plain exercise
records) raise.
"""


class EngineError(Exception):
    """Base class for engine errors."""
    pass


class GraphParseError(EngineError):
    """Raised when serialized graph text cannot be parsed."""
    pass


class ExerciseFormatError(EngineError):
    """Raised when a plain exercise or lesson record is malformed."""
    pass
