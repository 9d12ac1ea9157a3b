"""Exception hierarchy for the change engine.

Every exception raised while applying a file's operations maps to exactly one
ErrorKind. The apply pipeline converts these into FileError records, so none of
them escapes the ChangeSet boundary.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported per file in an ApplyResult."""

    PARSE_ERROR = "ParseError"
    PATTERN_NOT_FOUND = "PatternNotFound"
    STRUCTURAL_CONFLICT = "StructuralConflict"
    POSTCONDITION_VIOLATED = "PostconditionViolated"
    INVALID_OPERATION = "InvalidOperation"
    FILE_NOT_FOUND = "FileNotFound"
    INTERNAL_ERROR = "InternalError"

    def __str__(self) -> str:
        """Return the wire name of the kind."""
        return self.value


class EngineError(Exception):
    """Base class for all failures raised while transforming a file."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParseError(EngineError):
    """Source text could not be parsed.

    Attributes:
        line: 1-indexed line of the first syntax error, if known.
        column: 1-indexed column of the first syntax error, if known.
    """

    kind = ErrorKind.PARSE_ERROR

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
        self.line = line
        self.column = column


class PatternNotFound(EngineError):
    """A structural or textual target could not be located.

    Attributes:
        descriptor: The element tag, function name, or literal substring searched.
    """

    kind = ErrorKind.PATTERN_NOT_FOUND

    def __init__(self, descriptor: str, message: str | None = None) -> None:
        super().__init__(message or f"Target not found: {descriptor!r}")
        self.descriptor = descriptor


class StructuralConflict(EngineError):
    """Target was found but the edit cannot be applied consistently."""

    kind = ErrorKind.STRUCTURAL_CONFLICT


class PostconditionViolated(EngineError):
    """The accumulated text failed validation after all operations succeeded."""

    kind = ErrorKind.POSTCONDITION_VIOLATED


class InvalidOperationError(EngineError):
    """An operation payload is malformed or not applicable to the file."""

    kind = ErrorKind.INVALID_OPERATION


class StaleHandleError(EngineError):
    """A node handle was used against a tree version other than its own."""

    kind = ErrorKind.INTERNAL_ERROR


class MissingFileError(EngineError):
    """MODIFY or DELETE of an unknown path, or CREATE of an existing one."""

    kind = ErrorKind.FILE_NOT_FOUND
