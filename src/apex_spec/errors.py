# errors.py
# Unified error taxonomy shared by the lexer, parser, validator and interpreter.
#
# Every stage raises ApexError on the first hard violation it finds. Non-fatal
# findings never come through here; they land in ValidatedDocument.warnings.

from enum import Enum


class ErrorKind(str, Enum):
    """Flat error categories. Some are reserved and not produced yet."""

    LEX_ERROR = "LexError"
    PARSE_ERROR = "ParseError"
    MISSING_TASK = "MissingTask"
    MULTIPLE_TASKS = "MultipleTasks"
    EMPTY_REQUIRED_BLOCK = "EmptyRequiredBlock"
    UNKNOWN_BLOCK = "UnknownBlock"
    INVALID_TOOL_NAME = "InvalidToolName"
    CONSTRAINT_VIOLATION = "ConstraintViolation"
    VALIDATION_FAILURE = "ValidationFailure"
    INTERNAL_ERROR = "InternalError"

    def __str__(self) -> str:
        return self.value


# Kinds with a constructor but no producing code path.
RESERVED_KINDS = frozenset(
    {
        ErrorKind.LEX_ERROR,
        ErrorKind.PARSE_ERROR,
        ErrorKind.UNKNOWN_BLOCK,
        ErrorKind.CONSTRAINT_VIOLATION,
    }
)


class ApexError(Exception):
    """
    Raised by any pipeline stage. Always terminal for the given input.

    Carries a kind, a human-readable message, and an optional 1-indexed
    line/column pointing into the source document.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.line = line
        self.column = column
        super().__init__(message)

    def __str__(self) -> str:
        text = f"[{self.kind.value}] {self.message}"
        if self.line is not None:
            text += f" (line {self.line})"
        return text

    def __repr__(self) -> str:
        return (
            f"ApexError(kind={self.kind.value!r}, message={self.message!r}, "
            f"line={self.line!r}, column={self.column!r})"
        )

    def with_line(self, line: int) -> "ApexError":
        self.line = line
        return self

    def with_column(self, column: int) -> "ApexError":
        self.column = column
        return self

    # ------------------------------------------------------------------
    # Named constructors
    # ------------------------------------------------------------------

    @classmethod
    def lex(cls, message: str, line: int | None = None) -> "ApexError":
        return cls(ErrorKind.LEX_ERROR, message, line)

    @classmethod
    def parse(cls, message: str, line: int | None = None) -> "ApexError":
        return cls(ErrorKind.PARSE_ERROR, message, line)

    @classmethod
    def missing_task(cls) -> "ApexError":
        return cls(
            ErrorKind.MISSING_TASK,
            "APEX document must contain exactly one TASK block",
        )

    @classmethod
    def multiple_tasks(cls, line: int) -> "ApexError":
        return cls(
            ErrorKind.MULTIPLE_TASKS,
            "APEX document contains multiple TASK blocks",
            line,
        )

    @classmethod
    def empty_block(cls, name: str, line: int | None = None) -> "ApexError":
        return cls(ErrorKind.EMPTY_REQUIRED_BLOCK, f"{name} block cannot be empty", line)

    @classmethod
    def unknown_block(cls, name: str, line: int | None = None) -> "ApexError":
        return cls(ErrorKind.UNKNOWN_BLOCK, f"Unknown block identifier: {name}", line)

    @classmethod
    def invalid_tool(cls, name: str, line: int | None = None) -> "ApexError":
        return cls(ErrorKind.INVALID_TOOL_NAME, f"Unknown tool '{name}' not in registry", line)

    @classmethod
    def constraint_violation(cls, constraint: str, reason: str) -> "ApexError":
        return cls(
            ErrorKind.CONSTRAINT_VIOLATION,
            f"Constraint '{constraint}' violated: {reason}",
        )

    @classmethod
    def validation_failure(cls, condition: str) -> "ApexError":
        return cls(ErrorKind.VALIDATION_FAILURE, f"Validation failed: {condition}")

    @classmethod
    def unsupported_version(cls, version: str) -> "ApexError":
        return cls(ErrorKind.VALIDATION_FAILURE, f"Unsupported APEX version: {version}")

    @classmethod
    def internal(cls, message: str) -> "ApexError":
        return cls(ErrorKind.INTERNAL_ERROR, message)
