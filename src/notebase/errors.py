"""
Custom exceptions for query definition loading and evaluation.
"""


class NotebaseError(Exception):
    """Base exception for all query-related errors."""

    pass


class ParseError(NotebaseError):
    """Raised when a query or view definition is structurally invalid."""

    pass


class ResolutionError(NotebaseError):
    """Raised when a requested view does not exist in the query definition."""

    def __init__(self, view_name: str, available: list[str] | None = None):
        self.view_name = view_name
        self.available = available or []
        message = f"View not found: {view_name}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class EvaluationError(NotebaseError):
    """Raised when a single expression fails to evaluate."""

    def __init__(self, message: str, expression: str | None = None, cause: Exception | None = None):
        self.expression = expression
        self.cause = cause
        super().__init__(message)

    def with_expression(self, expression: str) -> "EvaluationError":
        """Attach the expression text if the error was raised without it."""
        if self.expression is None:
            self.expression = expression
        return self


class ExpressionSyntaxError(EvaluationError):
    """Raised when an expression has invalid syntax."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        expression: str | None = None,
    ):
        self.line = line
        self.column = column
        location = ""
        if line is not None:
            location = f" at line {line}"
            if column is not None:
                location += f", column {column}"
        super().__init__(f"{message}{location}", expression=expression)


class StoreError(NotebaseError):
    """Raised when the document store fails to enumerate or read documents."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class QueryCancelledError(NotebaseError):
    """Raised when a running query is interrupted between documents."""

    pass
