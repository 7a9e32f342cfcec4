from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional

__all__ = (
    "CheckViolationError",
    "DataError",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseStartupError",
    "DuplicateOperationError",
    "ForeignKeyViolationError",
    "HeaderBodyMismatchError",
    "ImproperConfigurationError",
    "IntegrityError",
    "InvalidSqlError",
    "MigrationError",
    "MismatchedParameterTypeError",
    "NoHeadersError",
    "NoStatementsError",
    "NotNullViolationError",
    "OperationGroupError",
    "OperatorParseError",
    "SQLBindError",
    "SQLFileNotFoundError",
    "SQLFileParseError",
    "SQLParsingError",
    "UniqueViolationError",
    "UnsupportedParameterError",
    "UnsupportedTypeError",
    "operation_context",
)


class SQLBindError(Exception):
    """Base exception class from which all sqlbind exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBindError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLBindError):
    """Improper Configuration error."""


# -- SQL file errors --
class SQLFileNotFoundError(SQLBindError):
    """Raised when a SQL file or directory cannot be found."""

    def __init__(self, name: str, path: Optional[str] = None) -> None:
        message = path or f"SQL file '{name}' not found"
        super().__init__(message)
        self.name = name
        self.path = path


class SQLFileParseError(SQLBindError):
    """Raised when a SQL file cannot be read."""

    def __init__(self, name: str, path: str, original_error: Exception) -> None:
        super().__init__(f"Failed to read SQL file '{name}' at {path}: {original_error}")
        self.name = name
        self.path = path
        self.original_error = original_error


# -- Operation group errors --
class OperationGroupError(SQLBindError):
    """Base class for errors raised while turning a SQL document into operations.

    ``operation`` names the operation being processed when the error happened,
    ``None`` when the error concerns the document as a whole.
    """

    operation: Optional[str]

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(detail=message)
        self.operation = operation

    def __str__(self) -> str:
        operation_name = self.operation or "group"
        return f"error parsing operation {operation_name}: {self.detail}"


class NoHeadersError(OperationGroupError):
    """The document contains no ``--- title`` header lines."""

    def __init__(self) -> None:
        super().__init__(
            "operation group contained no headers. A header is a comment with three hyphens: `--- operation_name`"
        )


class HeaderBodyMismatchError(OperationGroupError):
    """The number of headers differs from the number of bodies."""

    def __init__(self, header_count: int, body_count: int) -> None:
        super().__init__(f"number of headers ({header_count}) does not equal number of bodies ({body_count})")
        self.header_count = header_count
        self.body_count = body_count


class DuplicateOperationError(OperationGroupError):
    """Two headers of one document normalize to the same operation name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"duplicate operation name `{name}`", operation=name)


class NoStatementsError(OperationGroupError):
    """An operation body contains no executable statement."""

    def __init__(self, operation: Optional[str] = None) -> None:
        super().__init__("operation contained no statements", operation=operation)


class UnsupportedTypeError(OperationGroupError):
    """A parameter annotation names a type outside the catalog."""

    def __init__(self, token: str, operation: Optional[str] = None) -> None:
        super().__init__(f"unsupported type `{token}`", operation=operation)
        self.token = token


class OperatorParseError(OperationGroupError):
    """A directive line is malformed or uses an unknown directive code."""

    def __init__(self, code: str, params: "tuple[str, ...]", reason: str, operation: Optional[str] = None) -> None:
        directive = " ".join(("--", code, *params))
        super().__init__(f"invalid directive `{directive}`: {reason}", operation=operation)
        self.code = code
        self.params = params
        self.reason = reason


class InvalidSqlError(OperationGroupError):
    """The database rejected a statement with an error outside the expected whitelist."""

    def __init__(
        self,
        statement_index: int,
        diagnostic: str,
        sqlstate: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        code = f" [{sqlstate}]" if sqlstate else ""
        super().__init__(
            f"operation contained invalid SQL in statement {statement_index + 1}{code}: {diagnostic}",
            operation=operation,
        )
        self.statement_index = statement_index
        self.diagnostic = diagnostic
        self.sqlstate = sqlstate


class MismatchedParameterTypeError(OperationGroupError):
    """A parameter position resolved to two different types within one operation."""

    def __init__(
        self,
        statement_index: int,
        param_index: int,
        expected: str,
        actual: str,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"operation contained mismatched parameters in statement {statement_index + 1} "
            f"parameter ${param_index + 1}, {actual} != {expected}",
            operation=operation,
        )
        self.statement_index = statement_index
        self.param_index = param_index
        self.expected = expected
        self.actual = actual


class UnsupportedParameterError(OperationGroupError):
    """The database reported a parameter type the catalog cannot synthesize."""

    def __init__(self, statement_index: int, param_index: int, db_type: str, operation: Optional[str] = None) -> None:
        super().__init__(
            f"operation contained unsupported parameter in statement {statement_index + 1} "
            f"parameter ${param_index + 1} '{db_type}'",
            operation=operation,
        )
        self.statement_index = statement_index
        self.param_index = param_index
        self.db_type = db_type


@contextmanager
def operation_context(name: str) -> Generator[None, None, None]:
    """Attach ``name`` to any :class:`OperationGroupError` raised inside the block."""
    try:
        yield
    except OperationGroupError as exc:
        if exc.operation is None:
            exc.operation = name
        raise


# -- Database errors --
class DatabaseError(SQLBindError):
    """Error reported by the database while preparing or executing a statement."""

    sqlstate: Optional[str]

    def __init__(self, message: str, sqlstate: Optional[str] = None, diagnostic: Optional[str] = None) -> None:
        super().__init__(detail=message)
        self.sqlstate = sqlstate
        self.diagnostic = diagnostic or message


class IntegrityError(DatabaseError):
    """Data integrity error."""


class UniqueViolationError(IntegrityError):
    """A unique constraint was violated."""


class ForeignKeyViolationError(IntegrityError):
    """A foreign key constraint was violated."""


class CheckViolationError(IntegrityError):
    """A check constraint was violated."""


class NotNullViolationError(IntegrityError):
    """A not-null constraint was violated."""


class SQLParsingError(DatabaseError):
    """Syntax or semantic error reported by the database (SQLSTATE class 42)."""


class DataError(DatabaseError):
    """Invalid data for the target type (SQLSTATE class 22)."""


class DatabaseConnectionError(DatabaseError):
    """The connection to the database failed (SQLSTATE class 08)."""


# -- Environment errors --
class MigrationError(SQLBindError):
    """A migration file could not be read or executed."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(detail=message)
        self.path = path


class DatabaseStartupError(SQLBindError):
    """A disposable database could not be started or reached."""
