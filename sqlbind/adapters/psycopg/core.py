"""psycopg adapter helpers: error mapping and type name resolution."""

from typing import TYPE_CHECKING, Optional

from psycopg import errors as pg_errors

from sqlbind.exceptions import (
    CheckViolationError,
    DataError,
    DatabaseConnectionError,
    DatabaseError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    SQLParsingError,
    UniqueViolationError,
)

if TYPE_CHECKING:
    from psycopg import Error as PsycopgError
    from psycopg.types import TypeInfo

__all__ = ("create_mapped_exception", "database_type_name", "map_sqlstate_to_exception")

_SQLSTATE_EXCEPTIONS: "dict[str, type[DatabaseError]]" = {
    "23503": ForeignKeyViolationError,
    "23514": CheckViolationError,
    "23505": UniqueViolationError,
    "23502": NotNullViolationError,
}

_SQLSTATE_CLASS_EXCEPTIONS: "dict[str, type[DatabaseError]]" = {
    "23": IntegrityError,
    "42": SQLParsingError,
    "22": DataError,
    "08": DatabaseConnectionError,
}


def map_sqlstate_to_exception(sqlstate: Optional[str]) -> "type[DatabaseError]":
    """Return the exception class for a SQLSTATE code.

    Exact codes are looked up first, then the two character class.
    """
    if not sqlstate:
        return DatabaseError
    exact = _SQLSTATE_EXCEPTIONS.get(sqlstate)
    if exact is not None:
        return exact
    return _SQLSTATE_CLASS_EXCEPTIONS.get(sqlstate[:2], DatabaseError)


def create_mapped_exception(error: "PsycopgError") -> DatabaseError:
    """Map a psycopg exception to a sqlbind exception.

    This is a factory function that returns an exception instance rather than
    raising, so callers can ``raise ... from error``.

    Args:
        error: The psycopg exception to map

    Returns:
        A sqlbind exception carrying the SQLSTATE and the primary diagnostic message
    """
    sqlstate = error.sqlstate
    diagnostic = error.diag.message_primary or str(error).strip()
    if sqlstate is None and isinstance(error, pg_errors.OperationalError):
        error_class: type[DatabaseError] = DatabaseConnectionError
    else:
        error_class = map_sqlstate_to_exception(sqlstate)
    message = f"PostgreSQL error [{sqlstate}]: {diagnostic}" if sqlstate else f"PostgreSQL error: {diagnostic}"
    exc = error_class(message, sqlstate=sqlstate, diagnostic=diagnostic)
    exc.__cause__ = error
    return exc


def database_type_name(oid: int, info: "Optional[TypeInfo]") -> Optional[str]:
    """Name a parameter type from its oid, ``INT4[]`` style for arrays.

    Returns:
        The name, or ``None`` when ``info`` is missing.
    """
    if info is None:
        return None
    if oid == info.array_oid:
        return f"{info.name.upper()}[]"
    return info.name.upper()
