"""Unit tests for the psycopg error mapping and type naming helpers."""

import pytest
from psycopg import errors as pg_errors
from psycopg import postgres

from sqlbind.adapters.psycopg import PsycopgConfig, database_url
from sqlbind.adapters.psycopg.config import DATABASE_URL_ENV, DEFAULT_DATABASE_URL
from sqlbind.adapters.psycopg.core import create_mapped_exception, database_type_name, map_sqlstate_to_exception
from sqlbind.exceptions import (
    CheckViolationError,
    DatabaseConnectionError,
    DatabaseError,
    DataError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    SQLParsingError,
    UniqueViolationError,
)


@pytest.mark.parametrize(
    ("sqlstate", "expected"),
    [
        ("23503", ForeignKeyViolationError),
        ("23514", CheckViolationError),
        ("23505", UniqueViolationError),
        ("23502", NotNullViolationError),
        ("23P01", IntegrityError),
        ("42P01", SQLParsingError),
        ("42601", SQLParsingError),
        ("22P02", DataError),
        ("08006", DatabaseConnectionError),
        ("57P01", DatabaseError),
        (None, DatabaseError),
        ("", DatabaseError),
    ],
)
def test_map_sqlstate_to_exception(sqlstate: "str | None", expected: "type[DatabaseError]") -> None:
    assert map_sqlstate_to_exception(sqlstate) is expected


def test_create_mapped_exception_keeps_sqlstate_and_cause() -> None:
    error = pg_errors.lookup("23503")("insert violates foreign key constraint")

    mapped = create_mapped_exception(error)

    assert isinstance(mapped, ForeignKeyViolationError)
    assert mapped.sqlstate == "23503"
    assert mapped.diagnostic == "insert violates foreign key constraint"
    assert str(mapped) == "PostgreSQL error [23503]: insert violates foreign key constraint"
    assert mapped.__cause__ is error


def test_create_mapped_exception_for_connection_failures() -> None:
    mapped = create_mapped_exception(pg_errors.OperationalError("connection refused"))

    assert isinstance(mapped, DatabaseConnectionError)
    assert mapped.sqlstate is None
    assert str(mapped) == "PostgreSQL error: connection refused"


def test_database_type_name() -> None:
    info = postgres.types.get("int4")
    assert info is not None

    assert database_type_name(info.oid, info) == "INT4"
    assert database_type_name(info.array_oid, info) == "INT4[]"
    assert database_type_name(info.oid, None) is None


def test_database_url_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)
    assert database_url() == DEFAULT_DATABASE_URL

    monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://app@db:5433/app")
    assert database_url() == "postgresql://app@db:5433/app"
    assert PsycopgConfig().connection_config == {"conninfo": "postgresql://app@db:5433/app"}


def test_explicit_connection_parameters_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://app@db:5433/app")

    config = PsycopgConfig({"host": "localhost", "port": 5432, "user": "postgres"})

    assert config.connection_config_dict == {"host": "localhost", "port": 5432, "user": "postgres"}


def test_unreachable_server_is_a_connection_error() -> None:
    config = PsycopgConfig({"conninfo": "postgresql://postgres@127.0.0.1:1/postgres", "connect_timeout": 1})

    with pytest.raises(DatabaseConnectionError):
        config.create_connection()
