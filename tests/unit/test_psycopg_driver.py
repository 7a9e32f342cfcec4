"""Unit tests for the psycopg driver's error handling, with libpq replaced by stubs."""

from types import SimpleNamespace
from typing import Any, Optional

import pytest
from psycopg import errors as pg_errors
from psycopg import pq

from sqlbind.adapters.psycopg import PsycopgDriver
from sqlbind.exceptions import DatabaseConnectionError, DatabaseError

CONNECTION_CLOSED = "the connection is closed"


class StubResult:
    status = pq.ExecStatus.COMMAND_OK
    command_tuples = 0

    def __init__(self, param_types: "tuple[int, ...]" = ()) -> None:
        self.param_types = param_types

    @property
    def nparams(self) -> int:
        return len(self.param_types)

    def param_type(self, index: int) -> int:
        return self.param_types[index]


class StubPGconn:
    def __init__(self, fail_on: "set[str]", param_types: "tuple[int, ...]" = ()) -> None:
        self.fail_on = fail_on
        self.param_types = param_types

    def _call(self, name: str, result: StubResult) -> StubResult:
        if name in self.fail_on:
            raise pg_errors.OperationalError(CONNECTION_CLOSED)
        return result

    def prepare(self, name: bytes, sql: bytes) -> StubResult:
        return self._call("prepare", StubResult())

    def describe_prepared(self, name: bytes) -> StubResult:
        return self._call("describe_prepared", StubResult(self.param_types))

    def exec_prepared(self, name: bytes, values: Any) -> StubResult:
        return self._call("exec_prepared", StubResult())


class StubConnection:
    def __init__(self, pgconn: StubPGconn, *, catalog_error: Optional[Exception] = None) -> None:
        self.pgconn = pgconn
        self.info = SimpleNamespace(encoding="utf-8")
        self.adapters = SimpleNamespace(types={})
        self.catalog_error = catalog_error

    def execute(self, query: str, params: Any = None) -> Any:
        if self.catalog_error is not None:
            raise self.catalog_error
        return SimpleNamespace(fetchone=lambda: ("widget_kind",))


class StubTransformer:
    def __init__(self, context: Any) -> None:
        self.context = context

    def dump_sequence(self, values: "list[Any]", formats: "list[Any]") -> "list[bytes]":
        return [str(value).encode() for value in values]


@pytest.fixture(autouse=True)
def stub_transformer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sqlbind.adapters.psycopg.driver.Transformer", StubTransformer)


def make_driver(
    *fail_on: str, param_types: "tuple[int, ...]" = (), catalog_error: Optional[Exception] = None
) -> PsycopgDriver:
    connection = StubConnection(StubPGconn(set(fail_on), param_types), catalog_error=catalog_error)
    return PsycopgDriver(connection)  # type: ignore[arg-type]


@pytest.mark.parametrize("failing_call", ["prepare", "describe_prepared"])
def test_prepare_maps_psycopg_errors(failing_call: str) -> None:
    driver = make_driver(failing_call)

    with pytest.raises(DatabaseConnectionError) as exc_info:
        driver.prepare("SELECT 1")

    assert exc_info.value.diagnostic == CONNECTION_CLOSED
    assert isinstance(exc_info.value.__cause__, pg_errors.OperationalError)


@pytest.mark.parametrize("failing_call", ["prepare", "exec_prepared"])
def test_execute_maps_psycopg_errors(failing_call: str) -> None:
    driver = make_driver(failing_call)

    with pytest.raises(DatabaseConnectionError):
        driver.execute("SELECT 1", [])


def test_type_lookup_maps_psycopg_errors() -> None:
    driver = make_driver(param_types=(90001,), catalog_error=pg_errors.OperationalError(CONNECTION_CLOSED))

    with pytest.raises(DatabaseError) as exc_info:
        driver.prepare("SELECT $1")

    assert isinstance(exc_info.value.__cause__, pg_errors.OperationalError)


def test_unknown_types_are_named_from_the_catalog() -> None:
    driver = make_driver(param_types=(90001,))

    assert driver.prepare("SELECT $1") == ["WIDGET_KIND"]
    assert driver.execute("SELECT 1", []) == 0
