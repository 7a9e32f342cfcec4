"""psycopg validation driver.

Statements are prepared and executed through the libpq level API on the
unnamed prepared statement so ``$N`` placeholders reach the server untouched
and the server describes the parameter types it inferred.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from psycopg import errors as pg_errors
from psycopg import pq
from psycopg.adapt import PyFormat, Transformer

from sqlbind.adapters.psycopg.core import create_mapped_exception, database_type_name
from sqlbind.exceptions import DatabaseError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from psycopg.pq.abc import PGresult

    from sqlbind.adapters.psycopg._typing import PsycopgConnection

__all__ = ("PsycopgDriver",)

logger = get_logger("adapters.psycopg")

UNNAMED_STATEMENT = b""

_OK_STATUSES = frozenset({pq.ExecStatus.COMMAND_OK, pq.ExecStatus.TUPLES_OK, pq.ExecStatus.EMPTY_QUERY})


class PsycopgDriver:
    """Implements :class:`~sqlbind.protocols.ValidationDriver` on a psycopg connection.

    The connection should be in autocommit mode: every statement stands on its
    own and a failed statement must not poison the ones after it.
    """

    __slots__ = ("_type_names", "connection")

    def __init__(self, connection: "PsycopgConnection") -> None:
        self.connection = connection
        self._type_names: dict[int, str] = {}

    @property
    def encoding(self) -> str:
        return self.connection.info.encoding

    def _check(self, result: "PGresult") -> "PGresult":
        if result.status in _OK_STATUSES:
            return result
        if result.status == pq.ExecStatus.FATAL_ERROR:
            raise create_mapped_exception(pg_errors.error_from_result(result, encoding=self.encoding))
        msg = f"unsupported result status {pq.ExecStatus(result.status).name}"
        raise DatabaseError(msg)

    def _type_name(self, oid: int) -> str:
        cached = self._type_names.get(oid)
        if cached is not None:
            return cached
        name = database_type_name(oid, self.connection.adapters.types.get(oid))
        if name is None:
            try:
                row = self.connection.execute(
                    "SELECT typname FROM pg_catalog.pg_type WHERE oid = %s", (oid,)
                ).fetchone()
            except pg_errors.Error as exc:
                raise create_mapped_exception(exc) from exc
            name = str(row[0]).upper() if row is not None else str(oid)
        self._type_names[oid] = name
        return name

    def prepare(self, sql: str) -> "list[str]":
        """Prepare ``sql`` and describe its parameters.

        Raises:
            DatabaseError: If the server rejects the statement.

        Returns:
            Upper case type names of ``$1..$n``, arrays as ``NAME[]``.
        """
        pgconn = self.connection.pgconn
        try:
            self._check(pgconn.prepare(UNNAMED_STATEMENT, sql.encode(self.encoding)))
            description = self._check(pgconn.describe_prepared(UNNAMED_STATEMENT))
        except pg_errors.Error as exc:
            raise create_mapped_exception(exc) from exc
        return [self._type_name(description.param_type(index)) for index in range(description.nparams)]

    def execute(self, sql: str, parameters: "Sequence[Any]") -> int:
        """Prepare and run ``sql`` with ``parameters`` sent in text format.

        Raises:
            DatabaseError: If preparation or execution fails.

        Returns:
            The number of rows affected or returned.
        """
        pgconn = self.connection.pgconn
        try:
            self._check(pgconn.prepare(UNNAMED_STATEMENT, sql.encode(self.encoding)))
            transformer = Transformer(self.connection)
            values = transformer.dump_sequence(list(parameters), [PyFormat.TEXT] * len(parameters))
            result = self._check(pgconn.exec_prepared(UNNAMED_STATEMENT, values))
        except pg_errors.Error as exc:
            raise create_mapped_exception(exc) from exc
        logger.debug("Executed statement", extra={"extra_fields": {"parameter_count": len(parameters)}})
        return result.command_tuples or 0

    def execute_script(self, sql: str) -> None:
        """Run a multi statement script, used for migrations."""
        try:
            self.connection.execute(sql)  # type: ignore[arg-type]
        except pg_errors.Error as exc:
            raise create_mapped_exception(exc) from exc
