"""Live validation of operations against a database.

Every statement is executed with synthesized values. Constraint failures that
synthetic data cannot avoid (foreign key and check violations) are expected;
anything else the database reports marks the statement as invalid SQL.
"""

import logging
import random
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlbind.core.types import SqlTypeName, ValueSynthesizer, from_database
from sqlbind.exceptions import (
    DatabaseError,
    InvalidSqlError,
    OperationGroupError,
    UnsupportedParameterError,
    operation_context,
)
from sqlbind.utils.logging import get_logger, log_with_context

if TYPE_CHECKING:
    from sqlbind.core.group import OperationGroup
    from sqlbind.core.operation import Operation
    from sqlbind.protocols import ValidationDriver

__all__ = (
    "FOREIGN_KEY_VIOLATION",
    "CHECK_VIOLATION",
    "LiveValidator",
    "OutcomeStatus",
    "StatementOutcome",
    "ValidationConfig",
    "ValidationReport",
    "ValidationRun",
)

logger = get_logger("core.validator")

FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    EXPECTED_VIOLATION = "expected_violation"

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationConfig:
    """Settings for :class:`LiveValidator`."""

    expected_sqlstates: "frozenset[str]" = frozenset({FOREIGN_KEY_VIOLATION, CHECK_VIOLATION})
    """SQLSTATE codes tolerated during execution."""

    seed: Optional[int] = None
    """Seed for the synthesizer's random source, ``None`` for a fresh one."""

    def create_synthesizer(self) -> ValueSynthesizer:
        return ValueSynthesizer(random.Random(self.seed))


class StatementOutcome:
    """Result of executing one statement with synthesized values."""

    __slots__ = ("diagnostic", "duration_ms", "row_count", "sqlstate", "statement_index", "status")

    def __init__(
        self,
        statement_index: int,
        status: OutcomeStatus,
        *,
        row_count: Optional[int] = None,
        sqlstate: Optional[str] = None,
        diagnostic: Optional[str] = None,
        duration_ms: float = 0.0,
    ) -> None:
        self.statement_index = statement_index
        self.status = status
        self.row_count = row_count
        self.sqlstate = sqlstate
        self.diagnostic = diagnostic
        self.duration_ms = duration_ms

    def __repr__(self) -> str:
        return f"StatementOutcome(statement_index={self.statement_index}, status={self.status.value!r})"

    @property
    def is_expected_violation(self) -> bool:
        return self.status is OutcomeStatus.EXPECTED_VIOLATION


@dataclass
class ValidationReport:
    """Outcomes of every statement of one operation."""

    operation: str
    outcomes: "list[StatementOutcome]" = field(default_factory=list)

    @property
    def expected_violations(self) -> "list[StatementOutcome]":
        return [outcome for outcome in self.outcomes if outcome.is_expected_violation]


@dataclass
class ValidationRun:
    """Reports and failures of a batch validation."""

    reports: "list[ValidationReport]" = field(default_factory=list)
    failures: "list[OperationGroupError]" = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class LiveValidator:
    """Executes operations against a live database with synthesized values.

    Validation has side effects. Run it against a disposable database that the
    caller owns exclusively.
    """

    __slots__ = ("config", "driver", "synthesizer")

    def __init__(
        self,
        driver: "ValidationDriver",
        *,
        synthesizer: Optional[ValueSynthesizer] = None,
        config: Optional[ValidationConfig] = None,
    ) -> None:
        self.driver = driver
        self.config = config or ValidationConfig()
        self.synthesizer = synthesizer or self.config.create_synthesizer()

    def validate_statement(
        self,
        operation_name: str,
        statement_index: int,
        statement: str,
        parameter_types: "Sequence[SqlTypeName]",
    ) -> StatementOutcome:
        """Execute a single, already prepared statement.

        Args:
            operation_name: Name of the enclosing operation, for diagnostics.
            statement_index: 0-based index of the statement in its operation.
            statement: Statement text.
            parameter_types: Catalog types of ``$1..$n`` as reported by the database.

        Raises:
            InvalidSqlError: If execution fails with a SQLSTATE outside the expected set.
            UnsupportedTypeError: If a type cannot be synthesized.

        Returns:
            The outcome of the statement.
        """
        values = [self.synthesizer.synthesize(type_name) for type_name in parameter_types]
        start_time = time.perf_counter()
        try:
            row_count = self.driver.execute(statement, values)
        except DatabaseError as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            if exc.sqlstate not in self.config.expected_sqlstates:
                raise InvalidSqlError(statement_index, exc.diagnostic, exc.sqlstate, operation_name) from exc
            log_with_context(
                logger,
                logging.DEBUG,
                f"Statement {statement_index + 1} of {operation_name} hit expected SQLSTATE {exc.sqlstate}",
                operation=operation_name,
                statement_index=statement_index,
                sqlstate=exc.sqlstate,
                duration_ms=duration_ms,
            )
            return StatementOutcome(
                statement_index,
                OutcomeStatus.EXPECTED_VIOLATION,
                sqlstate=exc.sqlstate,
                diagnostic=exc.diagnostic,
                duration_ms=duration_ms,
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_with_context(
            logger,
            logging.DEBUG,
            f"Statement {statement_index + 1} of {operation_name} executed",
            operation=operation_name,
            statement_index=statement_index,
            row_count=row_count,
            duration_ms=duration_ms,
        )
        return StatementOutcome(statement_index, OutcomeStatus.SUCCESS, row_count=row_count, duration_ms=duration_ms)

    def validate(self, operation: "Operation") -> ValidationReport:
        """Prepare and execute every statement of ``operation`` in order.

        Raises:
            InvalidSqlError: If a statement fails to prepare or fails to execute
                with an unexpected SQLSTATE.
            UnsupportedParameterError: If the database reports a type outside the catalog.

        Returns:
            The per statement outcomes.
        """
        report = ValidationReport(operation.name)
        with operation_context(operation.name):
            for statement_index, statement in enumerate(operation.statements):
                try:
                    database_types = self.driver.prepare(statement)
                except DatabaseError as exc:
                    raise InvalidSqlError(statement_index, exc.diagnostic, exc.sqlstate, operation.name) from exc
                parameter_types: list[SqlTypeName] = []
                for position, database_type in enumerate(database_types):
                    type_name = from_database(database_type)
                    if type_name is None:
                        raise UnsupportedParameterError(statement_index, position, database_type, operation.name)
                    parameter_types.append(type_name)
                report.outcomes.append(
                    self.validate_statement(operation.name, statement_index, statement, parameter_types)
                )
        return report

    def validate_groups(self, groups: "Iterable[OperationGroup]") -> ValidationRun:
        """Validate every operation of every group, collecting all failures."""
        run = ValidationRun()
        for group in groups:
            for operation in group:
                try:
                    run.reports.append(self.validate(operation))
                except OperationGroupError as exc:
                    logger.info(
                        "Operation %s failed validation: %s",
                        operation.name,
                        exc.detail,
                        extra={"extra_fields": {"operation": operation.name, "source": group.source}},
                    )
                    run.failures.append(exc)
        logger.info(
            "Validated %d operation(s), %d failed",
            len(run.reports) + len(run.failures),
            len(run.failures),
            extra={"extra_fields": {"succeeded": len(run.reports), "failed": len(run.failures)}},
        )
        return run
