"""Operation descriptors and the builder that reconciles their parameter types."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from sqlbind.core.directives import parse_directives
from sqlbind.core.scanner import ParameterAnnotation, scan_parameters
from sqlbind.core.splitter import Section, split_statements
from sqlbind.core.types import SqlTypeName, from_database, same_family
from sqlbind.exceptions import (
    DatabaseError,
    InvalidSqlError,
    MismatchedParameterTypeError,
    NoStatementsError,
    OperatorParseError,
    UnsupportedParameterError,
    operation_context,
)
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.core.validator import LiveValidator, StatementOutcome
    from sqlbind.protocols import ValidationDriver

__all__ = ("Operation", "OperationBuilder")

logger = get_logger("core.operation")


@dataclass(frozen=True)
class Operation:
    """A named sequence of statements sharing one ``$N`` numbering space."""

    name: str
    statements: "tuple[str, ...]"
    parameters: "tuple[SqlTypeName, ...]"
    """Resolved parameter types, index 0 is ``$1``."""
    optional: "frozenset[int]" = frozenset()
    """0-based positions marked with ``-- opt``."""
    annotations: "tuple[tuple[ParameterAnnotation, ...], ...]" = ()
    """Scanner hits per statement."""
    title: Optional[str] = None
    source: Optional[str] = None
    start_line: int = 1
    outcomes: "tuple[StatementOutcome, ...]" = field(default=(), compare=False)
    """Validation outcomes recorded while the operation was built, if validated."""

    def is_optional(self, position: int) -> bool:
        return position in self.optional

    @property
    def validated(self) -> bool:
        return len(self.outcomes) == len(self.statements)


class _Reconciler:
    """Running parameter state of one operation while its statements are processed."""

    __slots__ = ("declared", "operation", "parameters")

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self.declared: dict[int, SqlTypeName] = {}
        self.parameters: list[SqlTypeName] = []

    def declare(self, statement_index: int, annotations: "list[ParameterAnnotation]") -> None:
        """Record annotated types; the first annotation of an ordinal wins."""
        for annotation in annotations:
            if annotation.ordinal is None or annotation.type is SqlTypeName.UNKNOWN:
                continue
            expected = self.declared.setdefault(annotation.ordinal, annotation.type)
            if expected is not annotation.type:
                raise MismatchedParameterTypeError(
                    statement_index, annotation.ordinal - 1, str(expected), str(annotation.type), self.operation
                )

    def extend(self, statement_index: int, database_types: "list[str]") -> "list[SqlTypeName]":
        """Reconcile one statement's database types with the running vector.

        Returns:
            The catalog types of the statement's parameters.
        """
        resolved: list[SqlTypeName] = []
        for position, database_type in enumerate(database_types):
            type_name = from_database(database_type)
            if type_name is None:
                raise UnsupportedParameterError(statement_index, position, database_type, self.operation)
            if position < len(self.parameters):
                expected = self.parameters[position]
                if expected is not type_name:
                    raise MismatchedParameterTypeError(
                        statement_index, position, str(expected), str(type_name), self.operation
                    )
            else:
                self.parameters.append(type_name)
            resolved.append(type_name)
        return resolved

    def check_declarations(
        self, statement_index: int, annotations: "list[ParameterAnnotation]", resolved: "list[SqlTypeName]"
    ) -> None:
        """Fail when an annotation disagrees with the type the database inferred."""
        for annotation in annotations:
            if annotation.ordinal is None or annotation.type is SqlTypeName.UNKNOWN:
                continue
            position = annotation.ordinal - 1
            if 0 <= position < len(resolved) and not same_family(annotation.type, resolved[position]):
                raise MismatchedParameterTypeError(
                    statement_index, position, str(annotation.type), str(resolved[position]), self.operation
                )

    def emitted(self) -> "tuple[SqlTypeName, ...]":
        return tuple(self.declared.get(position + 1, type_name) for position, type_name in enumerate(self.parameters))


class OperationBuilder:
    """Builds :class:`Operation` objects from splitter sections.

    Every statement is prepared against ``driver`` to learn the authoritative
    parameter count and types. With a ``validator`` attached each statement is
    also executed right after it is prepared, so later statements see the side
    effects of earlier ones.

    Example:
        ```python
        builder = OperationBuilder(driver, validator=LiveValidator(driver))
        for section in split_sections(document):
            operation = builder.build(section)
        ```
    """

    __slots__ = ("driver", "validator")

    def __init__(self, driver: "ValidationDriver", *, validator: "Optional[LiveValidator]" = None) -> None:
        self.driver = driver
        self.validator = validator

    def build(self, section: Section, *, source: Optional[str] = None) -> Operation:
        """Build and, when a validator is attached, validate one operation.

        Args:
            section: Section produced by :func:`~sqlbind.core.splitter.split_sections`.
            source: Optional path of the document, kept for diagnostics.

        Raises:
            NoStatementsError: If the body has no statements.
            UnsupportedTypeError: If an annotation names an unknown type.
            OperatorParseError: If a directive is malformed or out of range.
            InvalidSqlError: If the database rejects a statement.
            MismatchedParameterTypeError: If a position resolves to two types.
            UnsupportedParameterError: If the database reports an unsupported type.

        Returns:
            The immutable operation.
        """
        name = section.name
        with operation_context(name):
            parsed = parse_directives(section.body)
            statements = split_statements(parsed.sql)
            if not statements:
                raise NoStatementsError(name)

            reconciler = _Reconciler(name)
            annotations: list[tuple[ParameterAnnotation, ...]] = []
            outcomes: list[StatementOutcome] = []
            for statement_index, statement in enumerate(statements):
                statement_annotations = scan_parameters(statement)
                annotations.append(tuple(statement_annotations))
                reconciler.declare(statement_index, statement_annotations)

                try:
                    database_types = self.driver.prepare(statement)
                except DatabaseError as exc:
                    raise InvalidSqlError(statement_index, exc.diagnostic, exc.sqlstate, name) from exc
                resolved = reconciler.extend(statement_index, database_types)
                reconciler.check_declarations(statement_index, statement_annotations, resolved)
                logger.debug(
                    "Prepared statement %d of %s",
                    statement_index + 1,
                    name,
                    extra={"extra_fields": {"operation": name, "statement_index": statement_index}},
                )

                if self.validator is not None:
                    outcomes.append(self.validator.validate_statement(name, statement_index, statement, resolved))

            parameters = reconciler.emitted()
            optional = parsed.optional_positions
            for position in sorted(optional):
                if position >= len(parameters):
                    raise OperatorParseError(
                        "opt",
                        (f"${position + 1}",),
                        f"operation has {len(parameters)} parameter(s)",
                        name,
                    )

        return Operation(
            name=name,
            statements=tuple(statements),
            parameters=parameters,
            optional=optional,
            annotations=tuple(annotations),
            title=section.title,
            source=source,
            start_line=section.start_line,
            outcomes=tuple(outcomes),
        )
