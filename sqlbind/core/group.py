"""Operation groups: every operation of one SQL document."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from sqlbind.core.operation import Operation, OperationBuilder
from sqlbind.core.splitter import Section, split_sections
from sqlbind.exceptions import DuplicateOperationError, OperationGroupError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.core.validator import LiveValidator
    from sqlbind.protocols import ValidationDriver

__all__ = ("OperationGroup", "OperationGroupParser", "ParseResult")

logger = get_logger("core.group")


@dataclass(frozen=True)
class OperationGroup:
    """Ordered operations parsed from one document."""

    operations: "tuple[Operation, ...]"
    source: Optional[str] = None
    namespace: Optional[str] = None

    def __iter__(self) -> "Iterator[Operation]":
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __getitem__(self, name: str) -> Operation:
        for operation in self.operations:
            if operation.name == name:
                return operation
        raise KeyError(name)

    @property
    def names(self) -> "list[str]":
        return [operation.name for operation in self.operations]

    def qualified_name(self, operation: Operation) -> str:
        return f"{self.namespace}.{operation.name}" if self.namespace else operation.name


@dataclass
class ParseResult:
    """Operations that were built and the failures of those that were not."""

    group: OperationGroup
    failures: "list[OperationGroupError]" = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def _check_duplicate_names(sections: "list[Section]") -> None:
    seen: set[str] = set()
    for section in sections:
        if section.name in seen:
            raise DuplicateOperationError(section.name)
        seen.add(section.name)


class OperationGroupParser:
    """Turns a document into an :class:`OperationGroup`.

    Operations are built in document order. A validator, when given, runs
    each statement as soon as it has been prepared.
    """

    __slots__ = ("builder", "namespace", "source")

    def __init__(
        self,
        driver: "ValidationDriver",
        *,
        validator: "Optional[LiveValidator]" = None,
        source: Optional[str] = None,
        namespace: Optional[str] = None,
    ) -> None:
        self.builder = OperationBuilder(driver, validator=validator)
        self.source = source
        self.namespace = namespace

    def _sections(self, document: str) -> "list[Section]":
        sections = split_sections(document)
        _check_duplicate_names(sections)
        return sections

    def parse(self, document: str) -> OperationGroup:
        """Build every operation, stopping at the first failure.

        Raises:
            OperationGroupError: The first document or operation level error.
        """
        operations = tuple(self.builder.build(section, source=self.source) for section in self._sections(document))
        return OperationGroup(operations, source=self.source, namespace=self.namespace)

    def parse_all(self, document: str) -> ParseResult:
        """Build every operation, collecting operation level failures.

        Raises:
            NoHeadersError: If the document has no headers.
            HeaderBodyMismatchError: If headers and bodies cannot be paired.
            DuplicateOperationError: If two headers share a name.
        """
        operations: list[Operation] = []
        failures: list[OperationGroupError] = []
        for section in self._sections(document):
            try:
                operations.append(self.builder.build(section, source=self.source))
            except OperationGroupError as exc:
                logger.info(
                    "Operation %s failed: %s",
                    section.name,
                    exc.detail,
                    extra={
                        "extra_fields": {
                            "operation": section.name,
                            "source": self.source,
                            "line": section.start_line,
                            "error_type": type(exc).__name__,
                        }
                    },
                )
                failures.append(exc)
        group = OperationGroup(tuple(operations), source=self.source, namespace=self.namespace)
        return ParseResult(group, failures)
