"""Language neutral binding descriptors handed to renderers."""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

import msgspec

from sqlbind.core.types import SqlTypeName, python_type

if TYPE_CHECKING:
    from sqlbind.core.group import OperationGroup
    from sqlbind.core.operation import Operation

__all__ = ("BindingDescriptor", "BindingParameter", "emit", "emit_all", "emit_group")


class BindingParameter(msgspec.Struct, frozen=True):
    position: int
    """1-based, matches ``$N``."""
    type: SqlTypeName
    optional: bool = False
    python_type: str = ""


class BindingDescriptor(msgspec.Struct, frozen=True):
    """Everything a renderer needs to generate bindings for one operation."""

    name: str
    statements: "tuple[str, ...]"
    parameters: "tuple[BindingParameter, ...]" = ()
    namespace: Optional[str] = None
    source: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    def to_dict(self) -> "dict[str, Any]":
        return msgspec.to_builtins(self)


def emit(operation: "Operation", *, namespace: Optional[str] = None) -> BindingDescriptor:
    """Describe ``operation`` for a renderer.

    Pure: touches neither the database nor the filesystem.
    """
    parameters = tuple(
        BindingParameter(
            position=position + 1,
            type=type_name,
            optional=operation.is_optional(position),
            python_type=python_type(type_name),
        )
        for position, type_name in enumerate(operation.parameters)
    )
    return BindingDescriptor(
        name=operation.name,
        statements=operation.statements,
        parameters=parameters,
        namespace=namespace,
        source=operation.source,
    )


def emit_group(group: "OperationGroup") -> "list[BindingDescriptor]":
    return [emit(operation, namespace=group.namespace) for operation in group]


def emit_all(groups: "Iterable[OperationGroup]") -> "list[BindingDescriptor]":
    return [descriptor for group in groups for descriptor in emit_group(group)]
