"""Runtime-checkable protocols for the collaborators of the validation pipeline."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

__all__ = ("ScriptExecutor", "ValidationDriver")


@runtime_checkable
class ValidationDriver(Protocol):
    """A database session able to describe and run positional ``$N`` statements.

    Implementations raise :class:`sqlbind.exceptions.DatabaseError` subclasses
    carrying the SQLSTATE reported by the server.
    """

    def prepare(self, sql: str) -> "list[str]":
        """Prepare ``sql`` and return the database type names of ``$1..$n``."""
        ...

    def execute(self, sql: str, parameters: "Sequence[Any]") -> int:
        """Execute ``sql`` with ``parameters`` bound positionally and return the affected row count."""
        ...


@runtime_checkable
class ScriptExecutor(Protocol):
    """A database session able to run a multi statement script."""

    def execute_script(self, sql: str) -> None:
        """Execute every statement of ``sql``."""
        ...
