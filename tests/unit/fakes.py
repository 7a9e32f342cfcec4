"""In-memory stand-ins for the database collaborators."""

import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from sqlbind.exceptions import DatabaseError

PLACEHOLDER = re.compile(r"\$(?P<ordinal>\d+)(?:::(?P<type>[A-Za-z][A-Za-z0-9]*(?:\[\])?))?")


class FakeDriver:
    """Implements the driver protocol without a database.

    Unless ``types`` names a statement, ``prepare`` reports the annotated type of
    each ``$N`` (``default_type`` for bare placeholders), like Postgres does for casts.
    """

    def __init__(
        self,
        types: "Optional[Mapping[str, Sequence[str]]]" = None,
        *,
        prepare_errors: "Optional[Mapping[str, DatabaseError]]" = None,
        execute_errors: "Optional[Mapping[str, DatabaseError]]" = None,
        script_errors: "Optional[Mapping[str, DatabaseError]]" = None,
        default_type: str = "text",
    ) -> None:
        self.types = dict(types or {})
        self.prepare_errors = dict(prepare_errors or {})
        self.execute_errors = dict(execute_errors or {})
        self.script_errors = dict(script_errors or {})
        self.default_type = default_type
        self.calls: list[tuple[str, str]] = []
        self.executed: list[tuple[str, list[Any]]] = []
        self.scripts: list[str] = []

    def prepare(self, sql: str) -> "list[str]":
        self.calls.append(("prepare", sql))
        if sql in self.prepare_errors:
            raise self.prepare_errors[sql]
        if sql in self.types:
            return list(self.types[sql])
        found: dict[int, str] = {}
        for match in PLACEHOLDER.finditer(sql):
            found.setdefault(int(match.group("ordinal")), (match.group("type") or self.default_type).lower())
        return [found.get(ordinal, self.default_type) for ordinal in range(1, max(found, default=0) + 1)]

    def execute(self, sql: str, parameters: "Sequence[Any]") -> int:
        self.calls.append(("execute", sql))
        self.executed.append((sql, list(parameters)))
        if sql in self.execute_errors:
            raise self.execute_errors[sql]
        return 1

    def execute_script(self, sql: str) -> None:
        self.scripts.append(sql)
        for marker, error in self.script_errors.items():
            if marker in sql:
                raise error
