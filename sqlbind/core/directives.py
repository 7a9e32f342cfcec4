"""Comment directives inside operation bodies.

A directive is a comment line holding a code followed by ``$``-prefixed
arguments, e.g. ``-- opt $2``. Every other ``--`` line is a plain comment.
Both kinds are removed from the body before it is split into statements.
"""

import re
from typing import Optional, Union

from sqlbind.exceptions import OperatorParseError

__all__ = (
    "DIRECTIVE_PATTERN",
    "Directive",
    "OptionalParameter",
    "ParsedDirectives",
    "parse_directive",
    "parse_directives",
)

# Matches: -- code $arg [$arg ...]
DIRECTIVE_PATTERN = re.compile(r"^\s*--\s+(?P<code>[A-Za-z_]\w*)(?P<params>(?:\s+\$\S*)+)\s*$")
COMMENT_LINE_PATTERN = re.compile(r"^\s*--")
COMMENT_WORDS_PATTERN = re.compile(r"^\s*--\s+(?P<code>[A-Za-z_]\w*)(?P<rest>.*)$")
PARAMETER_REFERENCE_PATTERN = re.compile(r"^\$(?P<position>[0-9]+)$")


class OptionalParameter:
    """Marks the parameter at 0-based ``position`` as optional."""

    __slots__ = ("position",)

    code = "opt"

    def __init__(self, position: int) -> None:
        self.position = position

    def __repr__(self) -> str:
        return f"OptionalParameter(position={self.position})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptionalParameter):
            return NotImplemented
        return self.position == other.position

    def __hash__(self) -> int:
        return hash((self.code, self.position))


Directive = Union[OptionalParameter]


class ParsedDirectives:
    """Directives found in a body and the body with comment lines removed."""

    __slots__ = ("directives", "sql")

    def __init__(self, directives: "list[Directive]", sql: str) -> None:
        self.directives = directives
        self.sql = sql

    @property
    def optional_positions(self) -> "frozenset[int]":
        return frozenset(
            directive.position for directive in self.directives if isinstance(directive, OptionalParameter)
        )


def _parse_optional(code: str, params: "tuple[str, ...]") -> OptionalParameter:
    if len(params) != 1:
        raise OperatorParseError(code, params, f"expected exactly one parameter, found {len(params)}")
    match = PARAMETER_REFERENCE_PATTERN.match(params[0])
    if match is None:
        raise OperatorParseError(code, params, "expected a parameter reference like `$1`")
    position = int(match.group("position"))
    if position < 1:
        raise OperatorParseError(code, params, "parameter positions start at `$1`")
    return OptionalParameter(position - 1)


_PARSERS = {"opt": _parse_optional}


def parse_directive(line: str) -> "Optional[Directive]":
    """Parse a single line.

    A comment whose first word is a known directive code is always a
    directive, so ``-- opt`` without an argument is an error rather than a
    comment.

    Returns:
        The directive, or ``None`` when the line is not a directive.

    Raises:
        OperatorParseError: If the line is a directive with an unknown code or bad arguments.
    """
    match = COMMENT_WORDS_PATTERN.match(line)
    if match is None:
        return None
    code = match.group("code")
    params = tuple(match.group("rest").split())
    parser = _PARSERS.get(code.lower())
    if parser is not None:
        return parser(code, params)
    if DIRECTIVE_PATTERN.match(line):
        raise OperatorParseError(code, params, "unknown directive")
    return None


def parse_directives(body: str) -> ParsedDirectives:
    """Collect directives and strip every comment line from ``body``.

    Args:
        body: Operation body text.

    Raises:
        OperatorParseError: If a directive line is malformed.

    Returns:
        The directives, in order, and the remaining SQL.
    """
    directives: list[Directive] = []
    kept: list[str] = []
    for line in body.splitlines():
        directive = parse_directive(line)
        if directive is not None:
            directives.append(directive)
        elif not COMMENT_LINE_PATTERN.match(line):
            kept.append(line)
    return ParsedDirectives(directives, "\n".join(kept))
