"""Unit tests for comment directives."""

import pytest

from sqlbind.core.directives import OptionalParameter, parse_directive, parse_directives
from sqlbind.exceptions import OperatorParseError


@pytest.mark.parametrize(
    ("line", "position"),
    [
        ("-- opt $1", 0),
        ("-- opt $2", 1),
        ("   --   opt   $10  ", 9),
        ("-- OPT $3", 2),
    ],
)
def test_optional_directive(line: str, position: int) -> None:
    assert parse_directive(line) == OptionalParameter(position)


@pytest.mark.parametrize(
    "line",
    [
        "SELECT 1;",
        "-- just a comment",
        "-- option values are trimmed",
        "--opt $1",
        "---",
        "",
    ],
)
def test_non_directive_lines(line: str) -> None:
    assert parse_directive(line) is None


@pytest.mark.parametrize(
    ("line", "reason"),
    [
        ("-- opt", "expected exactly one parameter, found 0"),
        ("-- opt $1 $2", "expected exactly one parameter, found 2"),
        ("-- opt 1", "expected a parameter reference like `$1`"),
        ("-- opt $x", "expected a parameter reference like `$1`"),
        ("-- opt $0", "parameter positions start at `$1`"),
        ("-- frobnicate $1", "unknown directive"),
    ],
)
def test_malformed_directives(line: str, reason: str) -> None:
    with pytest.raises(OperatorParseError) as exc_info:
        parse_directive(line)

    assert exc_info.value.reason == reason
    assert exc_info.value.operation is None


def test_operator_parse_error_message_names_the_directive() -> None:
    with pytest.raises(OperatorParseError) as exc_info:
        parse_directive("-- opt $1 $2")

    assert exc_info.value.code == "opt"
    assert exc_info.value.params == ("$1", "$2")
    assert "`-- opt $1 $2`" in str(exc_info.value)


def test_parse_directives_strips_comment_lines() -> None:
    body = """
-- Inserts a widget.
-- opt $2
INSERT INTO widgets(id, name)
-- values follow
VALUES ($1, $2);
"""

    parsed = parse_directives(body)

    assert parsed.directives == [OptionalParameter(1)]
    assert parsed.optional_positions == frozenset({1})
    assert "--" not in parsed.sql
    assert parsed.sql.split() == ["INSERT", "INTO", "widgets(id,", "name)", "VALUES", "($1,", "$2);"]


def test_parse_directives_keeps_repeated_directives() -> None:
    parsed = parse_directives("-- opt $1\n-- opt $1\nSELECT $1")

    assert parsed.directives == [OptionalParameter(0), OptionalParameter(0)]
    assert parsed.optional_positions == frozenset({0})
    assert parsed.sql == "SELECT $1"


def test_parse_directives_propagates_errors() -> None:
    with pytest.raises(OperatorParseError):
        parse_directives("SELECT 1;\n-- opt $one\n")


def test_trailing_comments_are_not_stripped() -> None:
    parsed = parse_directives("SELECT 1 -- opt $1")

    assert parsed.directives == []
    assert parsed.sql == "SELECT 1 -- opt $1"
