"""Split SQL documents into named sections and sections into statements."""

import re
from typing import Optional

from sqlbind.exceptions import HeaderBodyMismatchError, NoHeadersError
from sqlbind.utils.text import to_identifier

__all__ = ("HEADER_PATTERN", "Section", "normalize_operation_name", "split_sections", "split_statements")

# Matches: --- operation title
HEADER_PATTERN = re.compile(r"^--- (?P<title>.+)$", re.MULTILINE)
STATEMENT_TERMINATOR = ";"
# Splits after every terminator, keeping it on the statement it ends.
_STATEMENT_SPLIT_PATTERN = re.compile(r"(?<=;)")


class Section:
    """The text owned by one ``--- title`` header.

    ``start_line`` is the 1-based line number of the header in its document.
    """

    __slots__ = ("body", "name", "start_line", "title")

    def __init__(self, title: str, body: str, start_line: int = 1, name: "Optional[str]" = None) -> None:
        self.title = title
        self.name = name if name is not None else normalize_operation_name(title)
        self.body = body
        self.start_line = start_line

    def __repr__(self) -> str:
        return f"Section(name={self.name!r}, start_line={self.start_line})"


def normalize_operation_name(title: str) -> str:
    """Turn a header title into the operation name.

    Args:
        title: Free text following ``--- ``.

    Returns:
        A valid Python identifier, invalid characters mapped to ``_``.
    """
    return to_identifier(title.strip())


def split_sections(document: str) -> "list[Section]":
    """Partition ``document`` at its header lines.

    Text before the first header is discarded. Each header owns everything up
    to the next header or the end of the document.

    Args:
        document: Full SQL document text.

    Raises:
        NoHeadersError: If the document has no header line.
        HeaderBodyMismatchError: If headers and bodies cannot be paired.

    Returns:
        One section per header, in document order.
    """
    headers = list(HEADER_PATTERN.finditer(document))
    if not headers:
        raise NoHeadersError
    bodies = HEADER_PATTERN.split(document)[2::2]
    if len(headers) != len(bodies):
        raise HeaderBodyMismatchError(len(headers), len(bodies))
    return [
        Section(
            title=header.group("title").strip(),
            body=body,
            start_line=document.count("\n", 0, header.start()) + 1,
        )
        for header, body in zip(headers, bodies)
    ]


def split_statements(body: str) -> "list[str]":
    """Split a section body into statements.

    ``;`` always terminates a statement and stays attached to it. Each
    statement keeps its text as written apart from surrounding whitespace.
    Fragments holding nothing but the terminator are dropped; a trailing
    fragment without ``;`` is kept.
    """
    statements = (fragment.strip() for fragment in _STATEMENT_SPLIT_PATTERN.split(body))
    return [statement for statement in statements if statement.rstrip(STATEMENT_TERMINATOR).strip()]
