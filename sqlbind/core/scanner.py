"""Positional parameter annotation scanner.

Walks SQL text once, left to right, and reports every ``$N`` placeholder with
the type named by an optional ``::TYPE`` suffix. The scanner knows nothing
about SQL grammar; it only recognizes placeholders and their casts.
"""

from enum import Enum
from typing import Optional

from sqlbind.core.types import SqlTypeName, resolve

__all__ = ("ParameterAnnotation", "ScannerState", "declared_types", "scan_parameters")


class ScannerState(Enum):
    """States of the annotation scanner."""

    NEUTRAL = "NEUTRAL"
    CONSUMING_ORDINAL = "CONSUMING_ORDINAL"
    CONSUMING_SEPARATOR = "CONSUMING_SEPARATOR"
    CONSUMING_TYPE_TOKEN = "CONSUMING_TYPE_TOKEN"


class ParameterAnnotation:
    """A single placeholder occurrence.

    ``ordinal`` is the 1-based number written after ``$`` (``None`` when ``$``
    is directly followed by ``:``), ``offset`` is the index of the ``$``.
    """

    __slots__ = ("offset", "ordinal", "type")

    def __init__(self, ordinal: Optional[int], type: SqlTypeName, offset: int = 0) -> None:  # noqa: A002
        self.ordinal = ordinal
        self.type = type
        self.offset = offset

    def __repr__(self) -> str:
        return f"ParameterAnnotation(ordinal={self.ordinal!r}, type={self.type.value!r}, offset={self.offset})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterAnnotation):
            return NotImplemented
        return (self.ordinal, self.type, self.offset) == (other.ordinal, other.type, other.offset)

    def __hash__(self) -> int:
        return hash((self.ordinal, self.type, self.offset))


class _Scanner:
    __slots__ = ("annotations", "digits", "offset", "state", "token")

    def __init__(self) -> None:
        self.annotations: list[ParameterAnnotation] = []
        self.state = ScannerState.NEUTRAL
        self.digits = ""
        self.token = ""
        self.offset = 0

    def feed(self, index: int, character: str) -> None:
        state = self.state
        if state is ScannerState.NEUTRAL:
            if character == "$":
                self.state = ScannerState.CONSUMING_ORDINAL
                self.digits = ""
                self.offset = index
        elif state is ScannerState.CONSUMING_ORDINAL:
            if "0" <= character <= "9":
                self.digits += character
            elif character == ":":
                self.state = ScannerState.CONSUMING_SEPARATOR
            else:
                self.close()
        elif state is ScannerState.CONSUMING_SEPARATOR:
            if character.isascii() and character.isalpha():
                self.state = ScannerState.CONSUMING_TYPE_TOKEN
                self.token = character
            elif character != ":":
                self.close()
        elif character.isascii() and (character.isalnum() or character in "[]"):
            self.token += character
        else:
            self.close()

    def close(self) -> None:
        """Emit the annotation for the open placeholder, if any, and return to neutral."""
        state = self.state
        ordinal = int(self.digits) if self.digits else None
        if state is ScannerState.CONSUMING_ORDINAL:
            if ordinal is not None:
                self._emit(ordinal, SqlTypeName.UNKNOWN)
        elif state is ScannerState.CONSUMING_SEPARATOR:
            self._emit(ordinal, SqlTypeName.UNKNOWN)
        elif state is ScannerState.CONSUMING_TYPE_TOKEN:
            self._emit(ordinal, resolve(self.token.upper()))
        self.state = ScannerState.NEUTRAL
        self.digits = ""
        self.token = ""

    def _emit(self, ordinal: Optional[int], type_name: SqlTypeName) -> None:
        self.annotations.append(ParameterAnnotation(ordinal, type_name, self.offset))


def scan_parameters(sql: str) -> "list[ParameterAnnotation]":
    """Extract placeholder annotations in order of appearance.

    A bare ``$N`` yields :attr:`SqlTypeName.UNKNOWN`. Occurrences are neither
    grouped nor deduplicated by ordinal.

    Args:
        sql: SQL text.

    Raises:
        UnsupportedTypeError: If a ``::TYPE`` token is not part of the catalog.

    Returns:
        The annotations, in textual order.
    """
    scanner = _Scanner()
    for index, character in enumerate(sql):
        scanner.feed(index, character)
    scanner.close()
    return scanner.annotations


def declared_types(sql: str) -> "list[SqlTypeName]":
    """Return only the types of :func:`scan_parameters`."""
    return [annotation.type for annotation in scan_parameters(sql)]
