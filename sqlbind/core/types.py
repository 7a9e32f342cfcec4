"""SQL type catalog.

Closed set of the Postgres parameter types sqlbind understands, together with
the synthetic value generator used by live validation and the Python type used
by the rendered bindings.
"""

import random
import string
import uuid
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Callable, Optional

from sqlbind.exceptions import UnsupportedTypeError

__all__ = (
    "ARRAY_LENGTH",
    "REFERENCE_DATE",
    "REFERENCE_DATETIME",
    "REFERENCE_TIME",
    "REFERENCE_TIMESTAMPTZ",
    "TEXT_LENGTH",
    "SqlTypeName",
    "ValueSynthesizer",
    "element_type",
    "from_database",
    "is_array",
    "python_type",
    "resolve",
    "same_family",
)

TEXT_LENGTH = 32
ARRAY_LENGTH = 4

# Fixed temporal constants, a leap day late in the evening so that an accidental
# local-time conversion shows up as a different date.
REFERENCE_DATETIME = datetime(2024, 2, 29, 21, 30, 5, 123456)
REFERENCE_TIMESTAMPTZ = REFERENCE_DATETIME.replace(tzinfo=timezone.utc)
REFERENCE_DATE = date(2024, 2, 29)
REFERENCE_TIME = time(21, 30, 5, 123456)

_ALPHANUMERIC = string.ascii_letters + string.digits


class SqlTypeName(str, Enum):
    """Canonical parameter type names."""

    BOOL = "BOOL"
    BOOL_ARRAY = "BOOL[]"
    BYTEA = "BYTEA"
    BYTEA_ARRAY = "BYTEA[]"
    CHAR = "CHAR"
    CHAR_ARRAY = "CHAR[]"
    INT2 = "INT2"
    INT2_ARRAY = "INT2[]"
    INT4 = "INT4"
    INT4_ARRAY = "INT4[]"
    INT8 = "INT8"
    INT8_ARRAY = "INT8[]"
    FLOAT4 = "FLOAT4"
    FLOAT4_ARRAY = "FLOAT4[]"
    FLOAT8 = "FLOAT8"
    FLOAT8_ARRAY = "FLOAT8[]"
    TEXT = "TEXT"
    TEXT_ARRAY = "TEXT[]"
    VARCHAR = "VARCHAR"
    VARCHAR_ARRAY = "VARCHAR[]"
    UUID = "UUID"
    UUID_ARRAY = "UUID[]"
    TIMESTAMP = "TIMESTAMP"
    TIMESTAMP_ARRAY = "TIMESTAMP[]"
    TIMESTAMPTZ = "TIMESTAMPTZ"
    TIMESTAMPTZ_ARRAY = "TIMESTAMPTZ[]"
    DATE = "DATE"
    DATE_ARRAY = "DATE[]"
    TIME = "TIME"
    TIME_ARRAY = "TIME[]"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


# An unquoted ``CHAR`` cast is ``bpchar`` on the server; both take a single letter.
_DATABASE_ALIASES = {"BPCHAR": "CHAR"}

# Members that share a synthesizer and a Python type with another member.
_FAMILY = {
    SqlTypeName.VARCHAR: SqlTypeName.TEXT,
    SqlTypeName.VARCHAR_ARRAY: SqlTypeName.TEXT_ARRAY,
}

_PYTHON_SCALARS = {
    SqlTypeName.BOOL: "bool",
    SqlTypeName.BYTEA: "bytes",
    SqlTypeName.CHAR: "str",
    SqlTypeName.INT2: "int",
    SqlTypeName.INT4: "int",
    SqlTypeName.INT8: "int",
    SqlTypeName.FLOAT4: "float",
    SqlTypeName.FLOAT8: "float",
    SqlTypeName.TEXT: "str",
    SqlTypeName.UUID: "uuid.UUID",
    SqlTypeName.TIMESTAMP: "datetime.datetime",
    SqlTypeName.TIMESTAMPTZ: "datetime.datetime",
    SqlTypeName.DATE: "datetime.date",
    SqlTypeName.TIME: "datetime.time",
}

_INTEGER_BITS = {SqlTypeName.INT2: 16, SqlTypeName.INT4: 32, SqlTypeName.INT8: 64}

_BY_VALUE = {member.value: member for member in SqlTypeName if member is not SqlTypeName.UNKNOWN}


def resolve(name: str) -> SqlTypeName:
    """Resolve an annotation token to its catalog entry.

    Args:
        name: Type token as written after ``::``, e.g. ``int4`` or ``VARCHAR[]``.

    Raises:
        UnsupportedTypeError: If the token is not part of the catalog.

    Returns:
        The catalog entry.
    """
    try:
        return _BY_VALUE[name.strip().upper()]
    except KeyError:
        raise UnsupportedTypeError(name) from None


def from_database(name: str) -> Optional[SqlTypeName]:
    """Map a type name reported by the database to the catalog.

    Accepts ``int4``, ``INT4[]`` and the internal array spelling ``_int4``.

    Returns:
        The catalog entry, or ``None`` when the type is not supported.
    """
    token = name.strip().upper()
    if token.startswith("_"):
        token = f"{token[1:]}[]"
    base, suffix = (token[:-2], "[]") if token.endswith("[]") else (token, "")
    return _BY_VALUE.get(_DATABASE_ALIASES.get(base, base) + suffix)


def is_array(type_name: SqlTypeName) -> bool:
    return type_name.value.endswith("[]")


def element_type(type_name: SqlTypeName) -> SqlTypeName:
    """Return the scalar element type of an array type (scalars map to themselves)."""
    if not is_array(type_name):
        return type_name
    return _BY_VALUE[type_name.value[:-2]]


def same_family(left: SqlTypeName, right: SqlTypeName) -> bool:
    """Compare two types treating ``VARCHAR`` as an alias of ``TEXT``."""
    return _FAMILY.get(left, left) is _FAMILY.get(right, right)


def python_type(type_name: SqlTypeName) -> str:
    """Python annotation used for a parameter of ``type_name`` in rendered bindings.

    Raises:
        UnsupportedTypeError: For ``UNKNOWN``.
    """
    if type_name is SqlTypeName.UNKNOWN:
        raise UnsupportedTypeError(type_name.value)
    scalar = _PYTHON_SCALARS[_FAMILY.get(element_type(type_name), element_type(type_name))]
    return f"list[{scalar}]" if is_array(type_name) else scalar


class ValueSynthesizer:
    """Produces representative, schema agnostic values for catalog types.

    Random payloads come from an independent :class:`random.Random`; pass a
    seeded instance to make them reproducible. Temporal values are fixed.
    UUIDs are always fresh ``uuid4`` values.
    """

    __slots__ = ("_generators", "rng")

    def __init__(self, rng: "Optional[random.Random]" = None) -> None:
        self.rng = rng or random.Random()
        self._generators: dict[SqlTypeName, Callable[[], Any]] = {
            SqlTypeName.BOOL: self._bool,
            SqlTypeName.BYTEA: self._bytes,
            SqlTypeName.CHAR: self._char,
            SqlTypeName.INT2: lambda: self._integer(SqlTypeName.INT2),
            SqlTypeName.INT4: lambda: self._integer(SqlTypeName.INT4),
            SqlTypeName.INT8: lambda: self._integer(SqlTypeName.INT8),
            SqlTypeName.FLOAT4: self.rng.random,
            SqlTypeName.FLOAT8: self.rng.random,
            SqlTypeName.TEXT: self._text,
            SqlTypeName.UUID: uuid.uuid4,
            SqlTypeName.TIMESTAMP: lambda: REFERENCE_DATETIME,
            SqlTypeName.TIMESTAMPTZ: lambda: REFERENCE_TIMESTAMPTZ,
            SqlTypeName.DATE: lambda: REFERENCE_DATE,
            SqlTypeName.TIME: lambda: REFERENCE_TIME,
        }

    def synthesize(self, type_name: SqlTypeName) -> Any:
        """Return a value of ``type_name``.

        Raises:
            UnsupportedTypeError: For ``UNKNOWN``.
        """
        if type_name is SqlTypeName.UNKNOWN:
            raise UnsupportedTypeError(type_name.value)
        scalar = element_type(type_name)
        generator = self._generators[_FAMILY.get(scalar, scalar)]
        if is_array(type_name):
            return [generator() for _ in range(ARRAY_LENGTH)]
        return generator()

    def _bool(self) -> bool:
        return self.rng.random() < 0.5  # noqa: PLR2004

    def _bytes(self) -> bytes:
        return bytes(self.rng.getrandbits(8) for _ in range(TEXT_LENGTH))

    def _char(self) -> str:
        return self.rng.choice(string.ascii_letters)

    def _text(self) -> str:
        return "".join(self.rng.choice(_ALPHANUMERIC) for _ in range(TEXT_LENGTH))

    def _integer(self, type_name: SqlTypeName) -> int:
        bits = _INTEGER_BITS[type_name]
        return self.rng.randint(-(2 ** (bits - 1)), 2 ** (bits - 1) - 1)
