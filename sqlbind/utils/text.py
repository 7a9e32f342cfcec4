"""Text helpers for turning free-form titles into identifiers."""

import keyword
import re
from functools import lru_cache

# Runs of characters that cannot appear in an ASCII identifier
_INVALID_IDENTIFIER_CHARS_RE = re.compile(r"[^0-9A-Za-z_]+")
_MULTIPLE_UNDERSCORE_RE = re.compile(r"__+")

__all__ = ("pascal_case", "to_identifier")


@lru_cache(maxsize=256)
def to_identifier(string: str) -> str:
    """Convert a title into a valid Python identifier.

    The title is trimmed and each run of invalid characters becomes a single
    underscore. Letters keep their case. ``"Get Widget"`` becomes
    ``Get_Widget``, ``"2fa codes"`` becomes ``_2fa_codes`` and ``"class"``
    becomes ``class_``.
    """
    name = _INVALID_IDENTIFIER_CHARS_RE.sub("_", string.strip())
    name = _MULTIPLE_UNDERSCORE_RE.sub("_", name).strip("_")
    if not name:
        return "_"
    if name[0].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def pascal_case(string: str) -> str:
    """Join the underscore separated parts of an identifier, upper casing the first letter of each.

    A leading underscore is kept, so ``_2fa_codes`` becomes ``_2faCodes``.
    """
    prefix = "_" if string.startswith("_") else ""
    return prefix + "".join(part[0].upper() + part[1:] for part in string.split("_") if part)
