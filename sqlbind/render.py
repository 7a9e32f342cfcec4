"""Renderers turning binding descriptors into files."""

from collections.abc import Sequence
from typing import Optional

import msgspec

from sqlbind.__metadata__ import __version__
from sqlbind.core.bindings import BindingDescriptor
from sqlbind.exceptions import DuplicateOperationError
from sqlbind.utils.text import pascal_case, to_identifier

__all__ = ("RENDERERS", "render", "render_json", "render_python")

_INDENT = "    "


def render_json(descriptors: "Sequence[BindingDescriptor]") -> str:
    """Render descriptors as an indented JSON document."""
    encoded = msgspec.json.encode({"generator": "sqlbind", "version": __version__, "operations": list(descriptors)})
    return msgspec.json.format(encoded, indent=2).decode("utf-8") + "\n"


def _docstring(statements: "Sequence[str]") -> "list[str]":
    lines = [f'{_INDENT}"""']
    for statement in statements:
        escaped = statement.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
        lines.extend(f"{_INDENT}{line}".rstrip() for line in escaped.splitlines())
    lines.append(f'{_INDENT}"""')
    return lines


def _function(name: str, descriptor: BindingDescriptor) -> "list[str]":
    lines = [f"def {name}() -> tuple[str, ...]:", *_docstring(descriptor.statements), f"{_INDENT}return ("]
    lines.extend(f"{_INDENT * 2}{statement!r}," for statement in descriptor.statements)
    lines.append(f"{_INDENT})")
    return lines


def _params_class(name: str, descriptor: BindingDescriptor) -> "list[str]":
    lines = [f"class {pascal_case(name)}Params(NamedTuple):"]
    fields = []
    for parameter in descriptor.parameters:
        field_name = f"param_{parameter.position}"
        annotation = f"Optional[{parameter.python_type}]" if parameter.optional else parameter.python_type
        lines.append(f"{_INDENT}{field_name}: {annotation}")
        fields.append(f"self.{field_name}")
    lines.extend([
        "",
        f"{_INDENT}def params(self) -> tuple[Any, ...]:",
        f"{_INDENT * 2}return ({', '.join(fields)},)",
    ])
    return lines


def render_python(
    descriptors: "Sequence[BindingDescriptor]", *, generator: str = "sqlbind", version: Optional[str] = None
) -> str:
    """Render descriptors as a Python module.

    Each operation becomes a function returning its statements. Operations
    with parameters also get a ``<Name>Params`` named tuple whose fields
    ``param_1..param_n`` follow the ``$N`` order.

    Raises:
        DuplicateOperationError: If two descriptors map to the same function name.
    """
    names: dict[str, BindingDescriptor] = {}
    for descriptor in descriptors:
        name = to_identifier(descriptor.qualified_name)
        if name in names:
            raise DuplicateOperationError(name)
        names[name] = descriptor

    python_types = {parameter.python_type for descriptor in descriptors for parameter in descriptor.parameters}
    has_parameters = any(descriptor.parameters for descriptor in descriptors)
    has_optional = any(parameter.optional for descriptor in descriptors for parameter in descriptor.parameters)

    header = [f'"""Generated by {generator} {version or __version__}. Do not edit."""', ""]
    imports = []
    if any("datetime." in python_type for python_type in python_types):
        imports.append("import datetime")
    if any("uuid." in python_type for python_type in python_types):
        imports.append("import uuid")
    typing_names = [
        typing_name
        for typing_name, needed in (
            ("Any", has_parameters),
            ("NamedTuple", has_parameters),
            ("Optional", has_optional),
        )
        if needed
    ]
    if typing_names:
        if imports:
            imports.append("")
        imports.append(f"from typing import {', '.join(typing_names)}")
    if imports:
        header.extend([*imports, ""])

    blocks: list[list[str]] = []
    for name, descriptor in names.items():
        blocks.append(_function(name, descriptor))
        if descriptor.parameters:
            blocks.append(_params_class(name, descriptor))

    body = "\n\n\n".join("\n".join(block) for block in blocks)
    return "\n".join(header) + ("\n\n" + body if body else "") + "\n"


RENDERERS = {"json": render_json, "python": render_python}


def render(descriptors: "Sequence[BindingDescriptor]", format_name: str = "json") -> str:
    """Render with the renderer registered for ``format_name``.

    Raises:
        KeyError: For an unknown format.
    """
    return RENDERERS[format_name](descriptors)
