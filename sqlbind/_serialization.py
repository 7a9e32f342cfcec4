"""JSON encoding backed by ``msgspec``."""

from typing import Any, Literal, Union, overload

import msgspec

__all__ = ("encode_json",)

_encoder = msgspec.json.Encoder(order="deterministic")


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode ``data`` as JSON.

    Enums, UUIDs and temporal values are encoded natively by ``msgspec``.
    """
    encoded = _encoder.encode(data)
    return encoded if as_bytes else encoded.decode("utf-8")
