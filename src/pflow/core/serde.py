"""
Canonical JSON serialization for content addressing.

Provides a single canonical JSON policy so that logically equal values always yield
byte-identical output on every host. Identifiers in ``pflow.core.cid`` hash these bytes,
so any degree of freedom left here would silently break content addressing. This module
is zero-IO and depends on the standard library plus pydantic (for model dumping).

Notes:
    - Canonical JSON:
        - object keys sorted by their UTF-8 bytes
        - no insignificant whitespace
        - integers in plain decimal; integral floats collapse to integers
        - other floats in exponential form (``1.5E0``, ``1.0E-3``)
        - strings escaped only where JSON requires; non-ASCII kept verbatim
        - raw bytes as padded standard base64 inside a JSON string
    - NaN/Infinity, cycles, non-string keys (other than int) and unknown object
      types raise EncodingFailure.
    - Objects may opt in by defining ``canonical_value()`` returning a JSON-like
      replacement (``Cid`` uses this to encode as its text form).

Examples:
    >>> from pflow.core.serde import encode_canonical, decode_canonical
    >>> encode_canonical({"b": 1, "a": [True, None]})
    b'{"a":[true,null],"b":1}'
    >>> encode_canonical(b"hello")
    b'"aGVsbG8="'
    >>> decode_canonical(b'"aGVsbG8="', into=bytes)
    b'hello'
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
import math
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import EncodingFailure, MalformedWire

__all__ = [
    "encode_canonical",
    "json_dumps_canonical",
    "decode_canonical",
    "json_loads",
    "OversizedInt",
]


@dataclasses.dataclass(frozen=True)
class OversizedInt:
    """
    A JSON integer literal longer than the interpreter will convert to ``int``.

    ``json_loads`` yields this in place of the number, keeping its decimal text, so a
    single huge field does not fail the whole document. It is re-encoded verbatim.
    """

    digits: str


def _parse_int(text: str) -> int | OversizedInt:
    try:
        return int(text)
    except ValueError:
        return OversizedInt(text)


def encode_canonical(value: Any) -> bytes:
    """
    Serialize a value to its canonical UTF-8 JSON bytes.

    Args:
        value (Any): JSON-like value, bytes, pydantic model, dataclass, or any object
            exposing ``canonical_value()``.

    Returns:
        bytes: Canonical encoding; equal inputs always produce equal bytes.

    Raises:
        EncodingFailure: If the value is cyclic, holds an unsupported type, a non-finite
            float, an unsortable key, or a string that is not valid Unicode.
    """
    out: list[str] = []
    _emit(value, out, set())
    try:
        return "".join(out).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodingFailure(f"string is not valid unicode: {exc.reason}") from exc


def json_dumps_canonical(value: Any) -> str:
    """Canonical encoding as text; see `encode_canonical`."""
    return encode_canonical(value).decode("utf-8")


def decode_canonical(data: bytes | str, into: type | None = None) -> Any:
    """
    Parse canonical (or any) JSON back into Python values.

    Args:
        data (bytes | str): JSON document.
        into (type | None): Optional target. ``bytes`` base64-decodes a JSON string;
            a pydantic model class validates the parsed object into that model.

    Returns:
        Any: Decoded value.

    Raises:
        MalformedWire: If the input is not JSON, or does not have the shape ``into`` needs.
        pydantic.ValidationError: If ``into`` is a model class and validation fails.
    """
    obj = json_loads(data)
    if into is None:
        return obj
    if into is bytes:
        if not isinstance(obj, str):
            raise MalformedWire(f"expected base64 string, got {type(obj).__name__}")
        try:
            return base64.b64decode(obj, validate=True)
        except binascii.Error as exc:
            raise MalformedWire(f"invalid base64: {exc}") from exc
    if isinstance(into, type) and issubclass(into, BaseModel):
        return into.model_validate(obj)
    raise TypeError(f"unsupported decode target {into!r}")


def json_loads(data: bytes | str) -> Any:
    """
    Deserialize JSON using the stdlib json module.

    Integer literals too long to convert come back as `OversizedInt`.

    Raises:
        MalformedWire: If the input is not valid UTF-8 JSON.
    """
    try:
        return json.loads(data, parse_int=_parse_int)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedWire(f"invalid JSON: {exc}") from exc


def _emit(value: Any, out: list[str], active: set[int]) -> None:
    # bool before int: bool is an int subclass.
    if value is None:
        out.append("null")
    elif value is True:
        out.append("true")
    elif value is False:
        out.append("false")
    elif isinstance(value, int):
        try:
            out.append(str(int(value)))
        except ValueError as exc:
            raise EncodingFailure(f"integer too large to render: {exc}") from exc
    elif isinstance(value, OversizedInt):
        out.append(value.digits)
    elif isinstance(value, float):
        out.append(_format_float(value))
    elif isinstance(value, str):
        out.append(json.dumps(value, ensure_ascii=False))
    elif isinstance(value, (bytes, bytearray, memoryview)):
        out.append('"' + base64.b64encode(bytes(value)).decode("ascii") + '"')
    elif hasattr(value, "canonical_value"):
        _emit(value.canonical_value(), out, active)
    elif isinstance(value, Enum):
        _emit(value.value, out, active)
    elif isinstance(value, BaseModel):
        _emit(value.model_dump(mode="python", by_alias=True), out, active)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        _emit(fields, out, active)
    elif isinstance(value, Mapping):
        _enter(value, active)
        _emit_object(value, out, active)
        active.discard(id(value))
    elif isinstance(value, (list, tuple)):
        _enter(value, active)
        out.append("[")
        for i, item in enumerate(value):
            if i:
                out.append(",")
            _emit(item, out, active)
        out.append("]")
        active.discard(id(value))
    elif isinstance(value, (set, frozenset)):
        # Sets have no order of their own; order members by their canonical bytes.
        members = sorted(encode_canonical(item) for item in value)
        out.append("[" + ",".join(m.decode("utf-8") for m in members) + "]")
    else:
        raise EncodingFailure(f"cannot canonically encode {type(value).__name__}")


def _enter(container: Any, active: set[int]) -> None:
    key = id(container)
    if key in active:
        raise EncodingFailure(f"cycle detected through {type(container).__name__}")
    active.add(key)


def _emit_object(value: Mapping[Any, Any], out: list[str], active: set[int]) -> None:
    items: dict[str, Any] = {}
    for k, v in value.items():
        if isinstance(k, str):
            name = k
        elif isinstance(k, int) and not isinstance(k, bool):
            name = str(int(k))
        else:
            raise EncodingFailure(f"object keys must be str or int, got {type(k).__name__}")
        if name in items:
            raise EncodingFailure(f"duplicate object key {name!r} after key rendering")
        items[name] = v

    out.append("{")
    ordered = sorted(items, key=lambda s: s.encode("utf-8", "surrogatepass"))
    for i, name in enumerate(ordered):
        if i:
            out.append(",")
        out.append(json.dumps(name, ensure_ascii=False))
        out.append(":")
        _emit(items[name], out, active)
    out.append("}")


def _format_float(x: float) -> str:
    if not math.isfinite(x):
        raise EncodingFailure(f"non-finite float {x!r} has no JSON form")
    if x.is_integer():
        return str(int(x))
    # repr is the shortest string that round-trips, so the digits are unique.
    sign, digits, exponent = Decimal(repr(x)).normalize().as_tuple()
    sci = len(digits) - 1 + int(exponent)
    lead = str(digits[0])
    frac = "".join(str(d) for d in digits[1:]) or "0"
    return f"{'-' if sign else ''}{lead}.{frac}E{sci}"
