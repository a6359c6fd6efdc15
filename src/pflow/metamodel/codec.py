"""
JSON wire codec for process models.

Two historical wire shapes map onto one in-memory `Model`:

- Import schema (``WireSchema.IMPORT``)::

    {"modelType": "...",
     "places": {"p0": {"offset": 0, "initial": 1, "capacity": 0, "x": 10, "y": 20}},
     "transitions": {"t0": {"x": 50, "y": 20}},
     "arcs": [{"source": "p0", "target": "t0", "weight": 1, "inhibit": false}]}

- Export schema (``WireSchema.EXPORT``), JSON-LD flavoured::

    {"@context": "https://pflow.xyz/schema", "@type": "PetriNet",
     "token": ["https://pflow.xyz/tokens/black"],
     "places": {"p0": {"@type": "Place", "offset": 0, "initial": [1], "x": 10, "y": 20}},
     "transitions": {"t0": {"@type": "Transition", "x": 50, "y": 20}},
     "arcs": [{"@type": "Arrow", "source": "p0", "target": "t0", "weight": [1]}]}

Decoding runs a single normalization stage that reads either field-name variant, so a
document mixing both still decodes. Every field is looked up on its own: missing fields
take their default, unknown keys are ignored, and a present field with the wrong shape
is a field-shape mismatch. Mismatches are recorded and logged (lenient, the default) or
raised as `FieldShapeMismatch` (strict). Only a top level that is not a JSON object
fails outright, with `MalformedWire`.

Encoding elides every zero-valued optional field (initial, capacity, weight, a false
inhibit flag, an empty model type) and keeps arrows in model order. Export bytes come
from the canonical encoder, so they are deterministic and `model_cid` is simply the
identifier of those bytes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pflow.config import Settings
from pflow.core.cid import Cid, identify
from pflow.core.constants import (
    ARROW_TYPE,
    BLACK_TOKEN,
    INT64_MAX,
    INT64_MIN,
    PLACE_TYPE,
    SCHEMA_CONTEXT,
    TRANSITION_TYPE,
)
from pflow.core.errors import FieldShapeMismatch, MalformedWire
from pflow.core.serde import OversizedInt, encode_canonical, json_loads
from pflow.core.typing import JsonDict

from .schema import Arrow, Model, Place, Token, Transition

__all__ = [
    "WireSchema",
    "IssueKind",
    "FieldIssue",
    "Normalized",
    "detect_schema",
    "normalize_document",
    "decode_model",
    "to_document",
    "encode_model",
    "model_cid",
]

logger = logging.getLogger(__name__)


class WireSchema(Enum):
    IMPORT = "import"
    EXPORT = "export"


class IssueKind(Enum):
    FIELD_SHAPE_MISMATCH = "field_shape_mismatch"


@dataclass(frozen=True)
class FieldIssue:
    """A wire field that was present but unusable, and was replaced by its default."""

    path: str
    kind: IssueKind
    detail: str


@dataclass(frozen=True)
class Normalized:
    """
    Result of normalizing a wire document.

    Attributes:
        model (Model): The decoded model.
        schema (WireSchema): Which wire shape the document looked like.
        issues (tuple[FieldIssue, ...]): Lenient recoveries, in document order.
    """

    model: Model
    schema: WireSchema
    issues: tuple[FieldIssue, ...] = ()


def detect_schema(doc: Mapping[str, Any]) -> WireSchema:
    """Export if the document carries JSON-LD metadata, otherwise import."""
    if "@context" in doc or "@type" in doc or "token" in doc:
        return WireSchema.EXPORT
    return WireSchema.IMPORT


class _FieldReader:
    """Per-field lookups that report shape problems instead of raising mid-walk."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.issues: list[FieldIssue] = []

    def mismatch(self, path: str, detail: str) -> None:
        if self.strict:
            raise FieldShapeMismatch(path, detail)
        logger.warning("field shape mismatch at %s: %s; using default", path, detail)
        self.issues.append(FieldIssue(path, IssueKind.FIELD_SHAPE_MISMATCH, detail))

    def integer(self, obj: Mapping[str, Any], key: str, path: str) -> int:
        if key not in obj:
            return 0
        v = obj[key]
        if _is_int64(v):
            return v
        self.mismatch(_join(path, key), f"expected int64, got {_describe(v)}")
        return 0

    def string(self, obj: Mapping[str, Any], key: str, path: str) -> str:
        v = obj.get(key)
        if v is None or isinstance(v, str):
            return v or ""
        self.mismatch(_join(path, key), f"expected string, got {_describe(v)}")
        return ""

    def flag(self, obj: Mapping[str, Any], *keys: str, path: str) -> bool:
        for key in keys:
            v = obj.get(key)
            if v is None:
                continue
            if isinstance(v, bool):
                return v
            self.mismatch(_join(path, key), f"expected boolean, got {_describe(v)}")
            return False
        return False

    def token(self, obj: Mapping[str, Any], key: str, path: str) -> Token:
        v = obj.get(key)
        if v is None:
            return Token()
        # Editors write both scalar and single-element array tokens.
        if _is_int64(v):
            return Token(value=(v,))
        if isinstance(v, list) and all(_is_int64(c) for c in v):
            return Token(value=tuple(v))
        self.mismatch(_join(path, key), f"expected int64 or list of int64, got {_describe(v)}")
        return Token()

    def mapping(self, obj: Mapping[str, Any], key: str, path: str) -> dict[str, Any]:
        v = obj.get(key)
        if v is None:
            return {}
        if isinstance(v, dict):
            return v
        self.mismatch(_join(path, key), f"expected object, got {_describe(v)}")
        return {}

    def sequence(self, obj: Mapping[str, Any], key: str, path: str) -> list[Any]:
        v = obj.get(key)
        if v is None:
            return []
        if isinstance(v, list):
            return v
        self.mismatch(_join(path, key), f"expected array, got {_describe(v)}")
        return []

    def entry(self, v: Any, path: str) -> Mapping[str, Any] | None:
        if isinstance(v, dict):
            return v
        self.mismatch(path, f"expected object, got {_describe(v)}; entry skipped")
        return None


def _is_int64(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and INT64_MIN <= v <= INT64_MAX


def _describe(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, (int, OversizedInt)):
        return "integer outside int64 range"
    names = {dict: "object", list: "array", str: "string", float: "number"}
    return names.get(type(v), type(v).__name__)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def normalize_document(doc: Mapping[str, Any], *, strict: bool = False) -> Normalized:
    """
    Read a parsed wire document of either schema into a Model.

    Args:
        doc (Mapping[str, Any]): Parsed top-level JSON object.
        strict (bool): Raise on the first field-shape mismatch instead of recovering.

    Returns:
        Normalized: Model, detected schema, and any lenient recoveries.

    Raises:
        FieldShapeMismatch: Only when ``strict`` is True.
    """
    read = _FieldReader(strict)

    # modelType (import) wins over @type (export) when a document carries both.
    if "modelType" in doc:
        model_type = read.string(doc, "modelType", "")
    else:
        model_type = read.string(doc, "@type", "")

    places: dict[str, Place] = {}
    for label, raw in read.mapping(doc, "places", "").items():
        path = f"places.{label}"
        p = read.entry(raw, path)
        if p is None:
            continue
        places[label] = Place(
            offset=read.integer(p, "offset", path),
            initial=read.token(p, "initial", path),
            capacity=read.token(p, "capacity", path),
            x=read.integer(p, "x", path),
            y=read.integer(p, "y", path),
        )

    transitions: dict[str, Transition] = {}
    for label, raw in read.mapping(doc, "transitions", "").items():
        path = f"transitions.{label}"
        t = read.entry(raw, path)
        if t is None:
            continue
        transitions[label] = Transition(x=read.integer(t, "x", path), y=read.integer(t, "y", path))

    arrows: list[Arrow] = []
    for i, raw in enumerate(read.sequence(doc, "arcs", "")):
        path = f"arcs[{i}]"
        a = read.entry(raw, path)
        if a is None:
            continue
        arrows.append(
            Arrow(
                source=read.string(a, "source", path),
                target=read.string(a, "target", path),
                weight=read.token(a, "weight", path),
                inhibit=read.flag(a, "inhibitTransition", "inhibit", path=path),
            )
        )

    model = Model(model_type=model_type, places=places, transitions=transitions, arrows=arrows)
    return Normalized(model=model, schema=detect_schema(doc), issues=tuple(read.issues))


def decode_model(
    data: bytes | str,
    *,
    strict: bool | None = None,
    settings: Settings | None = None,
) -> Model:
    """
    Decode wire JSON of either schema into a Model.

    Args:
        data (bytes | str): Wire JSON.
        strict (bool | None): Field-shape policy; None defers to ``settings.strict_fields``.
        settings (Settings | None): Codec settings; defaults to ``Settings()``.

    Returns:
        Model: Decoded model; omitted optional fields become zero tokens / defaults.

    Raises:
        MalformedWire: If the data is not JSON or its top level is not an object.
        FieldShapeMismatch: On a wrongly shaped field under the strict policy.

    Examples:
        >>> from pflow.metamodel.codec import decode_model
        >>> m = decode_model(b'{"places": {"p0": {"offset": 0, "initial": [2]}}}')
        >>> m.places["p0"].capacity.is_zero
        True
    """
    settings = settings or Settings()
    if strict is None:
        strict = settings.strict_fields
    doc = json_loads(data)
    if not isinstance(doc, dict):
        raise MalformedWire(f"top-level JSON value must be an object, got {type(doc).__name__}")
    result = normalize_document(doc, strict=strict)
    logger.debug(
        "decoded %s model: %d places, %d transitions, %d arrows, %d field issues",
        result.schema.value,
        len(result.model.places),
        len(result.model.transitions),
        len(result.model.arrows),
        len(result.issues),
    )
    return result.model


def _token_list(token: Token) -> list[int]:
    return list(token.value)


def _token_scalar(token: Token) -> int | list[int]:
    return token.value[0] if len(token.value) == 1 else list(token.value)


def to_document(model: Model, schema: WireSchema = WireSchema.EXPORT) -> JsonDict:
    """
    Build the wire document for ``model`` with zero-valued optional fields elided.

    Args:
        model (Model): Model to encode.
        schema (WireSchema): Target wire shape.

    Returns:
        JsonDict: Plain JSON-compatible document; arcs keep model order.
    """
    if schema is WireSchema.IMPORT:
        return _import_document(model)
    return _export_document(model)


def _export_document(model: Model) -> JsonDict:
    doc: JsonDict = {
        "@context": SCHEMA_CONTEXT,
        "token": [BLACK_TOKEN],
    }
    # @type carries model_type, not a fixed "PetriNet"; an empty type is omitted so it
    # decodes back as empty.
    if model.model_type:
        doc["@type"] = model.model_type

    places: JsonDict = {}
    for label, p in model.places.items():
        entry: JsonDict = {"@type": PLACE_TYPE, "offset": p.offset, "x": p.x, "y": p.y}
        if not p.initial.is_zero:
            entry["initial"] = _token_list(p.initial)
        if not p.capacity.is_zero:
            entry["capacity"] = _token_list(p.capacity)
        places[label] = entry
    doc["places"] = places

    doc["transitions"] = {
        label: {"@type": TRANSITION_TYPE, "x": t.x, "y": t.y}
        for label, t in model.transitions.items()
    }

    arcs: list[JsonDict] = []
    for a in model.arrows:
        arc: JsonDict = {"@type": ARROW_TYPE, "source": a.source, "target": a.target}
        if not a.weight.is_zero:
            arc["weight"] = _token_list(a.weight)
        if a.inhibit:
            arc["inhibitTransition"] = True
        arcs.append(arc)
    doc["arcs"] = arcs
    return doc


def _import_document(model: Model) -> JsonDict:
    places: JsonDict = {}
    for label, p in model.places.items():
        entry: JsonDict = {"offset": p.offset, "x": p.x, "y": p.y}
        if not p.initial.is_zero:
            entry["initial"] = _token_scalar(p.initial)
        if not p.capacity.is_zero:
            entry["capacity"] = _token_scalar(p.capacity)
        places[label] = entry

    arcs: list[JsonDict] = []
    for a in model.arrows:
        arc: JsonDict = {"source": a.source, "target": a.target}
        if not a.weight.is_zero:
            arc["weight"] = _token_scalar(a.weight)
        if a.inhibit:
            arc["inhibit"] = True
        arcs.append(arc)

    return {
        "modelType": model.model_type,
        "places": places,
        "transitions": {label: {"x": t.x, "y": t.y} for label, t in model.transitions.items()},
        "arcs": arcs,
    }


def encode_model(
    model: Model,
    schema: WireSchema = WireSchema.EXPORT,
    *,
    indent: int | None = None,
    settings: Settings | None = None,
) -> bytes:
    """
    Encode ``model`` to wire bytes.

    Args:
        model (Model): Model to encode.
        schema (WireSchema): Target wire shape (export by default).
        indent (int | None): Pretty-print indent; None defers to ``settings.export_indent``.
            Indented output is key-sorted but not canonical.
        settings (Settings | None): Codec settings; defaults to ``Settings()``.

    Returns:
        bytes: UTF-8 JSON. Without an indent these are canonical bytes.
    """
    settings = settings or Settings()
    if indent is None:
        indent = settings.export_indent
    doc = to_document(model, schema)
    if indent is None:
        return encode_canonical(doc)
    return json.dumps(doc, indent=indent, sort_keys=True, ensure_ascii=False).encode("utf-8")


def model_cid(model: Model, settings: Settings | None = None) -> Cid:
    """
    Identifier of a model: the CID of its canonical export bytes.

    Computed from the model's current content on every call, so mutating the model
    and asking again yields a different identifier.

    Examples:
        >>> from pflow.metamodel.schema import Model
        >>> from pflow.metamodel.codec import model_cid
        >>> a, b = Model(), Model()
        >>> _ = a.add_place("p0"); _ = a.add_place("p1")
        >>> _ = b.add_place("p1", offset=1); _ = b.add_place("p0", offset=0)
        >>> model_cid(a) == model_cid(b)
        True
    """
    settings = settings or Settings()
    return identify(encode_canonical(to_document(model, WireSchema.EXPORT)), base=settings.base)
