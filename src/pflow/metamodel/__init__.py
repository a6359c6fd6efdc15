"""
pflow.metamodel: Process-model values and their JSON wire codec.

## Responsibilities
- Typed, immutable node/arrow values and a builder-style Model container.
- Decode either wire schema (import or JSON-LD export) through one normalization stage.
- Encode with zero-valued optional fields elided and arrow order preserved.
- Identify a model by the CID of its canonical export bytes.

## Public API
- Token, Place, Transition, Arrow, Model: schema values.
- decode_model, encode_model, to_document, normalize_document, model_cid: codec.
- WireSchema, FieldIssue, Normalized: codec results.
- check_structure: opt-in structural diagnostics.

## Import DAG discipline
- Depends on pydantic, pflow.core, and pflow.config.

## Examples
```python
from pflow.metamodel import Model, decode_model, encode_model, model_cid

m = Model()
m.add_place("p0", initial=1, x=100, y=100)
m.add_transition("t0", x=200, y=100)
m.add_arrow("p0", "t0", weight=1)
wire = encode_model(m)
assert decode_model(wire) == m
str(model_cid(m))  # base58btc text with the 'z' prefix
```
"""

from __future__ import annotations

from .codec import (
    FieldIssue,
    Normalized,
    WireSchema,
    decode_model,
    encode_model,
    model_cid,
    normalize_document,
    to_document,
)
from .schema import Arrow, Model, Place, Token, Transition
from .validate import StructureIssue, check_structure

__all__ = [
    "Token",
    "Place",
    "Transition",
    "Arrow",
    "Model",
    "WireSchema",
    "FieldIssue",
    "Normalized",
    "decode_model",
    "encode_model",
    "to_document",
    "normalize_document",
    "model_cid",
    "StructureIssue",
    "check_structure",
]
