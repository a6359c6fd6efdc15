"""
Core package aggregator for pflow contracts (canonical serde, content identifiers, errors, constants).

## Contracts (single source of truth)
- Serde: canonical JSON encoding of arbitrary values (`encode_canonical`).
- CID: content identifiers over canonical bytes (`identify`, `from_bytes`, `from_value`).
- Errors: typed exceptions shared by core and metamodel.
- Constants: CID header values and the export schema vocabulary.

## Notes
- Zero-IO policy: stdlib + pydantic + base58 only; no file/network IO.
- Identifiers are only as stable as the canonical encoding; never bypass `serde`.

## Examples
```python
from pflow.core.cid import from_bytes, from_value
str(from_bytes(b"hello"))  # 'z4EBG9j39DX8pJ5CjucFtnPRYvvKgDPPZ522KvJGCLJ9cB7AFwh'
from_value({"b": 1, "a": 2}) == from_value({"a": 2, "b": 1})  # True
```
"""
