"""
Core exception types raised by canonical encoding, identifier parsing, and the model codec.

Provides typed exceptions for core-domain failures:
- EncodingFailure when a value has no canonical byte representation.
- MalformedWire when wire bytes are not a JSON object at the top level.
- FieldShapeMismatch when an individual wire field has the wrong shape (strict policy only).
- CidFormatError when identifier text cannot be parsed back into a Cid.
- ConfigError for configuration values that name unknown options.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - Every type subclasses ValueError so callers that only care about "bad input"
      can catch a single builtin.
    - Under the default lenient codec policy FieldShapeMismatch is never raised; the
      mismatch is recorded as a FieldIssue and logged instead.

Examples:
    Catch an encoding failure for a cyclic value.

    >>> from pflow.core.errors import EncodingFailure
    >>> from pflow.core.serde import encode_canonical
    >>> loop: list = []
    >>> loop.append(loop)
    >>> try:
    ...     encode_canonical(loop)
    ... except EncodingFailure as e:
    ...     msg = str(e)
    >>> "cycle" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "PflowError",
    "EncodingFailure",
    "MalformedWire",
    "FieldShapeMismatch",
    "CidFormatError",
    "ConfigError",
]


class PflowError(Exception):
    """Base class for all pflow errors."""


class EncodingFailure(PflowError, ValueError):
    """Value cannot be represented canonically (cycle, unsupported type, non-finite float)."""


class MalformedWire(PflowError, ValueError):
    """Wire bytes could not be parsed as a JSON object."""


class FieldShapeMismatch(PflowError, ValueError):
    """
    A wire field is present but has the wrong shape.

    Attributes:
        path (str): Dotted location of the field, e.g. ``places.p0.offset``.
        detail (str): Human readable description of the mismatch.
    """

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"{path}: {detail}")
        self.path = path
        self.detail = detail


class CidFormatError(PflowError, ValueError):
    """Identifier text is not a supported multibase-encoded CID."""


class ConfigError(PflowError, ValueError):
    """Configuration names an unknown or unsupported option."""
