"""
Lightweight typing aliases used across core and metamodel modules.

Provides minimal NewTypes and aliases to improve readability and static checks.
This module contains no runtime logic and is zero-IO.

Examples:
    >>> from pflow.core.typing import Label, JsonDict
    >>> def describe(label: Label) -> str:
    ...     return f"node:{label}"
    >>> describe(Label("p0"))
    'node:p0'
"""

from __future__ import annotations

from typing import Any, NewType, Union

__all__ = [
    "Label",
    "JsonDict",
    "BytesLike",
]

# Place/transition label within one model.
Label = NewType("Label", str)

# Kept broad for serde boundaries.
JsonDict = dict[str, Any]

BytesLike = Union[bytes, bytearray, memoryview]
