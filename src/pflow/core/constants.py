"""
pflow core wire and identifier constants.

Defines the CID header values and the fixed JSON-LD vocabulary used by the export
schema. This module is zero-IO and uses only the Python standard library.

Notes:
    - CID header: version 1, dag-json codec, sha2-256 multihash (multicodec table names).
    - Multibase prefixes follow the multiformats table: ``z`` base58btc, ``Z`` base58flickr.
    - Changing any value here changes every identifier ever produced; treat as frozen.
"""

from __future__ import annotations

from typing import Final

__all__ = [
    "CID_VERSION",
    "CID_CODEC",
    "CID_HASH",
    "DEFAULT_MULTIBASE",
    "SCHEMA_CONTEXT",
    "NET_TYPE",
    "PLACE_TYPE",
    "TRANSITION_TYPE",
    "ARROW_TYPE",
    "BLACK_TOKEN",
    "INT64_MIN",
    "INT64_MAX",
]

# CID header, by multicodec table name.
CID_VERSION: Final[int] = 1
CID_CODEC: Final[str] = "dag-json"
CID_HASH: Final[str] = "sha2-256"

DEFAULT_MULTIBASE: Final[str] = "base58btc"

# Export schema vocabulary.
SCHEMA_CONTEXT: Final[str] = "https://pflow.xyz/schema"
NET_TYPE: Final[str] = "PetriNet"
PLACE_TYPE: Final[str] = "Place"
TRANSITION_TYPE: Final[str] = "Transition"
ARROW_TYPE: Final[str] = "Arrow"
BLACK_TOKEN: Final[str] = "https://pflow.xyz/tokens/black"

# Token components are signed 64-bit integers.
INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1
