"""
Content identifiers (CIDs) derived from canonical bytes.

An identifier is the SHA-256 digest of a value's canonical encoding, wrapped as a CIDv1
with the dag-json codec and a sha2-256 multihash, and rendered as multibase text. With
the default base58btc alphabet the text starts with ``z``. Header layout, multihash
framing, and multibase text all come from the ``multiformats`` package; this module
only adds the domain rules on top.

Responsibilities
- `identify` hashes bytes into a `Cid`.
- `from_bytes` concatenates byte chunks (no delimiter) and identifies the result.
- `from_value` dispatches over exactly three inputs: an existing `Cid` (returned as is),
  raw bytes (hashed directly), or any other value (canonically encoded first).
- `Cid.decode` parses identifier text back, accepting only CIDv1 sha2-256 identifiers
  written in one of the supported base58 alphabets.

Notes:
    - ``from_bytes(b"ab", b"c") == from_bytes(b"a", b"bc")``: chunks are not delimited.
    - Encoding errors propagate as `EncodingFailure`; nothing is hashed on failure.
    - The alphabet is an explicit `Multibase` argument; there is no global state.

Examples:
    >>> from pflow.core.cid import from_bytes, from_value
    >>> str(from_bytes(b"hello"))
    'z4EBG9j39DX8pJ5CjucFtnPRYvvKgDPPZ522KvJGCLJ9cB7AFwh'
    >>> from_value(b"hello") == from_bytes(b"hello")
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Union

from multiformats import CID, multibase, multihash
from multiformats.multibase import Multibase

from .constants import CID_CODEC, CID_HASH, CID_VERSION
from .errors import CidFormatError, ConfigError
from .serde import encode_canonical
from .typing import BytesLike

__all__ = [
    "Multibase",
    "BASE58BTC",
    "BASE58FLICKR",
    "multibase_by_name",
    "Cid",
    "CidSource",
    "identify",
    "from_bytes",
    "from_value",
]

BASE58BTC: Final[Multibase] = multibase.get("base58btc")
BASE58FLICKR: Final[Multibase] = multibase.get("base58flickr")

_SUPPORTED: Final[dict[str, Multibase]] = {b.name: b for b in (BASE58BTC, BASE58FLICKR)}


def multibase_by_name(name: str) -> Multibase:
    """
    Look up a supported multibase by its table name.

    Raises:
        ConfigError: If the name is not a supported base58 flavour.
    """
    try:
        return _SUPPORTED[name]
    except KeyError:
        raise ConfigError(
            f"unsupported multibase {name!r}; expected one of {sorted(_SUPPORTED)}"
        ) from None


@dataclass(frozen=True, eq=False)
class Cid:
    """
    A content identifier: a multiformats ``CID`` plus the domain's equality rules.

    Attributes:
        cid (multiformats.CID): Underlying identifier (version, codec, multihash, base).

    Notes:
        Equality and hashing use the binary form only, so the same identifier
        rendered in two alphabets compares equal.
    """

    cid: CID

    @property
    def digest(self) -> bytes:
        """Raw hash output, without the multihash header."""
        return bytes(self.cid.raw_digest)

    @property
    def multihash(self) -> bytes:
        return bytes(self.cid.digest)

    @property
    def version(self) -> int:
        return self.cid.version

    @property
    def base(self) -> Multibase:
        return self.cid.base

    def to_bytes(self) -> bytes:
        return bytes(self.cid)

    def encode(self, base: Multibase | None = None) -> str:
        return self.cid.encode(base)

    def with_base(self, base: Multibase) -> Cid:
        return Cid(self.cid.set(base=base))

    def canonical_value(self) -> str:
        return self.encode()

    def __str__(self) -> str:
        return self.encode()

    def __repr__(self) -> str:
        return f"Cid({self.encode()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cid):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    @classmethod
    def decode(cls, text: str) -> Cid:
        """
        Parse multibase identifier text.

        Args:
            text (str): Identifier such as ``z4EBG9j39...``.

        Returns:
            Cid: Parsed identifier, remembering the alphabet it was written in.

        Raises:
            CidFormatError: On malformed text, an unsupported alphabet, a version other
                than 1, or a hash function other than sha2-256.
        """
        if not text:
            raise CidFormatError("empty identifier")
        try:
            parsed = CID.decode(text)
        except (KeyError, ValueError) as exc:
            raise CidFormatError(f"invalid identifier {text!r}: {exc}") from exc
        if parsed.version != CID_VERSION:
            raise CidFormatError(f"unsupported CID version {parsed.version}")
        if parsed.base.name not in _SUPPORTED:
            raise CidFormatError(f"unsupported multibase {parsed.base.name!r}")
        if parsed.hashfun.name != CID_HASH:
            raise CidFormatError(f"unsupported hash function {parsed.hashfun.name!r}")
        return cls(parsed)


# Closed set of inputs accepted by from_value: an identifier, raw bytes, or a value.
CidSource = Union[Cid, BytesLike, Any]


def identify(data: BytesLike, base: Multibase = BASE58BTC) -> Cid:
    """
    Hash bytes into a sha2-256 dag-json CIDv1.

    Args:
        data (bytes | bytearray | memoryview): Input bytes (typically canonical JSON).
        base (Multibase): Alphabet used when rendering the identifier.

    Returns:
        Cid: Deterministic identifier for ``data``.
    """
    return Cid(CID(base, CID_VERSION, CID_CODEC, multihash.digest(bytes(data), CID_HASH)))


def from_bytes(*chunks: BytesLike, base: Multibase = BASE58BTC) -> Cid:
    """Identify the undelimited concatenation of ``chunks``."""
    return identify(b"".join(bytes(c) for c in chunks), base=base)


def from_value(value: CidSource, base: Multibase = BASE58BTC) -> Cid:
    """
    Identify an identifier, raw bytes, or any canonically encodable value.

    Args:
        value (CidSource): A `Cid` (returned unchanged, never re-hashed), raw bytes
            (hashed as is), or any other value (canonically encoded, then hashed).
        base (Multibase): Alphabet for newly derived identifiers.

    Returns:
        Cid: The identifier.

    Raises:
        EncodingFailure: If ``value`` has no canonical encoding.

    Examples:
        >>> from pflow.core.cid import from_value
        >>> c = from_value({"a": 1})
        >>> from_value(c) is c
        True
    """
    if isinstance(value, Cid):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return from_bytes(value, base=base)
    return identify(encode_canonical(value), base=base)
