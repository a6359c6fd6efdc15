"""
Configuration for pflow identifier rendering and the model codec.

Defines Settings, a frozen dataclass carrying the process-wide, read-only choices: the
multibase alphabet used to render identifiers, the field-shape policy for decoding, and
the indent used for human-readable exports. Build it once at startup and pass it
explicitly; library functions fall back to ``Settings()`` defaults, never to the
environment.

Source of truth
- pflow.core.constants.DEFAULT_MULTIBASE
- pflow.core.cid.multibase_by_name for the supported alphabets

Import DAG discipline
- Depends only on stdlib and pflow.core.
- Does not import pflow.metamodel.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from pflow.core.cid import Multibase, multibase_by_name
from pflow.core.constants import DEFAULT_MULTIBASE

__all__ = ["Settings"]

MultibaseName = Literal["base58btc", "base58flickr"]

_MULTIBASES: frozenset[str] = frozenset({"base58btc", "base58flickr"})


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for identifier rendering and the model codec.

    Attributes:
        multibase (Literal["base58btc","base58flickr"]): Alphabet for identifier text.
        strict_fields (bool): If True, a wire field with the wrong shape raises
            FieldShapeMismatch instead of falling back to its default.
        export_indent (int | None): Indent for pretty exports; None keeps canonical bytes.

    Raises:
        ConfigError: If ``multibase`` names an unsupported alphabet.

    Examples:
        >>> from pflow.config import Settings
        >>> Settings(strict_fields=True).base.code
        'z'
    """

    multibase: MultibaseName = DEFAULT_MULTIBASE  # type: ignore[assignment]
    strict_fields: bool = False
    export_indent: int | None = None

    def __post_init__(self) -> None:
        multibase_by_name(self.multibase)

    @property
    def base(self) -> Multibase:
        return multibase_by_name(self.multibase)

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: Settings, cfg: dict[str, Any] | None) -> Settings:
        """Apply a loose config mapping onto Settings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        def _bool(v: Any) -> bool:
            if isinstance(v, bool):
                return v
            if isinstance(v, (int, float)):
                return bool(v)
            if isinstance(v, str):
                return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
            return False

        if "multibase" in cfg and isinstance(cfg["multibase"], str):
            name = cfg["multibase"].strip().lower()
            if name in _MULTIBASES:
                s = replace(s, multibase=name)  # type: ignore[arg-type]

        if "strict_fields" in cfg:
            s = replace(s, strict_fields=_bool(cfg["strict_fields"]))

        if "export_indent" in cfg:
            v = cfg["export_indent"]
            if v is None or (isinstance(v, str) and v.strip().lower() in {"", "none"}):
                s = replace(s, export_indent=None)
            elif not isinstance(v, bool):
                try:
                    indent = int(v)
                except (TypeError, ValueError):
                    indent = -1
                if indent >= 0:
                    s = replace(s, export_indent=indent)

        return s

    @classmethod
    def from_env(cls, base: Settings | None = None, prefix: str = "PFLOW_") -> Settings:
        """
        Build Settings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - PFLOW_MULTIBASE ("base58btc" | "base58flickr")
            - PFLOW_STRICT_FIELDS (1/0/true/false/yes/no/on/off)
            - PFLOW_EXPORT_INDENT (non-negative int, or "none")
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in ("multibase", "strict_fields", "export_indent"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> Settings:
        """
        Build Settings from a TOML file.

        Search order when `path` is None:
            1) ./pflow.toml (with either a [metamodel] table or direct keys)
            2) ./pyproject.toml under [tool.pflow.metamodel]

        Returns defaults if no file is present or none of them carries settings.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "pflow.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                pflow = tool.get("pflow", {}) if isinstance(tool, dict) else {}
                cfg = pflow.get("metamodel") if isinstance(pflow, dict) else None
            elif isinstance(data.get("metamodel"), dict):
                cfg = data["metamodel"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> Settings:
        """
        Load Settings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (pflow.toml, pyproject.toml).
        """
        s = cls.from_toml(path)
        return cls.from_env(base=s)
