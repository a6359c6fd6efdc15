from __future__ import annotations

from pathlib import Path

import pytest

from pflow.config import Settings
from pflow.core.cid import BASE58BTC, BASE58FLICKR
from pflow.core.errors import ConfigError

_ENV_KEYS = ["PFLOW_MULTIBASE", "PFLOW_STRICT_FIELDS", "PFLOW_EXPORT_INDENT"]


def _write_pflow_toml(tmp: Path, content: str) -> Path:
    p = tmp / "pflow.toml"
    p.write_text(content)
    return p


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    _write_pflow_toml(
        tmp_path,
        """
        [metamodel]
        multibase = "base58btc"
        strict_fields = false
        export_indent = 4
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PFLOW_MULTIBASE", "base58flickr")
    monkeypatch.setenv("PFLOW_STRICT_FIELDS", "yes")
    monkeypatch.setenv("PFLOW_EXPORT_INDENT", "none")

    s = Settings.load()

    assert s.multibase == "base58flickr"
    assert s.base is BASE58FLICKR
    assert s.strict_fields is True
    assert s.export_indent is None


def test_settings_from_toml_when_no_env(tmp_path: Path, monkeypatch) -> None:
    _write_pflow_toml(
        tmp_path,
        """
        [metamodel]
        multibase = "base58flickr"
        strict_fields = true
        export_indent = 2
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = Settings.load()

    assert s.multibase == "base58flickr"
    assert s.strict_fields is True
    assert s.export_indent == 2


def test_settings_toml_top_level_keys(tmp_path: Path, monkeypatch) -> None:
    _write_pflow_toml(tmp_path, 'strict_fields = true\n')
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert Settings.load().strict_fields is True


def test_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [project]
        name = "demo"

        [tool.pflow.metamodel]
        export_indent = 3
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = Settings.load()
    assert s.export_indent == 3
    assert s.multibase == "base58btc"


def test_settings_explicit_path(tmp_path: Path, monkeypatch) -> None:
    cfg = tmp_path / "elsewhere.toml"
    cfg.write_text('[metamodel]\nmultibase = "base58flickr"\n')
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert Settings.load(cfg).multibase == "base58flickr"


def test_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = Settings.load()

    assert s == Settings()
    assert s.base is BASE58BTC
    assert s.strict_fields is False
    assert s.export_indent is None


def test_settings_ignore_unusable_values(tmp_path: Path, monkeypatch) -> None:
    _write_pflow_toml(
        tmp_path,
        """
        [metamodel]
        multibase = "base64"
        export_indent = -2
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("PFLOW_EXPORT_INDENT", "wide")

    s = Settings.load()
    assert s.multibase == "base58btc"
    assert s.export_indent is None


def test_settings_invalid_toml_falls_back_to_defaults(tmp_path: Path, monkeypatch) -> None:
    _write_pflow_toml(tmp_path, "[metamodel\nmultibase = ")
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert Settings.load() == Settings()


def test_settings_rejects_unknown_multibase_on_construction() -> None:
    with pytest.raises(ConfigError):
        Settings(multibase="base64")  # type: ignore[arg-type]
