"""Tests for sdkforge.config -- XDG paths, file layers, env parsing, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from sdkforge.config import (
    get_config_dir,
    load_env_config,
    load_project_config,
    load_user_config,
    resolve_config,
)
from sdkforge.exceptions import ConfigError
from sdkforge.models import TargetLanguage


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _user_config(root: Path) -> Path:
    return root / "config" / "sdkforge" / "config.json"


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestConfigDir:
    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sdkforge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "sdkforge"
        assert not result.exists()

    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sdkforge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_dir() == tmp_path / "xdg" / "sdkforge"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sdkforge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".sdkforge"


# ---------------------------------------------------------------------------
# File layers
# ---------------------------------------------------------------------------


class TestFileLayers:
    def test_missing_files_are_empty(self, isolated_config: Path) -> None:
        assert load_user_config() == {}
        assert load_project_config() == {}

    def test_user_config(self, isolated_config: Path) -> None:
        _write_json(_user_config(isolated_config), {"license": "MIT"})
        assert load_user_config() == {"license": "MIT"}

    def test_project_config(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "sdkforge.json", {"languages": ["go"]})
        assert load_project_config() == {"languages": ["go"]}

    def test_invalid_json(self, isolated_config: Path) -> None:
        (isolated_config / "sdkforge.json").write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_non_object(self, isolated_config: Path) -> None:
        _write_json(_user_config(isolated_config), ["go"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_user_config()


# ---------------------------------------------------------------------------
# Environment layer
# ---------------------------------------------------------------------------


class TestEnvLayer:
    def test_empty_by_default(self, isolated_config: Path) -> None:
        assert load_env_config() == {}

    def test_parses_values(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SDKFORGE_LANGUAGES", "go, rust,,python")
        monkeypatch.setenv("SDKFORGE_PARALLEL", "off")
        monkeypatch.setenv("SDKFORGE_STRICT", "Yes")
        monkeypatch.setenv("SDKFORGE_OUTPUT_DIR", "sdks")
        assert load_env_config() == {
            "languages": ["go", "rust", "python"],
            "parallel": False,
            "strict": True,
            "output_dir": "sdks",
        }

    def test_empty_variable_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SDKFORGE_LICENSE", "")
        assert load_env_config() == {}

    def test_invalid_boolean(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SDKFORGE_WRITE_FILES", "maybe")
        with pytest.raises(ConfigError, match="SDKFORGE_WRITE_FILES"):
            load_env_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.languages == list(TargetLanguage)
        assert config.output_dir == "./generated"
        assert config.write_files is True

    def test_precedence_chain(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(
            _user_config(isolated_config),
            {"license": "MIT", "package_version": "1.0.0", "output_dir": "user", "languages": ["go"]},
        )
        _write_json(
            isolated_config / "sdkforge.json",
            {"package_version": "2.0.0", "output_dir": "project", "languages": ["rust"]},
        )
        monkeypatch.setenv("SDKFORGE_OUTPUT_DIR", "env")
        monkeypatch.setenv("SDKFORGE_LANGUAGES", "python")

        config = resolve_config({"languages": ["java"], "parallel": None})

        assert config.license == "MIT"
        assert config.package_version == "2.0.0"
        assert config.output_dir == "env"
        assert config.languages == [TargetLanguage.JAVA]
        assert config.parallel is True

    def test_custom_mappings_merge_key_wise(self, isolated_config: Path) -> None:
        _write_json(_user_config(isolated_config), {"custom_mappings": {"A": "X", "B": "Y"}})
        _write_json(isolated_config / "sdkforge.json", {"custom_mappings": {"B": "Z"}})
        assert resolve_config().custom_mappings == {"A": "X", "B": "Z"}

    def test_unknown_key_rejected(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "sdkforge.json", {"langauges": ["go"]})
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config()

    def test_unknown_language_rejected(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SDKFORGE_LANGUAGES", "cobol")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config()
