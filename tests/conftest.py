"""Shared test fixtures for sdkforge.

Document fixtures come from ``tests/fixtures/``; canonical schemas are built
from them through the real adapters. Config isolation and the CLI runner are
shared by the config and CLI tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from sdkforge.adapters.custom import parse_custom_schema
from sdkforge.adapters.openapi import parse_openapi
from sdkforge.models import CanonicalSchema
from sdkforge.output import reset_output

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Drop the installed OutputManager after every test.

    A manager built inside CliRunner holds consoles bound to the runner's
    temporary streams, which are closed once the invocation returns.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """Load the raw petstore OpenAPI 3.0 document."""
    with open(FIXTURES_DIR / "petstore.json") as f:
        return json.load(f)


@pytest.fixture
def custom_raw() -> dict[str, Any]:
    """Load the raw custom flat provider schema."""
    with open(FIXTURES_DIR / "custom_schema.json") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Canonical schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_schema(petstore_raw: dict[str, Any]) -> CanonicalSchema:
    """Canonical schema built from the petstore document."""
    result = parse_openapi(petstore_raw, provider_id="petstore")
    assert result.success, result.errors
    return result.schema


@pytest.fixture
def custom_schema(custom_raw: dict[str, Any]) -> CanonicalSchema:
    """Canonical schema built from the custom provider document."""
    result = parse_custom_schema(custom_raw, provider_id="acme", provider_name="Acme")
    assert result.success, result.errors
    return result.schema


@pytest.fixture
def make_openapi() -> Callable[..., dict[str, Any]]:
    """Factory for bare OpenAPI 3.1 documents with the given component schemas."""

    def _make(schemas: dict[str, Any], paths: dict[str, Any] | None = None) -> dict[str, Any]:
        return {
            "openapi": "3.1.0",
            "info": {"title": "Test API", "version": "1.0.0"},
            "paths": paths or {},
            "components": {"schemas": schemas},
        }

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME at a subdirectory of tmp_path so that tests
    never read real user config, clears every SDKFORGE_* environment
    variable, and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setattr("sdkforge.config._is_xdg_platform", lambda: True)

    for var in [
        "SDKFORGE_LANGUAGES",
        "SDKFORGE_OUTPUT_DIR",
        "SDKFORGE_PACKAGE_NAME",
        "SDKFORGE_PACKAGE_VERSION",
        "SDKFORGE_LICENSE",
        "SDKFORGE_INCLUDE_EXAMPLES",
        "SDKFORGE_PARALLEL",
        "SDKFORGE_WRITE_FILES",
        "SDKFORGE_PROVIDER_ID",
        "SDKFORGE_PROVIDER_NAME",
        "SDKFORGE_STRICT",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner with a terminal wide enough that Rich never wraps."""
    from typer.testing import CliRunner

    return CliRunner(env={"COLUMNS": "200"})
