"""End-to-end tests for the sdkforge command line."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from sdkforge import __version__
from sdkforge.app import app
from sdkforge.models import CanonicalSchema, TargetLanguage

FIXTURES_DIR = Path(__file__).parent / "fixtures"
PETSTORE = str(FIXTURES_DIR / "petstore.json")


@pytest.fixture(autouse=True)
def _restore_logger():
    """Drop handlers bound to the runner's streams once a command finishes."""
    logger = logging.getLogger("sdkforge")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def _write_schema(path: Path, schema: CanonicalSchema) -> str:
    path.write_text(schema.to_json(), encoding="utf-8")
    return str(path)


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"sdkforge {__version__}" in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "parse" in result.output
        assert "generate" in result.output


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


class TestParse:
    def test_writes_schema_file(self, cli_runner, tmp_path: Path) -> None:
        target = tmp_path / "schema.json"
        result = cli_runner.invoke(
            app, ["parse", PETSTORE, "-o", str(target), "--provider-id", "pets"]
        )
        assert result.exit_code == 0, result.output
        assert "Wrote" in result.output

        schema = CanonicalSchema.from_json(target.read_text(encoding="utf-8"))
        assert schema.metadata.provider_id == "pets"
        assert schema.metadata.provider_name == "Petstore API"
        assert {e.operation_id for e in schema.endpoints} >= {"listPets", "showPetById"}

    def test_prints_schema_to_stdout(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["parse", PETSTORE, "--provider-id", "pets"])
        assert result.exit_code == 0, result.output
        assert '"providerId": "pets"' in result.stdout
        assert '"operationId": "listPets"' in result.stdout

    def test_missing_file(self, cli_runner, tmp_path: Path) -> None:
        result = cli_runner.invoke(app, ["parse", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 7

    def test_malformed_document(self, cli_runner, tmp_path: Path) -> None:
        source = tmp_path / "broken.json"
        source.write_text(
            json.dumps(
                {"openapi": "3.0.3", "info": {"title": "Broken", "version": "1"}, "paths": []}
            ),
            encoding="utf-8",
        )
        result = cli_runner.invoke(app, ["parse", str(source)])
        assert result.exit_code == 7
        assert "'paths' must be an object" in result.output


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


class TestValidate:
    def test_valid_schema(
        self, cli_runner, tmp_path: Path, petstore_schema: CanonicalSchema
    ) -> None:
        path = _write_schema(tmp_path / "schema.json", petstore_schema)
        result = cli_runner.invoke(app, ["validate", path])
        assert result.exit_code == 0, result.output
        assert "is a valid canonical schema" in result.output

    def test_invalid_schema(self, cli_runner, tmp_path: Path) -> None:
        path = tmp_path / "schema.json"
        path.write_text("{}", encoding="utf-8")
        result = cli_runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 9
        assert "[missing]" in result.output

    def test_unreadable_file(self, cli_runner, tmp_path: Path) -> None:
        result = cli_runner.invoke(app, ["validate", str(tmp_path / "absent.json")])
        assert result.exit_code == 7


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_writes_sdk(self, cli_runner, isolated_config: Path) -> None:
        out = isolated_config / "sdks"
        result = cli_runner.invoke(
            app,
            ["generate", PETSTORE, "-l", "python", "-o", str(out), "--package-name", "petstore-sdk"],
        )
        assert result.exit_code == 0, result.output
        assert (out / "python" / "src" / "petstore_sdk" / "client.py").exists()
        assert (out / "python" / "pyproject.toml").exists()
        assert "Wrote" in result.output
        assert "# Build instructions" in result.output

    def test_dry_run_writes_nothing(self, cli_runner, isolated_config: Path) -> None:
        out = isolated_config / "sdks"
        result = cli_runner.invoke(
            app, ["generate", PETSTORE, "-l", "go", "-l", "rust", "-o", str(out), "--dry-run"]
        )
        assert result.exit_code == 0, result.output
        assert not out.exists()
        assert "go" in result.stdout
        assert "rust" in result.stdout

    def test_accepts_canonical_schema(
        self, cli_runner, isolated_config: Path, petstore_schema: CanonicalSchema
    ) -> None:
        path = _write_schema(isolated_config / "schema.json", petstore_schema)
        result = cli_runner.invoke(app, ["--json", "-q", "generate", path, "-l", "java", "--dry-run"])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert rows[0]["Language"] == "java"
        assert rows[0]["Status"] == "ok"

    def test_project_config_supplies_languages(self, cli_runner, isolated_config: Path) -> None:
        (isolated_config / "sdkforge.json").write_text(
            json.dumps({"languages": ["typescript"], "write_files": False}), encoding="utf-8"
        )
        result = cli_runner.invoke(app, ["--json", "-q", "generate", PETSTORE])
        assert result.exit_code == 0, result.output
        assert [row["Language"] for row in json.loads(result.stdout)] == ["typescript"]

    def test_unknown_language(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["generate", PETSTORE, "-l", "cobol"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# languages
# ---------------------------------------------------------------------------


class TestLanguages:
    def test_lists_every_language(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--json", "languages"])
        assert result.exit_code == 0
        rows = json.loads(result.stdout)
        assert [row["Language"] for row in rows] == [lang.value for lang in TargetLanguage]
        assert all(row["Build"] for row in rows)
