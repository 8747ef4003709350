"""Layered configuration for generation runs.

Settings for ``sdkforge generate`` come from five layers, highest first:

1. CLI flags
2. Environment variables (``SDKFORGE_LANGUAGES``, ``SDKFORGE_OUTPUT_DIR``, ...)
3. Project config (``./sdkforge.json``)
4. User config (``$XDG_CONFIG_HOME/sdkforge/config.json`` on Linux/BSD,
   ``~/.sdkforge/config.json`` elsewhere)
5. Defaults declared on :class:`~sdkforge.models.GenerateConfig`

Each layer is a partial mapping of :class:`~sdkforge.models.GenerateConfig`
fields; :func:`resolve_config` merges them and validates the result once.
``custom_mappings`` is merged key by key rather than replaced.
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Callable, Optional

import pydantic

from sdkforge.exceptions import ConfigError
from sdkforge.models import GenerateConfig

logger = logging.getLogger(__name__)

_APP_NAME = "sdkforge"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "sdkforge.json"
_ENV_PREFIX = "SDKFORGE_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the user configuration directory.

    On Linux/BSD: ``$XDG_CONFIG_HOME/sdkforge/`` (default ``~/.config/sdkforge/``).
    On macOS/Windows: ``~/.sdkforge/``. The directory is not created; sdkforge
    only reads from it.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


# --- File layers ---


def _read_json_layer(path: Path, label: str) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        raise ConfigError(f"Invalid {label} config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} config at {path}: expected a JSON object")
    logger.debug("Loaded %s config from %s", label, path)
    return data


def load_user_config() -> dict[str, Any]:
    """Load the user-wide config file, or ``{}`` if there is none.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json_layer(get_config_dir() / _CONFIG_FILENAME, "user")


def load_project_config() -> dict[str, Any]:
    """Load ``./sdkforge.json`` from the working directory, or ``{}``.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    return _read_json_layer(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project")


# --- Environment layer ---


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _parse_list(name: str, value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_str(name: str, value: str) -> str:
    return value


_ENV_FIELDS: dict[str, Callable[[str, str], Any]] = {
    "languages": _parse_list,
    "output_dir": _parse_str,
    "package_name": _parse_str,
    "package_version": _parse_str,
    "license": _parse_str,
    "include_examples": _parse_bool,
    "parallel": _parse_bool,
    "write_files": _parse_bool,
    "provider_id": _parse_str,
    "provider_name": _parse_str,
    "strict": _parse_bool,
}


def load_env_config() -> dict[str, Any]:
    """Collect ``SDKFORGE_*`` variables into a partial config mapping.

    ``SDKFORGE_LANGUAGES`` is a comma-separated list; boolean variables
    accept ``1/0``, ``true/false``, ``yes/no`` and ``on/off``. Empty
    variables are ignored.

    Raises:
        ConfigError: If a boolean variable has an unrecognised value.
    """
    layer: dict[str, Any] = {}
    for key, parse in _ENV_FIELDS.items():
        env_name = _ENV_PREFIX + key.upper()
        value = os.environ.get(env_name, "")
        if value:
            layer[key] = parse(env_name, value)
    return layer


# --- Precedence resolution ---


def _merge(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in layer.items():
        if key == "custom_mappings" and isinstance(value, dict):
            merged[key] = {**merged.get(key, {}), **value}
        else:
            merged[key] = value
    return merged


def resolve_config(cli_overrides: Optional[dict[str, Any]] = None) -> GenerateConfig:
    """Resolve the effective generation settings.

    Args:
        cli_overrides: Values given on the command line. ``None`` entries
            mean "not given" and do not override lower layers.

    Returns:
        The validated :class:`~sdkforge.models.GenerateConfig`.

    Raises:
        ConfigError: If any layer is unreadable or the merged settings fail
            validation (unknown keys, unknown languages, wrong types).
    """
    merged: dict[str, Any] = {}
    # 4. User config
    merged = _merge(merged, load_user_config())
    # 3. Project config
    merged = _merge(merged, load_project_config())
    # 2. Environment variables
    merged = _merge(merged, load_env_config())
    # 1. CLI flags
    if cli_overrides:
        merged = _merge(merged, {k: v for k, v in cli_overrides.items() if v is not None})

    try:
        return GenerateConfig.model_validate(merged)
    except pydantic.ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
