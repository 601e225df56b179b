"""Configuration loading for the command line tool.

The core functions take explicit arguments; this layer only decides what
the CLI passes them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from deploybundle.errors import ConfigurationError
from deploybundle.walker import DEFAULT_BATCH_SIZE

PROJECT_CONFIG_FILE = ".deploybundle.yaml"


@dataclass(slots=True)
class BundleConfig:
    """Merged configuration from all sources.

    Priority: CLI args > env vars > project config > defaults
    """

    root: str = "."
    manifest_path: str | None = None

    # Execution
    workers: int = 1
    batch_size: int = DEFAULT_BATCH_SIZE
    follow_symlinks: bool = True
    exclude_manifest: bool = True

    # Logging
    debug: bool = False
    json_logs: bool = False


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, returning empty dict if not found."""
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}
    except (yaml.YAMLError, OSError):
        return {}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(
    *,
    cli_args: dict[str, Any] | None = None,
    root: str | Path | None = None,
) -> BundleConfig:
    """Load configuration from all sources with proper priority."""
    load_dotenv()
    config = BundleConfig()
    cli_args = cli_args or {}

    config.root = str(root) if root is not None else os.getcwd()

    # 1. Project-level config (<root>/.deploybundle.yaml)
    _apply_dict(config, load_yaml_config(Path(config.root) / PROJECT_CONFIG_FILE))
    _check_manifest_path(config.manifest_path)
    if config.manifest_path and not Path(config.manifest_path).is_absolute():
        config.manifest_path = str(Path(config.root) / config.manifest_path)

    # 2. Environment variables
    if debug := os.environ.get("DEPLOYBUNDLE_DEBUG"):
        config.debug = _parse_bool(debug)
    if workers := os.environ.get("DEPLOYBUNDLE_WORKERS"):
        config.workers = workers  # type: ignore[assignment]

    # 3. CLI args (highest priority)
    _apply_dict(config, cli_args)

    _validate(config)
    return config


def _check_manifest_path(value: Any) -> None:
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(f"manifest_path must be a string, got {value!r}")


def _coerce_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if number < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {number}")
    return number


def _validate(config: BundleConfig) -> None:
    _check_manifest_path(config.manifest_path)
    config.workers = _coerce_positive_int("workers", config.workers)
    config.batch_size = _coerce_positive_int("batch_size", config.batch_size)
    for name in ("follow_symlinks", "exclude_manifest", "debug", "json_logs"):
        value = getattr(config, name)
        if isinstance(value, str):
            setattr(config, name, _parse_bool(value))
        elif not isinstance(value, bool):
            raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _apply_dict(config: BundleConfig, data: dict[str, Any]) -> None:
    """Apply dictionary values to config, only for known fields."""
    field_map = {
        "manifest_path": "manifest_path",
        "workers": "workers",
        "batch_size": "batch_size",
        "follow_symlinks": "follow_symlinks",
        "exclude_manifest": "exclude_manifest",
        "debug": "debug",
        "json_logs": "json_logs",
        # Aliases from YAML config
        "manifest": "manifest_path",
        "batchSize": "batch_size",
        "followSymlinks": "follow_symlinks",
        "excludeManifest": "exclude_manifest",
        "jsonLogs": "json_logs",
    }
    for key, attr in field_map.items():
        if key in data and data[key] is not None:
            setattr(config, attr, data[key])
