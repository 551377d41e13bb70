"""
Configuration loading utilities.

Supports environment variable interpolation and inheritance from a
``base.yaml`` that sits next to the main file.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from alphacv.config.settings import AlphaCVConfig
from alphacv.utils.logging import get_logger

log = get_logger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return _ENV_PATTERN.sub(replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping and process environment variables."""
    with path.open(encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            msg = f"Config file {path} is not valid YAML: {e}"
            raise ValueError(msg) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file {path} must contain a mapping, got {type(data).__name__}"
        raise ValueError(msg)
    return _process_config_values(data)


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> AlphaCVConfig:
    """
    Load run configuration from YAML file(s).

    A minimal config needs only ``data.path`` and ``data.target``;
    everything else has defaults.

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional base configuration. If omitted, a ``base.yaml``
            in the same directory is used when present.

    Returns:
        Validated AlphaCVConfig.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        is_self = potential_base.resolve() == config_path.resolve()
        if potential_base.exists() and not is_self:
            base_data = load_yaml(potential_base)
        else:
            base_data = {}

    merged = _deep_merge(base_data, load_yaml(config_path))

    # Relative data paths are resolved against the config file location
    data_section = merged.get("data")
    if isinstance(data_section, dict) and data_section.get("path"):
        data_path = Path(data_section["path"])
        if not data_path.is_absolute():
            data_section["path"] = config_path.parent / data_path

    config = AlphaCVConfig.model_validate(merged)
    log.debug(
        "Loaded config",
        path=str(config_path),
        project=config.project,
        penalties=[p.value for p in config.model.penalties],
    )
    return config
