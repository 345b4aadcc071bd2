"""Configuration loader for Cukes."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from cukes.config.schema import CukesConfig
from cukes.core.errors import ConfigurationError


CONFIG_FILENAMES = [".cukes.yaml", ".cukes.yml", "cukes.yaml", "cukes.yml"]
GLOBAL_CONFIG_DIR = Path.home() / ".config" / "cukes"
GLOBAL_CONFIG_FILE = GLOBAL_CONFIG_DIR / "config.yaml"


def find_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find configuration file in current or parent directories."""
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    # Search upward for config file
    while current != current.parent:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.exists():
                return config_path
        current = current.parent

    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load YAML configuration file."""
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data and not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {path} must be a mapping")
    return data if data else {}


def load_config(
    config_file: Optional[Path] = None,
    project_dir: Optional[Path] = None,
) -> CukesConfig:
    """Load and merge configuration from all sources.

    Priority (later overrides earlier):
    1. Built-in defaults
    2. Global config (~/.config/cukes/config.yaml)
    3. Project config (.cukes.yaml)
    4. Explicit config file (if provided)
    """
    config_data: Dict[str, Any] = {}

    if GLOBAL_CONFIG_FILE.exists():
        config_data = _deep_merge(config_data, load_yaml_file(GLOBAL_CONFIG_FILE))

    project_file = find_config_file(project_dir)
    if project_file and project_file != config_file:
        config_data = _deep_merge(config_data, load_yaml_file(project_file))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        config_data = _deep_merge(config_data, load_yaml_file(config_file))

    try:
        return CukesConfig(**config_data) if config_data else CukesConfig()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def save_config(config: CukesConfig, path: Path) -> None:
    """Save configuration to YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude_defaults=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
