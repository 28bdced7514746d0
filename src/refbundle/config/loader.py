"""Read the YAML configuration and apply command-line overrides."""

from pathlib import Path
from typing import Any

import pydantic_yaml

from .schema import PipelineConfig


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Parse and validate a configuration file.

    Only the file is read; output and cache directories are created by the
    build, not here.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If a value is missing or out of range
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return pydantic_yaml.parse_yaml_raw_as(PipelineConfig, config_path.read_text())


def _set_dotted(config_dict: dict[str, Any], key: str, value: Any) -> None:
    *sections, field = key.split(".")
    target = config_dict
    for section in sections:
        if not isinstance(target.get(section), dict):
            raise KeyError(f"Unknown config section in override {key!r}: {section!r}")
        target = target[section]
    if field not in target:
        raise KeyError(f"Unknown config key in override {key!r}")
    target[field] = value


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Load a configuration file and replace selected values.

    Args:
        config_path: Path to the YAML file
        overrides: Values keyed by dotted path, e.g. {"indexes.num_threads": 4}

    Returns:
        PipelineConfig validated after the overrides are applied

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If an override names a key the config does not have
        pydantic.ValidationError: If an overridden value is invalid
    """
    config_dict = load_config(config_path).model_dump()
    for key, value in overrides.items():
        _set_dotted(config_dict, key, value)
    return PipelineConfig.model_validate(config_dict)
