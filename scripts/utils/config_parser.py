"""
vcoords Configuration Parser

Loads the YAML configuration shared by the annotation steps and turns the
relevant sections into the immutable option structs the vcoords library
takes per call.

Example configuration::

    frameshift:
      min_internal_length: 6
      min_terminal_length: 4
    model_map:
      file: models/norovirus.mmap

Usage:
    from utils.config_parser import (
        load_config, frameshift_policy_from_config, model_map_from_config,
    )
    config = load_config("vcoords.yaml")
    policy = frameshift_policy_from_config(config)
    maps = model_map_from_config(config)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from vcoords.frameshift import FrameshiftPolicy
from vcoords.model_map import ModelMap, read_model_map

logger = logging.getLogger(__name__)

FRAMESHIFT_KEYS = ("min_internal_length", "min_terminal_length")


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}

    logger.debug(f"Loaded configuration from {path}")
    return config


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Examples:
        >>> config = {"frameshift": {"min_internal_length": 9}}
        >>> get_nested(config, "frameshift.min_internal_length")
        9
        >>> get_nested(config, "frameshift.missing", "default")
        'default'
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def flatten_config(config: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """
    Flatten nested config into flat dictionary with dot-notation keys.

    Examples:
        >>> flatten_config({"frameshift": {"min_terminal_length": 4}})
        {'frameshift.min_terminal_length': '4'}
    """
    flat = {}

    for key, value in config.items():
        full_key = f"{prefix}.{key}" if prefix else key

        if isinstance(value, dict):
            flat.update(flatten_config(value, full_key))
        elif value is None:
            flat[full_key] = ""
        elif isinstance(value, bool):
            flat[full_key] = "true" if value else "false"
        else:
            flat[full_key] = str(value)

    return flat


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    for key in FRAMESHIFT_KEYS:
        value = get_nested(config, f"frameshift.{key}")
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            errors.append(f"frameshift.{key} must be an integer, got {value!r}")
        elif value < 1:
            errors.append(f"frameshift.{key} must be >= 1, got {value}")

    map_file = get_nested(config, "model_map.file")
    if map_file and not Path(map_file).exists():
        errors.append(f"Model map file not found: {map_file} (model_map.file)")

    return len(errors) == 0, errors


def frameshift_policy_from_config(config: Dict[str, Any]) -> FrameshiftPolicy:
    """
    Build a FrameshiftPolicy from the ``frameshift:`` section.

    Missing keys keep the policy defaults.

    Raises:
        ValueError: If a configured minimum is not a positive integer
    """
    section = get_nested(config, "frameshift", {}) or {}
    unknown = sorted(set(section) - set(FRAMESHIFT_KEYS))
    if unknown:
        logger.warning(f"Ignoring unknown frameshift option(s): {', '.join(unknown)}")

    options = {}
    for key in FRAMESHIFT_KEYS:
        if key in section:
            value = section[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"frameshift.{key} must be an integer, got {value!r}")
            options[key] = value

    return FrameshiftPolicy(**options)


def model_map_from_config(config: Dict[str, Any]) -> Dict[Tuple[str, str], ModelMap]:
    """
    Read the model map named by ``model_map.file``.

    Returns:
        ``(from, to)`` -> ModelMap, empty when no file is configured

    Raises:
        FileNotFoundError: If the configured file doesn't exist
        FormatError: If a line of the file is malformed
    """
    map_file = get_nested(config, "model_map.file")
    if not map_file:
        return {}
    path = Path(map_file)
    if not path.exists():
        raise FileNotFoundError(f"Model map file not found: {map_file}")

    return read_model_map(path)
