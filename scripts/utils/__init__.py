# vcoords utilities
"""Configuration helpers for the vcoords annotation core."""

from .config_parser import (
    load_config,
    get_nested,
    flatten_config,
    validate_config,
    frameshift_policy_from_config,
    model_map_from_config,
)

__all__ = [
    "load_config",
    "get_nested",
    "flatten_config",
    "validate_config",
    "frameshift_policy_from_config",
    "model_map_from_config",
]
