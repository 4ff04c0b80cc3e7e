"""
Deep merge for configuration mappings.

Merge policy:
    - mapping + mapping: merged key by key
    - anything else: the override replaces the base value (lists included)
    - mapping vs. non-mapping under the same key: ConfigurationError

Inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

from sqlweave.errors import ConfigurationError


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any], path: str = "") -> dict[str, Any]:
    """
    Merge `override` into a copy of `base`.

    Args:
        base: Base mapping
        override: Values layered on top
        path: Dotted key path used in error messages

    Returns:
        New merged dict

    Raises:
        ConfigurationError: If a mapping and a scalar/list collide
    """
    result: dict[str, Any] = deepcopy(dict(base))
    for key, value in override.items():
        key_path = f"{path}.{key}" if path else str(key)
        if key not in result:
            result[key] = deepcopy(value)
            continue
        current = result[key]
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value, key_path)
        elif isinstance(current, Mapping) or isinstance(value, Mapping):
            raise ConfigurationError(
                f"Type conflict at '{key_path}': cannot merge "
                f"{type(value).__name__} into {type(current).__name__}"
            )
        else:
            result[key] = deepcopy(value)
    return result
