"""
Configuration Loader.

Builds NamedConfiguration objects from layered sources. Later layers win:

1. YAML file (or an already-parsed mapping) under the `sqlweave:` root key
2. Programmatic overrides, deep-merged
3. Environment variables `SQLWEAVE__<NAME>__<KEY>[__<SUBKEY>...]`

File Format:
    sqlweave:
      default:
        mapper-packages: [app.mappers.city, app.mappers.country]
        configuration:
          map-underscore-to-camel-case: true
      2nd:
        data-source-name: reporting
        mapper-xml-base-paths: [mappers/mail, mappers/phone]
        mapper-xml-files: [Mail.xml, Phone.xml]

Environment:
    SQLWEAVE__DEFAULT__MAPPER_PACKAGES=app.mappers.city,app.mappers.region
    SQLWEAVE__DEFAULT__CONFIGURATION__CACHE_ENABLED=false
    SQLWEAVE__DEFAULT__CONFIGURATION__VARIABLES__SCHEMA=app

Usage:
    configs = load_configurations("config/sqlweave.yaml")
    configs["default"].mapper_packages
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from sqlweave.errors import ConfigurationError

from .merge import deep_merge
from .schemas import NamedConfiguration

logger = logging.getLogger(__name__)

ROOT_KEY = "sqlweave"
ENV_PREFIX = "SQLWEAVE__"

# Keys whose children are user data, not settings names
_OPAQUE_KEYS = frozenset({"variables"})


def read_yaml(path: str | Path) -> dict[str, Any]:
    """
    Read the configuration mappings from a YAML file.

    Returns the mapping under the `sqlweave:` root key, or the whole
    document when the key is absent.

    Raises:
        ConfigurationError: If the file is missing or not a YAML mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(document, Mapping):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    logger.debug(f"[config_loader] Read configuration file: {path}")
    return _unwrap_root(document)


def load_configurations(
    source: str | Path | Mapping[str, Any] | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, NamedConfiguration]:
    """
    Load every named configuration.

    Args:
        source: YAML file path or parsed mapping (name -> settings)
        overrides: Mapping deep-merged over the source
        environ: Environment variables (defaults to os.environ)
        env_prefix: Prefix of environment variables to apply

    Returns:
        Configurations keyed by name, in declaration order

    Raises:
        ConfigurationError: If the source is malformed
        pydantic.ValidationError: If a configuration has invalid or unknown keys
    """
    if source is None:
        raw: dict[str, Any] = {}
    elif isinstance(source, Mapping):
        raw = _unwrap_root(source)
    else:
        raw = read_yaml(source)

    raw = _normalize(raw)
    if overrides:
        raw = deep_merge(raw, _normalize(_unwrap_root(overrides)))

    environ = os.environ if environ is None else environ
    env_layer = _environment_layer(environ, env_prefix, known_names=list(raw))
    if env_layer:
        raw = deep_merge(raw, env_layer)

    configs: dict[str, NamedConfiguration] = {}
    for name, body in raw.items():
        if body is None:
            body = {}
        if not isinstance(body, Mapping):
            raise ConfigurationError(
                f"Configuration '{name}' must be a mapping, got {type(body).__name__}"
            )
        configs[str(name)] = NamedConfiguration.model_validate({**body, "name": str(name)})

    logger.info(f"[config_loader] Loaded {len(configs)} named configuration(s): {list(configs)}")
    return configs


def _unwrap_root(document: Mapping[str, Any]) -> dict[str, Any]:
    body = document.get(ROOT_KEY, document)
    if body is None:
        return {}
    if not isinstance(body, Mapping):
        raise ConfigurationError(f"'{ROOT_KEY}' must be a mapping of configuration names")
    return dict(body)


def _normalize(data: Mapping[str, Any], depth: int = 0) -> dict[str, Any]:
    """Convert kebab-case setting keys to snake_case below the name level."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        key = str(key)
        if depth > 0:
            key = key.replace("-", "_")
        if isinstance(value, Mapping) and key not in _OPAQUE_KEYS:
            value = _normalize(value, depth + 1)
        result[key] = value
    return result


def _environment_layer(
    environ: Mapping[str, str],
    prefix: str,
    known_names: list[str],
) -> dict[str, Any]:
    by_lower_name = {name.lower(): name for name in known_names}
    layer: dict[str, Any] = {}
    for key, value in environ.items():
        if not key.upper().startswith(prefix.upper()):
            continue
        parts = [part.lower() for part in key[len(prefix) :].split("__") if part]
        if len(parts) < 2:
            logger.warning(f"[config_loader] Ignoring environment variable without a key: {key}")
            continue
        name = by_lower_name.get(parts[0], parts[0])
        node = layer.setdefault(name, {})
        for part in parts[1:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                raise ConfigurationError(f"Environment variable {key} conflicts with a sibling value")
            node = child
        node[parts[-1]] = value
        logger.debug(f"[config_loader] Applied environment override: {key}")
    return layer
