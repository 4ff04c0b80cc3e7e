"""
sqlweave Configuration

Declarative named configurations loaded from YAML, overrides and the
environment.
"""

from .loader import ENV_PREFIX, ROOT_KEY, load_configurations, read_yaml
from .merge import deep_merge
from .schemas import (
    EXCLUDED_SETTINGS,
    CoreSettings,
    ExecutorType,
    NamedConfiguration,
    import_type,
)

__all__ = [
    "CoreSettings",
    "ENV_PREFIX",
    "EXCLUDED_SETTINGS",
    "ExecutorType",
    "NamedConfiguration",
    "ROOT_KEY",
    "deep_merge",
    "import_type",
    "load_configurations",
    "read_yaml",
]
