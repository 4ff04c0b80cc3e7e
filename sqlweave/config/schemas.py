"""
Configuration Schemas for sqlweave.

Pydantic models for the declarative input of one named configuration.

Keys are accepted in kebab-case (`mapper-packages`) or snake_case
(`mapper_packages`). List-valued keys also accept a comma-separated
string, so values sourced from environment variables bind the same way
as YAML lists. Type-valued keys accept a class or a dotted import path.

Core settings are a closed set of named fields. Keys that would let
configuration replace registry components (environment, object factories,
proxy factory, default scripting language) are excluded: they are dropped
with a warning and never reach the registry set.
"""

from __future__ import annotations

import importlib
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from sqlweave.runtime.discovery import ApplicationEnvironment, Resource

logger = logging.getLogger(__name__)


def _kebab(name: str) -> str:
    return name.replace("_", "-")


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def import_type(value: Any) -> Any:
    """
    Import a dotted path (`package.module.ClassName`) to the object it names.

    Non-string values are returned unchanged.

    Raises:
        ValueError: If the path cannot be imported
    """
    if not isinstance(value, str):
        return value
    module_name, _, attr = value.strip().rpartition(".")
    if not module_name:
        raise ValueError(f"'{value}' is not a dotted import path")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import '{value}': {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ValueError(f"Module '{module_name}' has no attribute '{attr}'") from None


class ExecutorType(str, Enum):
    """How sessions reuse prepared statements."""

    SIMPLE = "SIMPLE"
    REUSE = "REUSE"
    BATCH = "BATCH"


# Settings governed exclusively by the assembler and the component pool
EXCLUDED_SETTINGS = frozenset(
    {
        "environment",
        "proxy_factory",
        "reflector_factory",
        "object_factory",
        "object_wrapper_factory",
        "default_scripting_language",
    }
)


class CoreSettings(BaseModel):
    """
    Primitive runtime knobs copied onto the registry set.

    Example (YAML):
        configuration:
          default-executor-type: REUSE
          map-underscore-to-camel-case: true
          variables:
            schema: app
          lazy-load-trigger-methods: __eq__,__repr__
    """

    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    default_executor_type: ExecutorType = Field(
        ExecutorType.SIMPLE, description="Executor used by sessions opened without an explicit type"
    )
    map_underscore_to_camel_case: bool = Field(
        False, description="Map `city_name` columns onto `cityName` properties"
    )
    variables: dict[str, str] = Field(
        default_factory=dict, description="Values substituted for ${name} in statements"
    )
    lazy_load_trigger_methods: frozenset[str] = Field(
        frozenset({"__eq__", "__hash__", "__repr__", "__str__"}),
        description="Methods that load every pending lazy property",
    )
    cache_enabled: bool = Field(True, description="Use namespace caches for selects")
    lazy_loading_enabled: bool = Field(False, description="Load associations on first access")
    aggressive_lazy_loading: bool = Field(
        False, description="Any property access loads all pending properties"
    )
    use_generated_keys: bool = Field(False, description="Return generated keys from inserts")
    default_statement_timeout: int | None = Field(None, ge=1, description="Seconds")
    default_fetch_size: int | None = Field(None, ge=1)
    call_setters_on_nulls: bool = Field(False, description="Set properties for NULL columns")
    return_instance_for_empty_row: bool = Field(
        False, description="Return an empty object instead of None for all-NULL rows"
    )
    log_prefix: str | None = Field(None, description="Prefix for statement logger names")

    @model_validator(mode="before")
    @classmethod
    def _drop_excluded_settings(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        kept = {}
        for key, value in data.items():
            if str(key).replace("-", "_") in EXCLUDED_SETTINGS:
                logger.warning(
                    f"[settings] Ignoring core setting '{key}': it is managed by the component pool"
                )
                continue
            kept[key] = value
        return kept

    @field_validator("default_executor_type", mode="before")
    @classmethod
    def _upper_executor_type(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("lazy_load_trigger_methods", mode="before")
    @classmethod
    def _split_trigger_methods(cls, value: Any) -> Any:
        return _split_csv(value)


class NamedConfiguration(BaseModel):
    """
    Declarative description of one database target.

    Example:
        NamedConfiguration(
            name="default",
            mapper_packages=["app.mappers.city", "app.mappers.country"],
            mapper_xml_base_paths=["mappers/mail", "mappers/phone"],
            mapper_xml_files=["Mail.xml", "Phone.xml"],
        )
    """

    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    name: str = Field(..., min_length=1, description="Unique configuration name")

    # Mappers
    mappers: list[type] = Field(default_factory=list, description="Explicit mapper interfaces")
    mapper_packages: list[str] = Field(
        default_factory=list, description="Packages scanned for @mapper interfaces (empty: all)"
    )
    mapper_xml_base_paths: list[str] = Field(
        default_factory=list, description="Resource roots searched for mapper documents"
    )
    mapper_xml_files: list[str] = Field(
        default_factory=list, description="Mapper documents that must all resolve"
    )

    # Type aliases
    type_alias_packages: list[str] = Field(default_factory=list)
    type_alias_super_type: type = Field(object, description="Bound applied to scanned aliases only")
    type_aliases: list[type] = Field(default_factory=list)

    # Type converters
    type_converter_packages: list[str] = Field(default_factory=list)
    type_converters: list[type] = Field(default_factory=list)

    # Scripting
    scripting_language_drivers: list[type] = Field(default_factory=list)
    default_scripting_language_driver: type | None = None

    # Data source
    data_source_name: str | None = Field(
        None, description="Data source qualifier (defaults to the configuration name)"
    )

    configuration: CoreSettings = Field(default_factory=CoreSettings)

    @field_validator(
        "mapper_packages",
        "mapper_xml_base_paths",
        "mapper_xml_files",
        "type_alias_packages",
        "type_converter_packages",
        mode="before",
    )
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator(
        "mappers",
        "type_aliases",
        "type_converters",
        "scripting_language_drivers",
        mode="before",
    )
    @classmethod
    def _import_types(cls, value: Any) -> Any:
        value = _split_csv(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return [import_type(item) for item in value]
        return value

    @field_validator("type_alias_super_type", "default_scripting_language_driver", mode="before")
    @classmethod
    def _import_type(cls, value: Any) -> Any:
        return import_type(value)

    @field_validator("data_source_name", mode="before")
    @classmethod
    def _blank_data_source_name(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def resolved_data_source_name(self) -> str:
        """Name the data source is looked up under."""
        return self.data_source_name or self.name

    def find_mappers(self, environment: ApplicationEnvironment) -> frozenset[type]:
        """Resolve the mapper interfaces for this configuration."""
        from sqlweave.runtime.resolver import find_mappers

        return find_mappers(self, environment)

    def find_mapper_xml_files(self, environment: ApplicationEnvironment) -> tuple[Resource, ...]:
        """Resolve the mapper documents for this configuration."""
        from sqlweave.runtime.resolver import find_mapper_xml_files

        return find_mapper_xml_files(self, environment)
