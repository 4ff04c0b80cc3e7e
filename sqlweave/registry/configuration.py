"""
Registry Set.

`Configuration` is the mutable value the assembly passes populate: the
environment binding, the seven registries (type aliases, type converters,
factories, interceptors, scripting drivers, caches, database identity),
mapper bindings and mapped statements, plus the core runtime settings.

Once a session factory is built the configuration is frozen and every
mutation raises FrozenConfigurationError.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from sqlweave.errors import BindingError, FrozenConfigurationError, MapperDocumentError

from .caches import Cache
from .factories import (
    DefaultObjectFactory,
    DefaultObjectWrapperFactory,
    DefaultProxyFactory,
    DefaultReflectorFactory,
    ObjectFactory,
    ObjectWrapperFactory,
    ProxyFactory,
    ReflectorFactory,
)
from .interceptors import Interceptor, InterceptorChain
from .scripting import LanguageDriverRegistry, RawLanguageDriver, XmlLanguageDriver
from .type_aliases import TypeAliasRegistry
from .type_converters import TypeConverterRegistry

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from sqlweave.config.schemas import CoreSettings, ExecutorType
    from sqlweave.mapping.statements import MappedStatement
    from sqlweave.session.transaction import TransactionFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Environment:
    """Connection binding of a registry set; `id` is the configuration name."""

    id: str
    transaction_factory: TransactionFactory
    data_source: Engine


class ConfigurationCustomizer(ABC):
    """Gets full access to the registry set after all passes, before mappers attach."""

    @abstractmethod
    def customize(self, configuration: Configuration) -> None: ...


class Configuration:
    """
    The registry set of one named configuration.

    Example:
        configuration = Configuration(settings.configuration)
        configuration.type_alias_registry.register_alias(City)
        configuration.add_interceptor(AuditInterceptor())
        configuration.freeze()
    """

    def __init__(self, settings: CoreSettings | None = None):
        from sqlweave.config.schemas import CoreSettings
        from sqlweave.mapping.mapper_registry import MapperRegistry

        settings = settings or CoreSettings()

        # Core settings
        self.default_executor_type: ExecutorType = settings.default_executor_type
        self.map_underscore_to_camel_case = settings.map_underscore_to_camel_case
        self.variables: dict[str, str] = dict(settings.variables)
        self.lazy_load_trigger_methods: set[str] = set(settings.lazy_load_trigger_methods)
        self.cache_enabled = settings.cache_enabled
        self.lazy_loading_enabled = settings.lazy_loading_enabled
        self.aggressive_lazy_loading = settings.aggressive_lazy_loading
        self.use_generated_keys = settings.use_generated_keys
        self.default_statement_timeout = settings.default_statement_timeout
        self.default_fetch_size = settings.default_fetch_size
        self.call_setters_on_nulls = settings.call_setters_on_nulls
        self.return_instance_for_empty_row = settings.return_instance_for_empty_row
        self.log_prefix = settings.log_prefix

        # Environment binding
        self.environment: Environment | None = None

        # Registries
        self.type_alias_registry = TypeAliasRegistry()
        self.type_converter_registry = TypeConverterRegistry()
        self.object_factory: ObjectFactory = DefaultObjectFactory()
        self.object_wrapper_factory: ObjectWrapperFactory = DefaultObjectWrapperFactory()
        self.reflector_factory: ReflectorFactory = DefaultReflectorFactory()
        self.proxy_factory: ProxyFactory = DefaultProxyFactory()
        self.interceptor_chain = InterceptorChain()
        self.language_registry = LanguageDriverRegistry()
        self.type_alias_registry.register_alias("xml", XmlLanguageDriver)
        self.type_alias_registry.register_alias("raw", RawLanguageDriver)
        self.caches: dict[str, Cache] = {}
        self.database_id: str | None = None

        # Mappers
        self.mapper_registry = MapperRegistry(self)
        self.mapped_statements: dict[str, MappedStatement] = {}
        self.sql_fragments: dict[str, Any] = {}
        self.loaded_resources: list[str] = []

        self._frozen = False

    # ==================== Freezing ====================

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise FrozenConfigurationError(
                f"Cannot set '{name}': the configuration belongs to a built session factory"
            )
        super().__setattr__(name, value)

    def freeze(self) -> None:
        """Make the registry set read-only."""
        if self._frozen:
            return
        self.variables = MappingProxyType(dict(self.variables))  # type: ignore[assignment]
        self.lazy_load_trigger_methods = frozenset(self.lazy_load_trigger_methods)  # type: ignore[assignment]
        self.caches = MappingProxyType(dict(self.caches))  # type: ignore[assignment]
        self.mapped_statements = MappingProxyType(dict(self.mapped_statements))  # type: ignore[assignment]
        self.sql_fragments = MappingProxyType(dict(self.sql_fragments))  # type: ignore[assignment]
        self.loaded_resources = tuple(self.loaded_resources)  # type: ignore[assignment]
        for registry in (
            self.type_alias_registry,
            self.type_converter_registry,
            self.interceptor_chain,
            self.language_registry,
            self.mapper_registry,
        ):
            registry.freeze()
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenConfigurationError("The configuration belongs to a built session factory")

    # ==================== Interceptors ====================

    def add_interceptor(self, interceptor: Interceptor) -> None:
        self.interceptor_chain.add_interceptor(interceptor)

    @property
    def interceptors(self) -> list[Interceptor]:
        return self.interceptor_chain.interceptors

    # ==================== Caches ====================

    def add_cache(self, cache: Cache) -> None:
        """
        Register a named cache.

        Raises:
            ValueError: If a cache with the same id is already registered
        """
        self._check_mutable()
        if cache.id in self.caches:
            raise ValueError(f"Caches collection already contains value for {cache.id}")
        self.caches[cache.id] = cache
        logger.debug(f"[configuration] Added cache: {cache.id}")

    def cache_for_namespace(self, namespace: str) -> Cache | None:
        return self.caches.get(namespace)

    # ==================== Mappers ====================

    def add_mapper(self, interface: type) -> None:
        self.mapper_registry.add_mapper(interface)

    def has_mapper(self, interface: type) -> bool:
        return self.mapper_registry.has_mapper(interface)

    def get_mapper(self, interface: type, session: Any) -> Any:
        return self.mapper_registry.get_mapper(interface, session)

    def add_mapped_statement(self, statement: MappedStatement) -> None:
        """
        Register a mapped statement.

        Raises:
            MapperDocumentError: If the id is already registered
        """
        self._check_mutable()
        if statement.id in self.mapped_statements:
            existing = self.mapped_statements[statement.id]
            raise MapperDocumentError(
                f"Mapped Statements collection already contains value for {statement.id}. "
                f"Please check {existing.resource} and {statement.resource}",
                resource=statement.resource,
            )
        self.mapped_statements[statement.id] = statement

    def has_statement(self, statement_id: str) -> bool:
        return statement_id in self.mapped_statements

    def get_mapped_statement(self, statement_id: str) -> MappedStatement:
        try:
            return self.mapped_statements[statement_id]
        except KeyError:
            raise BindingError(f"Invalid bound statement (not found): {statement_id}") from None

    def __repr__(self) -> str:
        env = self.environment.id if self.environment else None
        return (
            f"Configuration(environment={env!r}, mappers={len(self.mapper_registry.mappers)}, "
            f"statements={len(self.mapped_statements)}, frozen={self._frozen})"
        )
