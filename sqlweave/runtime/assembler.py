"""
Registry Assembler.

Populates one registry set from a named configuration and the component
pool through an explicit, ordered tuple of passes.

Pass order:
    1. environment              data source + transaction factory, id = name
    2. type_aliases             scanned (bounded by super type), then explicit
    3. type_converters          scanned, explicit, then every pool converter
    4. factory_overrides        at most one pool override per factory role
    5. interceptors             every pool interceptor, in pool order
    6. scripting_drivers        explicit, pool, then the configured default
    7. caches_and_database_id   pool caches, then the database identity

Then every pool ConfigurationCustomizer, in pool order.

Design Principle:
    Each pass declares the passes it reads from in `requires`. The
    assembler validates the order when it is constructed, so a custom pass
    list that reads a registry before it is populated fails immediately
    with AssemblyOrderError instead of producing a half-built factory.

Usage:
    assembler = RegistryAssembler()
    assembler.assemble(AssemblyContext(
        name="default",
        config=config,
        pool=pool,
        environment=environment,
        configuration=Configuration(config.configuration),
        data_source=engine,
        transaction_factory=ConnectionTransactionFactory(),
    ))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from sqlweave.components.protocols import (
    FACTORY_OVERRIDES,
    Cache,
    ConfigurationCustomizer,
    DatabaseIdProvider,
    Interceptor,
    LanguageDriver,
    TypeConverter,
)
from sqlweave.errors import AssemblyOrderError, DatabaseIdResolutionError
from sqlweave.registry.configuration import Environment

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from sqlweave.components.pool import ComponentPool
    from sqlweave.config.schemas import NamedConfiguration
    from sqlweave.registry.configuration import Configuration
    from sqlweave.session.transaction import TransactionFactory

    from .discovery import ApplicationEnvironment

logger = logging.getLogger(__name__)


@dataclass
class AssemblyContext:
    """Inputs of one assembly run and the registry set being populated."""

    name: str
    config: NamedConfiguration
    pool: ComponentPool
    environment: ApplicationEnvironment
    configuration: Configuration
    data_source: Engine
    transaction_factory: TransactionFactory
    applied: list[str] = field(default_factory=list)


class AssemblyPass(ABC):
    """One ordered step of registry assembly."""

    name: ClassVar[str]
    requires: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def apply(self, context: AssemblyContext) -> None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


# =============================================================================
# Passes
# =============================================================================


class EnvironmentPass(AssemblyPass):
    """Bind the data source and transaction strategy under the configuration name."""

    name = "environment"

    def apply(self, context: AssemblyContext) -> None:
        context.configuration.environment = Environment(
            id=context.name,
            transaction_factory=context.transaction_factory,
            data_source=context.data_source,
        )


class TypeAliasPass(AssemblyPass):
    """
    Register type aliases.

    Scanned classes must satisfy `type_alias_super_type`; explicit aliases
    are registered without that bound.
    """

    name = "type_aliases"

    def apply(self, context: AssemblyContext) -> None:
        config = context.config
        registry = context.configuration.type_alias_registry
        for package in config.type_alias_packages:
            candidates = context.environment.scan(_any_class, package)
            count = registry.register_aliases(candidates, config.type_alias_super_type)
            logger.debug(f"[assembler] {context.name}: {count} alias(es) from {package}")
        for alias_type in config.type_aliases:
            registry.register_alias(alias_type)


class TypeConverterPass(AssemblyPass):
    """Register scanned, explicit, then pool converters; later registrations win."""

    name = "type_converters"
    requires = ("type_aliases",)

    def apply(self, context: AssemblyContext) -> None:
        config = context.config
        registry = context.configuration.type_converter_registry
        for package in config.type_converter_packages:
            candidates = context.environment.scan(_any_class, package)
            count = registry.register_all(candidates)
            logger.debug(f"[assembler] {context.name}: {count} converter(s) from {package}")
        for converter_type in config.type_converters:
            registry.register(converter_type)
        for converter in context.pool.find_all(TypeConverter):
            registry.register(converter)


class FactoryOverridePass(AssemblyPass):
    """Install the pool's object, wrapper, reflector and proxy factory overrides."""

    name = "factory_overrides"

    def apply(self, context: AssemblyContext) -> None:
        for slot, capability in FACTORY_OVERRIDES.items():
            override = context.pool.find_unique(capability)
            if override is not None:
                setattr(context.configuration, slot, override)
                logger.debug(
                    f"[assembler] {context.name}: {slot} overridden by {type(override).__name__}"
                )


class InterceptorPass(AssemblyPass):
    """Install pool interceptors in registration order."""

    name = "interceptors"
    requires = ("factory_overrides",)

    def apply(self, context: AssemblyContext) -> None:
        for interceptor in context.pool.find_all(Interceptor):
            context.configuration.add_interceptor(interceptor)


class ScriptingDriverPass(AssemblyPass):
    """Register explicit then pool drivers, then set the configured default."""

    name = "scripting_drivers"
    requires = ("type_aliases",)

    def apply(self, context: AssemblyContext) -> None:
        registry = context.configuration.language_registry
        for driver_type in context.config.scripting_language_drivers:
            registry.register(driver_type)
        for driver in context.pool.find_all(LanguageDriver):
            registry.register(driver)
        default = context.config.default_scripting_language_driver
        if default is not None:
            registry.set_default_driver_class(default)
            logger.debug(f"[assembler] {context.name}: default driver {default.__name__}")


class CacheAndDatabaseIdPass(AssemblyPass):
    """
    Install pool caches and record the database identity.

    Raises:
        DatabaseIdResolutionError: If the identity provider fails against
            the bound data source
    """

    name = "caches_and_database_id"
    requires = ("environment",)

    def apply(self, context: AssemblyContext) -> None:
        configuration = context.configuration
        for cache in context.pool.find_all(Cache):
            configuration.add_cache(cache)

        provider = context.pool.find_unique(DatabaseIdProvider)
        if provider is None:
            return
        data_source = configuration.environment.data_source
        try:
            configuration.database_id = provider.get_database_id(data_source)
        except Exception as e:
            raise DatabaseIdResolutionError(
                f"Could not get a databaseId from dataSource for configuration "
                f"'{context.name}'. Cause: {e}"
            ) from e
        logger.debug(f"[assembler] {context.name}: database id {configuration.database_id!r}")


DEFAULT_PASSES: tuple[AssemblyPass, ...] = (
    EnvironmentPass(),
    TypeAliasPass(),
    TypeConverterPass(),
    FactoryOverridePass(),
    InterceptorPass(),
    ScriptingDriverPass(),
    CacheAndDatabaseIdPass(),
)


# =============================================================================
# Assembler
# =============================================================================


class RegistryAssembler:
    """
    Runs assembly passes in order, then the pool's configuration customizers.

    Raises:
        AssemblyOrderError: On construction, if a pass requires a pass that
            does not run before it
    """

    def __init__(self, passes: Sequence[AssemblyPass] = DEFAULT_PASSES):
        self.passes: tuple[AssemblyPass, ...] = tuple(passes)
        validate_order(self.passes)

    def assemble(self, context: AssemblyContext) -> Configuration:
        """
        Populate the registry set of `context`.

        Returns:
            The populated (still mutable) registry set
        """
        for assembly_pass in self.passes:
            assembly_pass.apply(context)
            context.applied.append(assembly_pass.name)
            logger.debug(f"[assembler] {context.name}: applied pass '{assembly_pass.name}'")

        customizers = context.pool.find_all(ConfigurationCustomizer)
        for customizer in customizers:
            customizer.customize(context.configuration)

        logger.info(
            f"[assembler] Assembled registry set '{context.name}' | "
            f"passes={len(context.applied)} | customizers={len(customizers)}"
        )
        return context.configuration


def validate_order(passes: Sequence[AssemblyPass]) -> None:
    """
    Check that every pass runs after the passes it requires.

    Raises:
        AssemblyOrderError: On a missing, late or duplicated pass
    """
    seen: set[str] = set()
    for assembly_pass in passes:
        if assembly_pass.name in seen:
            raise AssemblyOrderError(f"Assembly pass '{assembly_pass.name}' is listed twice")
        missing = [name for name in assembly_pass.requires if name not in seen]
        if missing:
            raise AssemblyOrderError(
                f"Assembly pass '{assembly_pass.name}' requires {missing} to run before it"
            )
        seen.add(assembly_pass.name)


def _any_class(cls: type) -> bool:
    return True
