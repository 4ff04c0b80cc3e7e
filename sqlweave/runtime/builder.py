"""
Session Factory Builder.

Ties a named configuration, the component pool and a data source into one
immutable SessionFactory, then publishes it to the bean context.

Flow (per named configuration):
    1. Resolve mapper interfaces and mapper documents
    2. Look up the data source by `data_source_name` or the configuration name
    3. Assemble the registry set (seven passes + customizers)
    4. Attach mapper interfaces (non-interfaces are skipped)
    5. Parse mapper documents against the populated registries
    6. Freeze into a SessionFactory

Named configurations share nothing mutable while they are built, so
`load_session_factories` can build them on a thread pool. A failure aborts
only its own configuration.

Usage:
    pool = (
        ComponentPool.builder()
        .register(Engine, create_engine("sqlite://"), name="default")
        .build()
    )
    environment = ApplicationEnvironment(packages=["app"], resource_root="resources/")
    context = BeanContext()

    result = load_session_factories(load_configurations("sqlweave.yaml"), pool, environment, context)
    city_mapper = context.get_bean(CityMapper, "default")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy.engine import Engine

from sqlweave.errors import ConfigurationError, DataSourceNotFoundError, SessionFactoryLoadError
from sqlweave.mapping.annotations import is_interface
from sqlweave.mapping.document import MapperDocumentParser
from sqlweave.mapping.statements import namespace_of
from sqlweave.registry.configuration import Configuration
from sqlweave.session.factory import SessionFactory
from sqlweave.session.template import SessionTemplate
from sqlweave.session.transaction import ConnectionTransactionFactory, TransactionFactory

from .assembler import AssemblyContext, RegistryAssembler
from .resolver import find_mapper_xml_files, find_mappers

if TYPE_CHECKING:
    from sqlweave.components.pool import ComponentPool
    from sqlweave.config.schemas import NamedConfiguration
    from sqlweave.context import BeanContext

    from .discovery import ApplicationEnvironment

logger = logging.getLogger(__name__)


class SessionFactoryBuilder:
    """
    Builds one SessionFactory per named configuration.

    Args:
        pool: Component pool shared by every configuration
        environment: Application environment used for scanning and resources
        transaction_factory: Transaction strategy bound into each environment
        assembler: Registry assembler (defaults to the seven standard passes)
    """

    def __init__(
        self,
        pool: ComponentPool,
        environment: ApplicationEnvironment,
        transaction_factory: TransactionFactory | None = None,
        assembler: RegistryAssembler | None = None,
    ):
        self.pool = pool
        self.environment = environment
        self.transaction_factory = transaction_factory or ConnectionTransactionFactory()
        self.assembler = assembler or RegistryAssembler()

    def decide_data_source(self, name: str, config: NamedConfiguration) -> Engine:
        """
        Find the data source for a configuration.

        Looks up `config.data_source_name` when set, otherwise `name`. There
        is no fallback to an unnamed data source.

        Raises:
            DataSourceNotFoundError: If nothing is registered under that name
        """
        qualifier = config.data_source_name or name
        data_source = self.pool.find_by_name(Engine, qualifier)
        if data_source is None:
            raise DataSourceNotFoundError(qualifier, name)
        return data_source

    def build(self, name: str, config: NamedConfiguration) -> SessionFactory:
        """
        Build the session factory of one named configuration.

        Raises:
            MapperDocumentNotFoundError: If a requested mapper document is missing
            DataSourceNotFoundError: If the data source is not registered
            DatabaseIdResolutionError: If the database-id provider fails
            MapperDocumentError: If a mapper document is malformed
        """
        logger.info(f"[factory_builder] Building session factory '{name}'")

        mappers = find_mappers(config, self.environment)
        documents = find_mapper_xml_files(config, self.environment)
        data_source = self.decide_data_source(name, config)

        configuration = Configuration(config.configuration)
        self.assembler.assemble(
            AssemblyContext(
                name=name,
                config=config,
                pool=self.pool,
                environment=self.environment,
                configuration=configuration,
                data_source=data_source,
                transaction_factory=self.transaction_factory,
            )
        )

        for mapper in sorted(mappers, key=namespace_of):
            if not is_interface(mapper):
                logger.debug(f"[factory_builder] {name}: skipping non-interface {namespace_of(mapper)}")
                continue
            if not configuration.has_mapper(mapper):
                configuration.add_mapper(mapper)

        for document in documents:
            MapperDocumentParser(configuration, document).parse()

        factory = SessionFactory(configuration)
        logger.info(
            f"[factory_builder] Built session factory '{name}' | "
            f"mappers={len(factory.mappers)} | documents={len(documents)} | "
            f"statements={len(configuration.mapped_statements)}"
        )
        return factory

    def publish(self, factory: SessionFactory, context: BeanContext) -> SessionTemplate:
        """
        Publish a factory and its mapper proxies.

        Registers the factory, a SessionTemplate over it, and one mapper proxy
        per registered mapper interface, each under the configuration name.

        Returns:
            The SessionTemplate the proxies run through
        """
        name = factory.name
        template = SessionTemplate(factory)
        context.register_singleton(SessionFactory, factory, name)
        context.register_singleton(SessionTemplate, template, name)
        for mapper in factory.mappers:
            context.register_singleton(mapper, template.get_mapper(mapper), name)
        logger.info(f"[factory_builder] Published '{name}' with {len(factory.mappers)} mapper(s)")
        return template


@dataclass
class LoadResult:
    """Outcome of loading several named configurations."""

    factories: dict[str, SessionFactory] = field(default_factory=dict)
    templates: dict[str, SessionTemplate] = field(default_factory=dict)
    errors: dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def load_session_factories(
    configs: Mapping[str, NamedConfiguration] | Iterable[NamedConfiguration],
    pool: ComponentPool,
    environment: ApplicationEnvironment,
    context: BeanContext | None = None,
    *,
    transaction_factory: TransactionFactory | None = None,
    max_workers: int | None = None,
    raise_on_error: bool = True,
) -> LoadResult:
    """
    Build (and optionally publish) every named configuration.

    Each configuration is built independently; a failure is recorded under
    its name and does not stop the others.

    Args:
        configs: Configurations keyed by name, or an iterable of configurations
        pool: Component pool
        environment: Application environment
        context: Bean context to publish into (skipped when None)
        transaction_factory: Transaction strategy for every factory
        max_workers: Build on a thread pool of this size when greater than 1
        raise_on_error: Raise SessionFactoryLoadError after all builds when any failed

    Raises:
        ConfigurationError: If two configurations share a name
        SessionFactoryLoadError: If any configuration failed and raise_on_error is set
    """
    named = _named_configs(configs)
    builder = SessionFactoryBuilder(pool, environment, transaction_factory)
    result = LoadResult()

    def _build(name: str) -> SessionFactory:
        return builder.build(name, named[name])

    if max_workers and max_workers > 1 and len(named) > 1:
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sqlweave") as executor:
            futures = {name: executor.submit(_build, name) for name in named}
        outcomes = {name: future.exception() or future.result() for name, future in futures.items()}
    else:
        outcomes = {}
        for name in named:
            try:
                outcomes[name] = _build(name)
            except Exception as e:
                outcomes[name] = e

    for name, outcome in outcomes.items():
        if isinstance(outcome, BaseException):
            logger.error(f"[factory_builder] Failed to build '{name}': {outcome}")
            result.errors[name] = outcome
            continue
        result.factories[name] = outcome
        if context is not None:
            try:
                result.templates[name] = builder.publish(outcome, context)
            except Exception as e:
                logger.error(f"[factory_builder] Failed to publish '{name}': {e}")
                result.errors[name] = e

    logger.info(
        f"[factory_builder] Loaded {len(result.factories)}/{len(named)} session factory(ies)"
    )
    if result.errors and raise_on_error:
        raise SessionFactoryLoadError(result.errors, result.factories)
    return result


def _named_configs(
    configs: Mapping[str, NamedConfiguration] | Iterable[NamedConfiguration],
) -> dict[str, NamedConfiguration]:
    if isinstance(configs, Mapping):
        return dict(configs)
    named: dict[str, NamedConfiguration] = {}
    for config in configs:
        if config.name in named:
            raise ConfigurationError(f"Duplicate configuration name: '{config.name}'")
        named[config.name] = config
    return named
