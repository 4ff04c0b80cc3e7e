"""
sqlweave Runtime Layer.

Turns named configurations into session factories.

Components:
    - ApplicationEnvironment: namespaces, classes and resources of the application
    - Resolver: mapper interfaces and mapper documents of a configuration
    - RegistryAssembler: the seven ordered assembly passes
    - SessionFactoryBuilder: data source lookup, mapper attachment, freezing
    - load_session_factories: builds every configuration, optionally in parallel
"""

from .assembler import (
    DEFAULT_PASSES,
    AssemblyContext,
    AssemblyPass,
    CacheAndDatabaseIdPass,
    EnvironmentPass,
    FactoryOverridePass,
    InterceptorPass,
    RegistryAssembler,
    ScriptingDriverPass,
    TypeAliasPass,
    TypeConverterPass,
    validate_order,
)
from .builder import LoadResult, SessionFactoryBuilder, load_session_factories
from .discovery import ApplicationEnvironment, Resource, scan_package
from .resolver import find_mapper_xml_files, find_mappers

__all__ = [
    "DEFAULT_PASSES",
    "ApplicationEnvironment",
    "AssemblyContext",
    "AssemblyPass",
    "CacheAndDatabaseIdPass",
    "EnvironmentPass",
    "FactoryOverridePass",
    "InterceptorPass",
    "LoadResult",
    "RegistryAssembler",
    "Resource",
    "ScriptingDriverPass",
    "SessionFactoryBuilder",
    "TypeAliasPass",
    "TypeConverterPass",
    "find_mapper_xml_files",
    "find_mappers",
    "load_session_factories",
    "scan_package",
    "validate_order",
]
