"""
sqlweave Registry Set

The seven registries populated during assembly (type aliases, type
converters, factories, interceptors, scripting drivers, caches, database
identity) and the Configuration that holds them.
"""

from .caches import Cache, LruCache
from .database_id import DatabaseIdProvider, VendorDatabaseIdProvider
from .factories import (
    DefaultObjectFactory,
    DefaultObjectWrapperFactory,
    DefaultProxyFactory,
    DefaultReflectorFactory,
    LazyLoader,
    LazyLoadingProxy,
    ObjectFactory,
    ObjectWrapper,
    ObjectWrapperFactory,
    ProxyFactory,
    Reflector,
    ReflectorFactory,
)
from .freezable import Freezable
from .interceptors import Interceptor, InterceptorChain, Invocation, Plugin
from .scripting import (
    LanguageDriver,
    LanguageDriverRegistry,
    RawLanguageDriver,
    XmlLanguageDriver,
    substitute_variables,
)
from .type_aliases import TypeAliasRegistry
from .type_converters import TypeConverter, TypeConverterRegistry
from .configuration import Configuration, ConfigurationCustomizer, Environment

__all__ = [
    "Cache",
    "Configuration",
    "ConfigurationCustomizer",
    "DatabaseIdProvider",
    "DefaultObjectFactory",
    "DefaultObjectWrapperFactory",
    "DefaultProxyFactory",
    "DefaultReflectorFactory",
    "Environment",
    "Freezable",
    "Interceptor",
    "InterceptorChain",
    "Invocation",
    "LanguageDriver",
    "LanguageDriverRegistry",
    "LazyLoader",
    "LazyLoadingProxy",
    "LruCache",
    "ObjectFactory",
    "ObjectWrapper",
    "ObjectWrapperFactory",
    "Plugin",
    "ProxyFactory",
    "RawLanguageDriver",
    "Reflector",
    "ReflectorFactory",
    "TypeAliasRegistry",
    "TypeConverter",
    "TypeConverterRegistry",
    "VendorDatabaseIdProvider",
    "XmlLanguageDriver",
    "substitute_variables",
]
