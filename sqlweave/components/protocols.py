"""
Component Capabilities.

The capability types the assembler looks up in the component pool. A
component is registered under exactly one of these.

| Capability              | Lookup      | Applied by                       |
|-------------------------|-------------|----------------------------------|
| Engine                  | by name     | data source resolution           |
| TypeConverter           | all         | type converters pass             |
| ObjectFactory           | zero or one | factory overrides pass           |
| ObjectWrapperFactory    | zero or one | factory overrides pass           |
| ReflectorFactory        | zero or one | factory overrides pass           |
| ProxyFactory            | zero or one | factory overrides pass           |
| Interceptor             | all         | interceptors pass                |
| LanguageDriver          | all         | scripting drivers pass           |
| Cache                   | all         | caches and database identity     |
| DatabaseIdProvider      | zero or one | caches and database identity     |
| ConfigurationCustomizer | all         | after every pass                 |
"""

from sqlalchemy.engine import Engine

from sqlweave.registry.caches import Cache
from sqlweave.registry.configuration import ConfigurationCustomizer
from sqlweave.registry.database_id import DatabaseIdProvider
from sqlweave.registry.factories import (
    ObjectFactory,
    ObjectWrapperFactory,
    ProxyFactory,
    ReflectorFactory,
)
from sqlweave.registry.interceptors import Interceptor
from sqlweave.registry.scripting import LanguageDriver
from sqlweave.registry.type_converters import TypeConverter

# Roles installed into a single slot of the registry set
FACTORY_OVERRIDES: dict[str, type] = {
    "object_factory": ObjectFactory,
    "object_wrapper_factory": ObjectWrapperFactory,
    "reflector_factory": ReflectorFactory,
    "proxy_factory": ProxyFactory,
}

__all__ = [
    "FACTORY_OVERRIDES",
    "Cache",
    "ConfigurationCustomizer",
    "DatabaseIdProvider",
    "Engine",
    "Interceptor",
    "LanguageDriver",
    "ObjectFactory",
    "ObjectWrapperFactory",
    "ProxyFactory",
    "ReflectorFactory",
    "TypeConverter",
]
