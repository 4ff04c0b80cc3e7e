"""
sqlweave - configuration-driven assembly of SQL session factories.

sqlweave builds one immutable session factory per named database target
from declarative configuration:

- **Named Configurations**: mapper packages, mapper documents, type aliases,
  type converters and scripting drivers per target, loaded from YAML,
  overrides and environment variables
- **Component Pool**: interceptors, converters, caches, factory overrides,
  database-id providers, customizers and named data sources shared by
  every target
- **Ordered Assembly**: seven explicit passes populate each registry set
- **Publishing**: mapper proxies registered per (interface, configuration name)

Quick Start:
    >>> from sqlalchemy import create_engine
    >>> from sqlalchemy.engine import Engine
    >>> from sqlweave import (
    ...     ApplicationEnvironment, BeanContext, ComponentPool,
    ...     load_configurations, load_session_factories,
    ... )
    >>>
    >>> pool = ComponentPool.builder().register(Engine, create_engine("sqlite://"), name="default").build()
    >>> configs = load_configurations({"default": {"mapper-packages": ["app.mappers"]}})
    >>> context = BeanContext()
    >>> load_session_factories(configs, pool, ApplicationEnvironment(["app"]), context)
    >>> context.get_bean(CityMapper, "default").find_by_id(1)
"""

__version__ = "0.1.0"

from sqlweave.components import ComponentPool, ComponentPoolBuilder
from sqlweave.config import CoreSettings, ExecutorType, NamedConfiguration, load_configurations
from sqlweave.context import BeanContext
from sqlweave.errors import SqlWeaveError
from sqlweave.mapping import alias, delete, insert, mapper, select, update
from sqlweave.runtime import (
    ApplicationEnvironment,
    LoadResult,
    SessionFactoryBuilder,
    load_session_factories,
)
from sqlweave.session import SessionFactory, SessionTemplate, SqlSession

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "CoreSettings",
    "ExecutorType",
    "NamedConfiguration",
    "load_configurations",
    # Assembly
    "ApplicationEnvironment",
    "BeanContext",
    "ComponentPool",
    "ComponentPoolBuilder",
    "LoadResult",
    "SessionFactoryBuilder",
    "load_session_factories",
    # Mapping
    "alias",
    "delete",
    "insert",
    "mapper",
    "select",
    "update",
    # Sessions
    "SessionFactory",
    "SessionTemplate",
    "SqlSession",
    # Errors
    "SqlWeaveError",
]
