"""
Session Factory.

The immutable product of assembly: a frozen registry set bound to one data
source under the configuration's name. Safe to share between threads.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlweave.errors import ConfigurationError, FrozenConfigurationError

from .session import SqlSession

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from sqlweave.config.schemas import ExecutorType
    from sqlweave.registry.configuration import Configuration

logger = logging.getLogger(__name__)


class SessionFactory:
    """
    Opens sessions against a frozen registry set.

    Example:
        factory = SessionFactory(configuration)
        with factory.open_session() as session:
            session.select_list("app.mappers.CityMapper.find_all")
    """

    def __init__(self, configuration: Configuration):
        if configuration.environment is None:
            raise ConfigurationError("A session factory requires a bound environment")
        configuration.freeze()
        object.__setattr__(self, "_configuration", configuration)

    def __setattr__(self, name: str, value: Any) -> None:
        raise FrozenConfigurationError(f"SessionFactory is immutable; cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise FrozenConfigurationError(f"SessionFactory is immutable; cannot delete '{name}'")

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def name(self) -> str:
        """Environment id, equal to the configuration name."""
        return self._configuration.environment.id

    @property
    def data_source(self) -> Engine:
        return self._configuration.environment.data_source

    @property
    def mappers(self) -> list[type]:
        return self._configuration.mapper_registry.mappers

    def open_session(
        self,
        executor_type: ExecutorType | None = None,
        autocommit: bool = False,
    ) -> SqlSession:
        """
        Open a session.

        Args:
            executor_type: Executor strategy (defaults to the configured one)
            autocommit: Commit on close instead of rolling back
        """
        return SqlSession(self, executor_type, autocommit)

    def __repr__(self) -> str:
        return f"SessionFactory(name={self.name!r}, mappers={len(self.mappers)})"
