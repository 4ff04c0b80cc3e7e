"""
Session Template.

Thread-safe pass-through to a session factory. Every call opens its own
session, runs one statement, commits when it succeeds and closes the
session, so published mappers can be used from any thread without
managing sessions.

Usage:
    template = SessionTemplate(factory)
    template.select_list("app.mappers.CityMapper.find_all")
    mapper = template.get_mapper(CityMapper)
    mapper.find_by_id(1)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from sqlweave.config.schemas import ExecutorType
    from sqlweave.registry.configuration import Configuration

    from .factory import SessionFactory
    from .session import SqlSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionTemplate:
    """
    Runs each statement in its own transaction.

    Args:
        session_factory: Factory sessions are opened from
        executor_type: Executor strategy (defaults to the configured one)
    """

    def __init__(self, session_factory: SessionFactory, executor_type: ExecutorType | None = None):
        self.session_factory = session_factory
        self.executor_type = executor_type or session_factory.configuration.default_executor_type

    @property
    def configuration(self) -> Configuration:
        return self.session_factory.configuration

    def select_one(self, statement_id: str, parameter: Any = None) -> Any:
        return self.execute(lambda session: session.select_one(statement_id, parameter))

    def select_list(self, statement_id: str, parameter: Any = None) -> list[Any]:
        return self.execute(lambda session: session.select_list(statement_id, parameter))

    def insert(self, statement_id: str, parameter: Any = None) -> int:
        return self.execute(lambda session: session.insert(statement_id, parameter))

    def update(self, statement_id: str, parameter: Any = None) -> int:
        return self.execute(lambda session: session.update(statement_id, parameter))

    def delete(self, statement_id: str, parameter: Any = None) -> int:
        return self.execute(lambda session: session.delete(statement_id, parameter))

    def execute(self, callback: Callable[[SqlSession], T]) -> T:
        """
        Run a callback in a new session and commit it.

        The session is rolled back and closed if the callback raises.
        """
        with self.session_factory.open_session(self.executor_type) as session:
            try:
                result = callback(session)
            except Exception:
                logger.debug(f"[template] Rolling back session on {self.session_factory.name}")
                session.rollback()
                raise
            session.commit()
            return result

    def get_mapper(self, interface: type[T]) -> T:
        """Return a mapper proxy whose calls run through this template."""
        return self.configuration.get_mapper(interface, self)

    def __repr__(self) -> str:
        return f"SessionTemplate(factory={self.session_factory.name!r})"
