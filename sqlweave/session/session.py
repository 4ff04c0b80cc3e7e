"""
SQL Session.

A session runs mapped statements by id within one transaction. Sessions
are not thread-safe; open one per unit of work, or use SessionTemplate.

Usage:
    with factory.open_session() as session:
        city = session.select_one("app.mappers.CityMapper.find_by_id", {"id": 1})
        session.insert("app.mappers.CityMapper.add", City(name="Tokyo"))
        session.commit()
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlweave.config.schemas import ExecutorType
from sqlweave.errors import BindingError, SessionClosedError, TooManyResultsError
from sqlweave.mapping.statements import SqlCommandType

from .executor import Executor

if TYPE_CHECKING:
    from sqlweave.registry.configuration import Configuration

    from .factory import SessionFactory

logger = logging.getLogger(__name__)


def to_parameters(parameter: Any) -> dict[str, Any]:
    """
    Turn a statement parameter into the mapping statements bind from.

    Mappings are copied, dataclasses and plain objects expose their fields,
    and a scalar is available as `value`.
    """
    if parameter is None:
        return {}
    if isinstance(parameter, Mapping):
        return dict(parameter)
    if dataclasses.is_dataclass(parameter) and not isinstance(parameter, type):
        return {f.name: getattr(parameter, f.name) for f in dataclasses.fields(parameter)}
    if hasattr(parameter, "__dict__"):
        return {k: v for k, v in vars(parameter).items() if not k.startswith("_")}
    return {"value": parameter}


class SqlSession:
    """
    Runs statements of one session factory on a single transaction.

    Args:
        factory: Owning session factory
        executor_type: Executor strategy (defaults to the configured one)
        autocommit: Commit on close instead of rolling back
    """

    def __init__(
        self,
        factory: SessionFactory,
        executor_type: ExecutorType | None = None,
        autocommit: bool = False,
    ):
        configuration = factory.configuration
        environment = configuration.environment
        self._factory = factory
        self._configuration = configuration
        self._autocommit = autocommit
        transaction = environment.transaction_factory.new_transaction(
            environment.data_source, autocommit
        )
        self._raw_executor = Executor(
            configuration,
            transaction,
            executor_type or configuration.default_executor_type,
            nested_select=self._nested_select,
        )
        self._executor = configuration.interceptor_chain.plugin_all(self._raw_executor)
        self._closed = False

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def executor_type(self) -> ExecutorType:
        return self._raw_executor.executor_type

    # ==================== Selects ====================

    def select_one(self, statement_id: str, parameter: Any = None) -> Any:
        """
        Run a select expected to return at most one row.

        Raises:
            TooManyResultsError: If more than one row is returned
        """
        rows = self.select_list(statement_id, parameter)
        if len(rows) > 1:
            raise TooManyResultsError(
                f"Expected one result (or None) to be returned by select_one(), but found: {len(rows)}"
            )
        return rows[0] if rows else None

    def select_list(self, statement_id: str, parameter: Any = None) -> list[Any]:
        self._check_open()
        statement = self._statement(statement_id, SqlCommandType.SELECT)
        return self._executor.query(statement, to_parameters(parameter))

    # ==================== Updates ====================

    def insert(self, statement_id: str, parameter: Any = None) -> int:
        count = self._update(statement_id, parameter, SqlCommandType.INSERT)
        generated = self._raw_executor.last_generated_key
        if generated is not None and parameter is not None and hasattr(parameter, "id"):
            if getattr(parameter, "id") is None:
                setattr(parameter, "id", generated)
        return count

    def update(self, statement_id: str, parameter: Any = None) -> int:
        return self._update(statement_id, parameter, SqlCommandType.UPDATE)

    def delete(self, statement_id: str, parameter: Any = None) -> int:
        return self._update(statement_id, parameter, SqlCommandType.DELETE)

    def flush_statements(self) -> list[int]:
        self._check_open()
        return self._raw_executor.flush_statements()

    # ==================== Lifecycle ====================

    def commit(self) -> None:
        self._check_open()
        self._raw_executor.commit()

    def rollback(self) -> None:
        self._check_open()
        self._raw_executor.rollback()

    def close(self) -> None:
        if self._closed:
            return
        try:
            self._raw_executor.close()
        finally:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def get_mapper(self, interface: type) -> Any:
        """Return a mapper proxy bound to this session."""
        return self._configuration.get_mapper(interface, self)

    def __enter__(self) -> SqlSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"SqlSession(environment={self._factory.name!r}, "
            f"executor={self.executor_type.value}, closed={self._closed})"
        )

    # ==================== Internals ====================

    def _update(self, statement_id: str, parameter: Any, expected: SqlCommandType) -> int:
        self._check_open()
        statement = self._statement(statement_id, expected)
        return self._executor.update(statement, to_parameters(parameter))

    def _statement(self, statement_id: str, expected: SqlCommandType):
        statement = self._configuration.get_mapped_statement(statement_id)
        is_select = statement.command_type is SqlCommandType.SELECT
        if is_select != (expected is SqlCommandType.SELECT):
            raise BindingError(
                f"Statement '{statement_id}' is a {statement.command_type.value}, "
                f"not a {expected.value}"
            )
        return statement

    def _nested_select(self, statement_id: str, parameters: dict[str, Any]) -> list[Any]:
        if not self._closed:
            return self.select_list(statement_id, parameters)
        with self._factory.open_session() as session:
            return session.select_list(statement_id, parameters)

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Session is closed.")
