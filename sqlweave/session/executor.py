"""
Statement Executors.

Executors run mapped statements on a transaction's connection.

- SIMPLE: builds a new SQL clause for every call
- REUSE: keeps one compiled clause per SQL text for the executor's lifetime
- BATCH: queues updates and sends them as executemany on flush, before a
  select, and before commit

Selects go through the namespace cache when the statement has one, caching
is enabled and the statement uses it. Statements marked flushCache clear
their namespace cache first.

The session wraps its executor with the interceptor chain, so interceptors
see `query()` and `update()` calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from sqlweave.config.schemas import ExecutorType
from sqlweave.errors import SessionClosedError

from .result import ResultMapper

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult

    from sqlweave.mapping.statements import BoundSql, MappedStatement
    from sqlweave.registry.configuration import Configuration

    from .transaction import Transaction

logger = logging.getLogger(__name__)


class Executor:
    """
    Runs mapped statements on one transaction.

    Args:
        configuration: Frozen registry set
        transaction: Transaction owning the connection
        executor_type: SIMPLE, REUSE or BATCH
        nested_select: Callback running a select by id, used to load associations
    """

    def __init__(
        self,
        configuration: Configuration,
        transaction: Transaction,
        executor_type: ExecutorType = ExecutorType.SIMPLE,
        nested_select: Any = None,
    ):
        self.configuration = configuration
        self.transaction = transaction
        self.executor_type = executor_type
        self.last_generated_key: Any = None
        self._result_mapper = ResultMapper(configuration, nested_select)
        self._clauses: dict[str, TextClause] = {}
        self._batch: list[tuple[str, list[dict[str, Any]]]] = []
        self._closed = False
        self._logger = (
            logging.getLogger(f"{configuration.log_prefix}{__name__}")
            if configuration.log_prefix
            else logger
        )

    # ==================== Statements ====================

    def query(self, statement: MappedStatement, parameters: dict[str, Any]) -> list[Any]:
        """Run a select and map its rows."""
        self._check_open()
        self.flush_statements()
        bound = statement.sql_source.get_bound_sql(parameters)
        cache = self._cache_for(statement)

        if statement.flush_cache_required and cache is not None:
            cache.clear()

        key = None
        if cache is not None and statement.use_cache:
            key = _cache_key(self.configuration.environment.id, statement, bound)
            cached = cache.get_object(key)
            if cached is not None:
                self._logger.debug(f"[executor] Cache hit for {statement.id}")
                return list(cached)

        result = self._execute(bound, fetch_size=self.configuration.default_fetch_size)
        rows = self._result_mapper.map_rows(statement, result)
        if key is not None:
            cache.put_object(key, tuple(rows))
        return rows

    def update(self, statement: MappedStatement, parameters: dict[str, Any]) -> int:
        """
        Run an insert, update or delete.

        Returns:
            Affected row count (0 while queued in a BATCH executor)
        """
        self._check_open()
        self.last_generated_key = None
        cache = self._cache_for(statement)
        if statement.flush_cache_required and cache is not None:
            cache.clear()

        bound = statement.sql_source.get_bound_sql(parameters)
        if self.executor_type is ExecutorType.BATCH:
            params = self._bind_values(bound)
            if self._batch and self._batch[-1][0] == bound.sql:
                self._batch[-1][1].append(params)
            else:
                self._batch.append((bound.sql, [params]))
            return 0

        result = self._execute(bound)
        if self.configuration.use_generated_keys:
            self.last_generated_key = getattr(result, "lastrowid", None)
        return result.rowcount

    def flush_statements(self) -> list[int]:
        """Send queued BATCH updates; returns one row count per batch."""
        if not self._batch:
            return []
        counts = []
        connection = self.transaction.connection
        for sql, params in self._batch:
            result = connection.execute(self._clause(sql), params)
            counts.append(result.rowcount)
        self._logger.debug(f"[executor] Flushed {len(self._batch)} batch(es)")
        self._batch.clear()
        return counts

    # ==================== Transaction ====================

    def commit(self) -> None:
        self._check_open()
        self.flush_statements()
        self.transaction.commit()

    def rollback(self) -> None:
        self._check_open()
        self._batch.clear()
        self.transaction.rollback()

    def close(self) -> None:
        if self._closed:
            return
        self._batch.clear()
        self._clauses.clear()
        try:
            self.transaction.close()
        finally:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    # ==================== Internals ====================

    def _execute(self, bound: BoundSql, fetch_size: int | None = None) -> CursorResult:
        self._logger.debug(f"[executor] ==> {bound.sql}")
        options = {"yield_per": fetch_size} if fetch_size else None
        return self.transaction.connection.execute(
            self._clause(bound.sql), self._bind_values(bound), execution_options=options
        )

    def _clause(self, sql: str) -> TextClause:
        if self.executor_type is ExecutorType.SIMPLE:
            return text(sql)
        clause = self._clauses.get(sql)
        if clause is None:
            clause = self._clauses[sql] = text(sql)
        return clause

    def _bind_values(self, bound: BoundSql) -> dict[str, Any]:
        registry = self.configuration.type_converter_registry
        values = {}
        for name, value in bound.parameters.items():
            if value is not None:
                converter = registry.get_converter(type(value))
                if converter is not None:
                    value = converter.to_database(value)
            values[name] = value
        return values

    def _cache_for(self, statement: MappedStatement):
        if not self.configuration.cache_enabled:
            return None
        return statement.cache

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Executor was closed.")


def _cache_key(environment_id: str, statement: MappedStatement, bound: BoundSql) -> tuple:
    return (
        environment_id,
        statement.id,
        bound.sql,
        tuple(sorted((name, repr(value)) for name, value in bound.parameters.items())),
    )
