"""
Mapped Statements.

Immutable statement descriptors produced by mapper interfaces and mapper
documents and consumed by the session executor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlweave.registry.caches import Cache

_PARAMETER_PATTERN = re.compile(r"#\{\s*([A-Za-z_][\w.]*)\s*(?:,[^}]*)?\}")


class SqlCommandType(str, Enum):
    """Kind of SQL command a statement runs."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class BoundSql:
    """SQL text with named placeholders and the values to bind."""

    sql: str
    parameter_names: tuple[str, ...] = ()
    parameters: dict[str, Any] = field(default_factory=dict)


class SqlSource:
    """Produces BoundSql for a parameter object."""

    def get_bound_sql(self, parameters: dict[str, Any]) -> BoundSql:
        raise NotImplementedError


class StaticSqlSource(SqlSource):
    """SQL text with `#{name}` placeholders rewritten to `:name`."""

    def __init__(self, script: str):
        names: list[str] = []

        def _replace(match: re.Match[str]) -> str:
            name = match.group(1)
            names.append(name)
            return ":" + name.replace(".", "_")

        self.sql = _PARAMETER_PATTERN.sub(_replace, script).strip()
        self.parameter_names = tuple(names)

    def get_bound_sql(self, parameters: dict[str, Any]) -> BoundSql:
        values = {name.replace(".", "_"): _lookup(parameters, name) for name in self.parameter_names}
        return BoundSql(self.sql, self.parameter_names, values)


class RawSqlSource(SqlSource):
    """SQL text passed through untouched; parameters bind by their own names."""

    def __init__(self, script: str):
        self.sql = script.strip()

    def get_bound_sql(self, parameters: dict[str, Any]) -> BoundSql:
        return BoundSql(self.sql, tuple(parameters), dict(parameters))


def _lookup(parameters: dict[str, Any], path: str) -> Any:
    head, _, rest = path.partition(".")
    if head not in parameters:
        raise KeyError(f"Parameter '{head}' not found. Available parameters are {list(parameters)}")
    value = parameters[head]
    for part in rest.split(".") if rest else ():
        value = value[part] if isinstance(value, dict) else getattr(value, part)
    return value


@dataclass(frozen=True)
class Association:
    """A nested property loaded by running another select with a column value."""

    property: str
    select: str
    column: str
    lazy: bool = True


@dataclass(frozen=True)
class MappedStatement:
    """
    A statement registered in the registry set.

    Attributes:
        id: Fully qualified id (`namespace.statement`)
        command_type: SELECT/INSERT/UPDATE/DELETE
        sql_source: Produces the SQL to run
        result_type: Type rows are mapped to (None for raw mappings)
        resource: Where the statement was defined
        cache: Cache bound to the statement's namespace
        database_id: Database identity the statement targets
    """

    id: str
    command_type: SqlCommandType
    sql_source: SqlSource
    result_type: type | None = None
    resource: str = ""
    cache: Cache | None = None
    database_id: str | None = None
    flush_cache_required: bool = False
    use_cache: bool = True
    associations: tuple[Association, ...] = ()

    @property
    def namespace(self) -> str:
        return self.id.rpartition(".")[0]


def namespace_of(interface: type) -> str:
    """Namespace under which a mapper interface's statements are registered."""
    return f"{interface.__module__}.{interface.__qualname__}"
