"""
Mapper Annotations.

Decorators that mark mapper interfaces, give classes a type alias and bind
SQL statements to mapper methods.

Usage:
    @mapper
    class CityMapper(ABC):
        @select("SELECT id, name FROM city WHERE id = #{id}", result_type="City")
        @abstractmethod
        def find_by_id(self, id: int) -> City: ...

    @alias("City")
    @dataclass
    class City:
        id: int
        name: str
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from .statements import SqlCommandType

C = TypeVar("C", bound=type)
F = TypeVar("F", bound=Callable[..., Any])

MAPPER_MARKER = "__sqlweave_mapper__"
ALIAS_MARKER = "__sqlweave_alias__"
STATEMENT_MARKER = "__sqlweave_statement__"


def mapper(cls: C) -> C:
    """Mark a class as a mapper interface."""
    setattr(cls, MAPPER_MARKER, True)
    return cls


def is_mapper(obj: Any) -> bool:
    """Check the mapper marker. Subclasses do not inherit it."""
    return inspect.isclass(obj) and bool(obj.__dict__.get(MAPPER_MARKER, False))


def is_interface(obj: Any) -> bool:
    """
    Check whether an object is an interface type.

    Interfaces are abstract classes and direct Protocol definitions. Concrete
    classes are not interfaces, even when they carry the mapper marker.
    """
    if not inspect.isclass(obj):
        return False
    return inspect.isabstract(obj) or Protocol in obj.__bases__


def alias(name: str) -> Callable[[C], C]:
    """Give a class an explicit type alias."""

    def decorator(cls: C) -> C:
        setattr(cls, ALIAS_MARKER, name)
        return cls

    return decorator


def alias_of(cls: type) -> str:
    """Return the alias of a class: explicit alias or the class name."""
    return cls.__dict__.get(ALIAS_MARKER) or cls.__name__


@dataclass(frozen=True)
class StatementAnnotation:
    """Statement attached to a mapper method."""

    command_type: SqlCommandType
    sql: str
    result_type: type | str | None = None
    flush_cache: bool | None = None
    use_cache: bool | None = None


def _statement(command_type: SqlCommandType) -> Callable[..., Callable[[F], F]]:
    def factory(
        sql: str,
        *,
        result_type: type | str | None = None,
        flush_cache: bool | None = None,
        use_cache: bool | None = None,
    ) -> Callable[[F], F]:
        def decorator(fn: F) -> F:
            setattr(
                fn,
                STATEMENT_MARKER,
                StatementAnnotation(command_type, sql, result_type, flush_cache, use_cache),
            )
            return fn

        return decorator

    return factory


select = _statement(SqlCommandType.SELECT)
insert = _statement(SqlCommandType.INSERT)
update = _statement(SqlCommandType.UPDATE)
delete = _statement(SqlCommandType.DELETE)


def statement_of(fn: Any) -> StatementAnnotation | None:
    return getattr(fn, STATEMENT_MARKER, None)
