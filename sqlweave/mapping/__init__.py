"""
sqlweave Mapping

Mapper annotations, mapped statements and mapper documents.
"""

from .annotations import (
    alias,
    alias_of,
    delete,
    insert,
    is_interface,
    is_mapper,
    mapper,
    select,
    statement_of,
    update,
)
from .statements import (
    Association,
    BoundSql,
    MappedStatement,
    RawSqlSource,
    SqlCommandType,
    SqlSource,
    StaticSqlSource,
    namespace_of,
)
from .mapper_registry import MapperRegistry
from .document import MapperDocumentParser

__all__ = [
    "Association",
    "BoundSql",
    "MappedStatement",
    "MapperDocumentParser",
    "MapperRegistry",
    "RawSqlSource",
    "SqlCommandType",
    "SqlSource",
    "StaticSqlSource",
    "alias",
    "alias_of",
    "delete",
    "insert",
    "is_interface",
    "is_mapper",
    "mapper",
    "namespace_of",
    "select",
    "statement_of",
    "update",
]
