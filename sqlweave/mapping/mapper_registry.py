"""
Mapper Registry.

Tracks the mapper interfaces bound to a registry set and turns the
statement decorators on their methods into mapped statements.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from sqlweave.errors import BindingError
from sqlweave.registry.freezable import Freezable

from .annotations import is_interface, statement_of
from .statements import MappedStatement, SqlCommandType, namespace_of

if TYPE_CHECKING:
    from sqlweave.registry.configuration import Configuration

logger = logging.getLogger(__name__)


class MapperRegistry(Freezable):
    """
    Registry of mapper interfaces.

    Adding an interface registers a mapped statement for every decorated
    method, resolving result types against the type alias registry, so
    aliases must be registered first.
    """

    def __init__(self, configuration: Configuration):
        self._configuration = configuration
        self._known: dict[type, None] = {}

    def add_mapper(self, interface: type) -> None:
        """
        Bind a mapper interface.

        Raises:
            BindingError: If the type is not an interface or is already bound
        """
        self._check_mutable()
        if not is_interface(interface):
            raise BindingError(f"Type {namespace_of(interface)} is not an interface.")
        if interface in self._known:
            raise BindingError(f"Type {namespace_of(interface)} is already known to the MapperRegistry.")
        self._known[interface] = None
        try:
            count = self._parse_statements(interface)
        except Exception:
            del self._known[interface]
            raise
        logger.debug(f"[mapper_registry] Added mapper {namespace_of(interface)} ({count} statement(s))")

    def has_mapper(self, interface: type) -> bool:
        return interface in self._known

    @property
    def mappers(self) -> list[type]:
        return list(self._known)

    def get_mapper(self, interface: type, session: Any) -> Any:
        """
        Create a mapper proxy bound to a session.

        Raises:
            BindingError: If the interface is not registered
        """
        from sqlweave.session.proxy import create_mapper_proxy

        if interface not in self._known:
            raise BindingError(f"Type {namespace_of(interface)} is not known to the MapperRegistry.")
        return create_mapper_proxy(interface, session)

    def _parse_statements(self, interface: type) -> int:
        configuration = self._configuration
        namespace = namespace_of(interface)
        resource = f"{namespace} (annotations)"
        driver = configuration.language_registry.default_driver
        count = 0
        for name, member in _members(interface):
            annotation = statement_of(member)
            if annotation is None:
                continue
            statement_id = f"{namespace}.{name}"
            if configuration.has_statement(statement_id):
                continue
            is_select = annotation.command_type is SqlCommandType.SELECT
            configuration.add_mapped_statement(
                MappedStatement(
                    id=statement_id,
                    command_type=annotation.command_type,
                    sql_source=driver.create_sql_source(configuration, annotation.sql),
                    result_type=configuration.type_alias_registry.resolve_alias(annotation.result_type),
                    resource=resource,
                    cache=configuration.cache_for_namespace(namespace),
                    flush_cache_required=(
                        annotation.flush_cache if annotation.flush_cache is not None else not is_select
                    ),
                    use_cache=annotation.use_cache if annotation.use_cache is not None else is_select,
                )
            )
            count += 1
        return count


def _members(interface: type) -> list[tuple[str, Any]]:
    seen: dict[str, Any] = {}
    for klass in reversed(inspect.getmro(interface)):
        if klass is object:
            continue
        for name, member in vars(klass).items():
            if inspect.isfunction(member):
                seen[name] = member
    return list(seen.items())
