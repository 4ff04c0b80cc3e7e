"""
Result Mapping.

Maps result rows onto the statement's result type using the registry set:

- No result type: one dict per row
- dict/mapping types: one mapping per row
- Types with a registered converter (str, int, Decimal, ...): first column
- Other classes: columns matched to properties through the reflector
  (optionally ignoring underscores), values converted by the property's
  declared type, objects created by the object factory and populated
  through the object wrapper factory when it wraps them

Associations run a nested select with the value of their column, passed
under the column name. With lazy loading enabled, lazy associations are
deferred behind the proxy factory until first access.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from sqlweave.registry.factories import LazyLoader

if TYPE_CHECKING:
    from sqlalchemy.engine import CursorResult

    from sqlweave.mapping.statements import Association, MappedStatement
    from sqlweave.registry.configuration import Configuration

logger = logging.getLogger(__name__)

NestedSelect = Callable[[str, dict[str, Any]], list[Any]]


class ResultMapper:
    def __init__(self, configuration: Configuration, nested_select: NestedSelect | None = None):
        self._configuration = configuration
        self._nested_select = nested_select

    def map_rows(self, statement: MappedStatement, result: CursorResult) -> list[Any]:
        result_type = statement.result_type
        if not result.returns_rows:
            return []
        if result_type is None or _is_mapping_type(result_type):
            return [self._map_dict(statement, row._mapping, result_type) for row in result]

        converter = self._configuration.type_converter_registry.get_converter(result_type)
        if converter is not None:
            return [converter.to_python(row[0]) for row in result]

        return [self._map_object(statement, row._mapping, result_type) for row in result]

    def _map_dict(
        self,
        statement: MappedStatement,
        row: Mapping[str, Any],
        result_type: type | None,
    ) -> Any:
        values = dict(row)
        for association in statement.associations:
            values[association.property] = self._load_association(association, row)
        if result_type is None or result_type is dict:
            return values
        return self._configuration.object_factory.create(result_type, values)

    def _map_object(self, statement: MappedStatement, row: Mapping[str, Any], result_type: type) -> Any:
        configuration = self._configuration
        reflector = configuration.reflector_factory.find_for_class(result_type)
        converters = configuration.type_converter_registry

        values: dict[str, Any] = {}
        for column, value in row.items():
            if reflector.properties:
                name = reflector.find_property(column, configuration.map_underscore_to_camel_case)
                if name is None:
                    continue
            else:
                name = column
            if value is None and not configuration.call_setters_on_nulls:
                continue
            declared = reflector.property_types.get(name)
            if value is not None and declared is not None:
                converter = converters.get_converter(declared)
                if converter is not None:
                    value = converter.to_python(value)
            values[name] = value

        if all(value is None for value in row.values()) and not statement.associations:
            if not configuration.return_instance_for_empty_row:
                return None

        eager = [a for a in statement.associations if not self._is_lazy(a)]
        lazy = [a for a in statement.associations if self._is_lazy(a)]
        for association in eager:
            values[association.property] = self._load_association(association, row)

        obj = configuration.object_factory.create(result_type, values)
        if configuration.object_wrapper_factory.has_wrapper_for(obj):
            wrapper = configuration.object_wrapper_factory.get_wrapper_for(obj)
            for name, value in values.items():
                wrapper.set(name, value)

        if not lazy:
            return obj
        loader = AssociationLoader(self, {a.property: (a, row.get(a.column)) for a in lazy})
        return configuration.proxy_factory.create_proxy(
            obj,
            loader,
            trigger_methods=set(configuration.lazy_load_trigger_methods),
            aggressive=configuration.aggressive_lazy_loading,
        )

    def _is_lazy(self, association: Association) -> bool:
        return association.lazy and self._configuration.lazy_loading_enabled

    def _load_association(self, association: Association, row: Mapping[str, Any]) -> Any:
        return self.select_association(association, row.get(association.column))

    def select_association(self, association: Association, value: Any) -> Any:
        if value is None:
            return None
        if self._nested_select is None:
            raise RuntimeError(f"No nested select available to load '{association.property}'")
        rows = self._nested_select(association.select, {association.column: value})
        return rows[0] if rows else None


class AssociationLoader(LazyLoader):
    """Pending associations of one result object."""

    def __init__(self, mapper: ResultMapper, pending: dict[str, tuple[Association, Any]]):
        self._mapper = mapper
        self._pending = pending
        self._properties = set(pending)

    @property
    def properties(self) -> set[str]:
        return self._properties

    def load(self, target: Any, name: str) -> None:
        if name not in self._properties:
            return
        association, value = self._pending[name]
        self._properties.discard(name)
        setattr(target, name, self._mapper.select_association(association, value))
        logger.debug(f"[result] Lazily loaded '{name}' via {association.select}")


def _is_mapping_type(result_type: type) -> bool:
    return isinstance(result_type, type) and issubclass(result_type, Mapping)