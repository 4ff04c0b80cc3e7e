"""
Type Alias Registry.

Maps short, case-insensitive names to types so mapper documents can say
`resultType="City"` instead of a dotted path.
"""

from __future__ import annotations

import datetime
import decimal
import importlib
import inspect
import logging
import uuid
from collections.abc import Iterable
from typing import Any

from sqlweave.errors import TypeAliasError
from sqlweave.mapping.annotations import alias_of, is_interface

from .freezable import Freezable

logger = logging.getLogger(__name__)


_BUILTIN_ALIASES: dict[str, type] = {
    "string": str,
    "str": str,
    "int": int,
    "integer": int,
    "long": int,
    "float": float,
    "double": float,
    "bool": bool,
    "boolean": bool,
    "bytes": bytes,
    "decimal": decimal.Decimal,
    "bigdecimal": decimal.Decimal,
    "date": datetime.date,
    "datetime": datetime.datetime,
    "time": datetime.time,
    "uuid": uuid.UUID,
    "map": dict,
    "dict": dict,
    "hashmap": dict,
    "list": list,
    "collection": list,
    "object": object,
}


class TypeAliasRegistry(Freezable):
    """
    Registry of type aliases.

    Keys are stored lower-cased; an alias may be registered again only for
    the same type.
    """

    def __init__(self) -> None:
        self._aliases: dict[str, type] = {}
        for name, target in _BUILTIN_ALIASES.items():
            self.register_alias(name, target)

    def register_alias(self, name_or_type: str | type, target: type | None = None) -> None:
        """
        Register an alias.

        Args:
            name_or_type: Alias name, or a class aliased by `alias_of()`
            target: Aliased type when a name is given

        Raises:
            TypeAliasError: If the alias is already mapped to another type
        """
        self._check_mutable()
        if isinstance(name_or_type, type):
            target = name_or_type
            name = alias_of(name_or_type)
        else:
            name = name_or_type
        if not name or target is None:
            raise TypeAliasError("The parameter alias cannot be null")

        key = name.lower()
        existing = self._aliases.get(key)
        if existing is not None and existing is not target:
            raise TypeAliasError(
                f"The alias '{name}' is already mapped to the value '{_qualname(existing)}'."
            )
        self._aliases[key] = target
        logger.debug(f"[type_aliases] Registered alias: {key} -> {_qualname(target)}")

    def register_aliases(self, candidates: Iterable[type], super_type: type = object) -> int:
        """
        Register scanned classes that are subtypes of a bound.

        Interfaces and nested classes are skipped, as are classes that do not
        satisfy `super_type`.

        Returns:
            Number of aliases registered
        """
        count = 0
        for candidate in candidates:
            if not inspect.isclass(candidate) or is_interface(candidate):
                continue
            if "." in candidate.__qualname__:
                continue
            if not issubclass(candidate, super_type):
                continue
            self.register_alias(candidate)
            count += 1
        return count

    def resolve_alias(self, name: str | type | None) -> type | None:
        """
        Resolve an alias or dotted path to a type.

        Raises:
            TypeAliasError: If the name is neither an alias nor importable
        """
        if name is None or isinstance(name, type):
            return name
        key = name.lower()
        if key in self._aliases:
            return self._aliases[key]
        return _import_type(name)

    def has_alias(self, name: str) -> bool:
        return name.lower() in self._aliases

    @property
    def aliases(self) -> dict[str, type]:
        return dict(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)


def _import_type(path: str) -> type:
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise TypeAliasError(f"Could not resolve type alias '{path}'.")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise TypeAliasError(f"Could not resolve type alias '{path}'. Cause: {e}") from e
    target: Any = getattr(module, attr, None)
    if not isinstance(target, type):
        raise TypeAliasError(f"Could not resolve type alias '{path}'.")
    return target


def _qualname(target: type) -> str:
    return f"{target.__module__}.{target.__qualname__}"
