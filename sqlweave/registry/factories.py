"""
Object and Proxy Factories.

Pluggable roles used when mapping rows to objects:

- ObjectFactory: creates result objects
- ObjectWrapperFactory: supplies custom property access for result objects
- ReflectorFactory: caches per-class property metadata
- ProxyFactory: wraps result objects for lazy loading

Each role has a built-in default. The component pool may override any of
them, at most one override per role.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
import typing
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Reflection
# =============================================================================


class Reflector:
    """Property metadata for one class."""

    def __init__(self, cls: type):
        self.type = cls
        self.properties: tuple[str, ...] = _discover_properties(cls)
        self.property_types: dict[str, type] = _property_types(cls, self.properties)
        self._case_insensitive = {name.lower(): name for name in self.properties}
        self._normalized = {name.replace("_", "").lower(): name for name in self.properties}

    def find_property(self, name: str, use_camel_case_mapping: bool = False) -> str | None:
        """
        Find the property matching a column name.

        Matching is case-insensitive. With camel-case mapping, underscores
        are ignored on both sides so `city_name` matches `cityName`.
        """
        if use_camel_case_mapping:
            return self._normalized.get(name.replace("_", "").lower())
        return self._case_insensitive.get(name.lower())


def _discover_properties(cls: type) -> tuple[str, ...]:
    if dataclasses.is_dataclass(cls):
        return tuple(f.name for f in dataclasses.fields(cls))
    names: list[str] = []
    for klass in reversed(inspect.getmro(cls)):
        for name in getattr(klass, "__annotations__", {}):
            if not name.startswith("_") and name not in names:
                names.append(name)
        for name in getattr(klass, "__slots__", ()):
            if not name.startswith("_") and name not in names:
                names.append(name)
    return tuple(names)


def _property_types(cls: type, properties: tuple[str, ...]) -> dict[str, type]:
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}
    return {name: hint for name, hint in hints.items() if name in properties and isinstance(hint, type)}


class ReflectorFactory(ABC):
    @abstractmethod
    def find_for_class(self, cls: type) -> Reflector: ...


class DefaultReflectorFactory(ReflectorFactory):
    """Caches one Reflector per class."""

    def __init__(self, class_cache_enabled: bool = True):
        self.class_cache_enabled = class_cache_enabled
        self._cache: dict[type, Reflector] = {}
        self._lock = threading.Lock()

    def find_for_class(self, cls: type) -> Reflector:
        if not self.class_cache_enabled:
            return Reflector(cls)
        with self._lock:
            reflector = self._cache.get(cls)
            if reflector is None:
                reflector = self._cache[cls] = Reflector(cls)
            return reflector


# =============================================================================
# Object creation
# =============================================================================


class ObjectFactory(ABC):
    @abstractmethod
    def create(self, cls: type, values: Mapping[str, Any] | None = None) -> Any:
        """Create an instance of `cls`, optionally from property values."""
        ...


class DefaultObjectFactory(ObjectFactory):
    """
    Creates result objects.

    Dataclasses and classes whose constructor takes the properties are
    created from keyword arguments; other classes are created empty and
    populated by attribute.
    """

    def create(self, cls: type, values: Mapping[str, Any] | None = None) -> Any:
        values = dict(values or {})
        if cls in (dict, Mapping) or (inspect.isclass(cls) and issubclass(cls, dict)):
            return (dict if cls is Mapping else cls)(values)
        if cls in (list, Sequence):
            return list(values.values())
        if dataclasses.is_dataclass(cls):
            init_names = {f.name for f in dataclasses.fields(cls) if f.init}
            obj = cls(**{k: v for k, v in values.items() if k in init_names})
            for key, value in values.items():
                if key not in init_names:
                    setattr(obj, key, value)
            return obj
        try:
            obj = cls()
        except TypeError:
            return cls(**values)
        for key, value in values.items():
            setattr(obj, key, value)
        return obj


class ObjectWrapper(ABC):
    @abstractmethod
    def set(self, name: str, value: Any) -> None: ...

    @abstractmethod
    def get(self, name: str) -> Any: ...


class ObjectWrapperFactory(ABC):
    @abstractmethod
    def has_wrapper_for(self, obj: Any) -> bool: ...

    @abstractmethod
    def get_wrapper_for(self, obj: Any) -> ObjectWrapper: ...


class DefaultObjectWrapperFactory(ObjectWrapperFactory):
    """Never wraps: result objects use plain attribute access."""

    def has_wrapper_for(self, obj: Any) -> bool:
        return False

    def get_wrapper_for(self, obj: Any) -> ObjectWrapper:
        raise RuntimeError(
            "The DefaultObjectWrapperFactory should never be called to provide an ObjectWrapper."
        )


# =============================================================================
# Lazy-loading proxies
# =============================================================================


class LazyLoader(ABC):
    """Pending property loads for one result object."""

    @property
    @abstractmethod
    def properties(self) -> set[str]:
        """Names of properties that are not loaded yet."""
        ...

    @abstractmethod
    def load(self, target: Any, name: str) -> None:
        """Load one pending property into the target."""
        ...

    def load_all(self, target: Any) -> None:
        for name in list(self.properties):
            self.load(target, name)


class ProxyFactory(ABC):
    @abstractmethod
    def create_proxy(
        self,
        target: Any,
        loader: LazyLoader,
        *,
        trigger_methods: set[str],
        aggressive: bool = False,
    ) -> Any:
        """Wrap a result object so its pending properties load on first use."""
        ...


class LazyLoadingProxy:
    """
    Delegates to a result object and loads pending properties on access.

    Reading a pending property loads it. Calling one of the trigger methods
    loads everything; so does reading any property in aggressive mode.
    """

    __slots__ = ("_target", "_loader", "_triggers", "_aggressive")

    def __init__(self, target: Any, loader: LazyLoader, trigger_methods: set[str], aggressive: bool):
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_loader", loader)
        object.__setattr__(self, "_triggers", frozenset(trigger_methods))
        object.__setattr__(self, "_aggressive", aggressive)

    def _trigger(self, name: str) -> None:
        pending = self._loader.properties
        if not pending:
            return
        if self._aggressive or name in self._triggers:
            self._loader.load_all(self._target)
        elif name in pending:
            self._loader.load(self._target, name)

    def __getattr__(self, name: str) -> Any:
        self._trigger(name)
        return getattr(self._target, name)

    def __setattr__(self, name: str, value: Any) -> None:
        self._loader.properties.discard(name)
        setattr(self._target, name, value)

    def __eq__(self, other: object) -> bool:
        self._trigger("__eq__")
        if isinstance(other, LazyLoadingProxy):
            other = object.__getattribute__(other, "_target")
        return self._target == other

    def __hash__(self) -> int:
        self._trigger("__hash__")
        return hash(self._target)

    def __repr__(self) -> str:
        self._trigger("__repr__")
        return repr(self._target)

    def __str__(self) -> str:
        self._trigger("__str__")
        return str(self._target)


class DefaultProxyFactory(ProxyFactory):
    def create_proxy(
        self,
        target: Any,
        loader: LazyLoader,
        *,
        trigger_methods: set[str],
        aggressive: bool = False,
    ) -> Any:
        return LazyLoadingProxy(target, loader, trigger_methods, aggressive)
