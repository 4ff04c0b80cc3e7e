"""
Component Pool for sqlweave.

Process-wide, read-only registry of pluggable components contributed by
the surrounding application: interceptors, type converters, scripting
drivers, caches, factory overrides, a database-id provider, configuration
customizers and named data sources.

Design Principle:
    The pool is a typed multimap built once at startup. Assembly only
    reads from it, so every named configuration sees the same components
    and configurations can be assembled in parallel.

Usage:
    pool = (
        ComponentPool.builder()
        .register(Interceptor, AuditInterceptor())
        .register(TypeConverter, MoneyConverter())
        .register(Engine, create_engine("sqlite://"), name="default")
        .build()
    )

    pool.find_all(Interceptor)          # registration order
    pool.find_unique(ObjectFactory)     # None when absent
    pool.find_by_name(Engine, "default")
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlweave.errors import NonUniqueComponentError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ComponentEntry:
    """A single registration in the pool."""

    capability: type
    component: Any
    name: str | None = None


class ComponentPool:
    """
    Read-only typed multimap of components keyed by capability.

    Lookups never inspect component types at query time; the capability a
    component provides is fixed when it is registered.
    """

    def __init__(self, entries: list[ComponentEntry] | None = None) -> None:
        by_capability: dict[type, list[ComponentEntry]] = defaultdict(list)
        for entry in entries or []:
            by_capability[entry.capability].append(entry)
        self._entries: dict[type, tuple[ComponentEntry, ...]] = {
            capability: tuple(items) for capability, items in by_capability.items()
        }

    @staticmethod
    def builder() -> ComponentPoolBuilder:
        return ComponentPoolBuilder()

    def find_all(self, capability: type[T]) -> list[T]:
        """
        Find every component providing a capability.

        Args:
            capability: Capability type

        Returns:
            Components in registration order
        """
        return [entry.component for entry in self._entries.get(capability, ())]

    def find_unique(self, capability: type[T]) -> T | None:
        """
        Find the single component providing a capability.

        Returns:
            The component, or None if nothing provides the capability

        Raises:
            NonUniqueComponentError: If several components provide it
        """
        entries = self._entries.get(capability, ())
        if not entries:
            return None
        if len(entries) > 1:
            names = [type(entry.component).__name__ for entry in entries]
            raise NonUniqueComponentError(
                f"Multiple components of type [{capability.__name__}] exist: {names}"
            )
        return entries[0].component

    def find_by_name(self, capability: type[T], name: str) -> T | None:
        """Find the component registered for a capability under a name."""
        for entry in self._entries.get(capability, ()):
            if entry.name == name:
                return entry.component
        return None

    def contains(self, capability: type) -> bool:
        return bool(self._entries.get(capability))

    def names(self, capability: type) -> list[str]:
        """List the names registered for a capability."""
        return [e.name for e in self._entries.get(capability, ()) if e.name is not None]

    def __len__(self) -> int:
        return sum(len(items) for items in self._entries.values())

    def __repr__(self) -> str:
        counts = {cap.__name__: len(items) for cap, items in self._entries.items()}
        return f"ComponentPool({counts})"


class ComponentPoolBuilder:
    """Collects registrations and freezes them into a ComponentPool."""

    def __init__(self) -> None:
        self._entries: list[ComponentEntry] = []

    def register(
        self,
        capability: type,
        component: Any,
        *,
        name: str | None = None,
    ) -> ComponentPoolBuilder:
        """
        Register a component under a capability.

        Args:
            capability: Capability the component provides
            component: Component instance
            name: Optional qualifier (required for data sources)

        Raises:
            TypeError: If the component does not implement the capability
        """
        if not isinstance(component, capability):
            raise TypeError(
                f"{type(component).__name__} does not provide capability {capability.__name__}"
            )
        if name is not None:
            for entry in self._entries:
                if entry.capability is capability and entry.name == name:
                    raise ValueError(
                        f"A {capability.__name__} named '{name}' is already registered"
                    )
        self._entries.append(ComponentEntry(capability, component, name))
        logger.debug(
            f"[pool] Registered {capability.__name__}: {type(component).__name__}"
            + (f" (name={name})" if name else "")
        )
        return self

    def build(self) -> ComponentPool:
        pool = ComponentPool(self._entries)
        logger.info(f"[pool] Built component pool with {len(pool)} component(s)")
        return pool
