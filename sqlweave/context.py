"""
Bean Context.

The boundary through which built session factories and mapper proxies are
handed to the application. Singletons are keyed by (type, name); the name
is the configuration name they were built for.

Usage:
    context = BeanContext()
    load_session_factories(configs, pool, environment, context=context)

    context.get_bean(CityMapper, "default")
    context.get_bean(CountryMapper)              # the only one, or "default"
    context.get_bean(SessionFactory, "2nd")
"""

from __future__ import annotations

import logging
import threading
from typing import Any, TypeVar

from sqlweave.errors import ConfigurationError, NoSuchBeanError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_NAME = "default"


class BeanContext:
    """Thread-safe registry of named singletons."""

    def __init__(self) -> None:
        self._beans: dict[tuple[type, str], Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, bean_type: type[T], instance: T, name: str = DEFAULT_NAME) -> None:
        """
        Register a singleton.

        Raises:
            ConfigurationError: If (bean_type, name) is already registered
        """
        key = (bean_type, name)
        with self._lock:
            if key in self._beans:
                raise ConfigurationError(
                    f"A bean of type {bean_type.__name__} named '{name}' is already registered"
                )
            self._beans[key] = instance
        logger.debug(f"[context] Registered {bean_type.__name__} (name={name})")

    def get_bean(self, bean_type: type[T], name: str | None = None) -> T:
        """
        Look up a singleton.

        Without a name, a single registration of the type answers; with
        several, the one named "default" does.

        Raises:
            NoSuchBeanError: If nothing (or nothing unambiguous) matches
        """
        with self._lock:
            if name is not None:
                try:
                    return self._beans[(bean_type, name)]
                except KeyError:
                    raise NoSuchBeanError(
                        f"No bean of type [{bean_type.__name__}] exists for the given qualifier: '{name}'"
                    ) from None

            candidates = {n: bean for (t, n), bean in self._beans.items() if t is bean_type}
        if len(candidates) == 1:
            return next(iter(candidates.values()))
        if DEFAULT_NAME in candidates:
            return candidates[DEFAULT_NAME]
        if not candidates:
            raise NoSuchBeanError(f"No bean of type [{bean_type.__name__}] exists")
        raise NoSuchBeanError(
            f"Multiple beans of type [{bean_type.__name__}] exist: {sorted(candidates)}"
        )

    def contains_bean(self, bean_type: type, name: str | None = None) -> bool:
        with self._lock:
            if name is not None:
                return (bean_type, name) in self._beans
            return any(t is bean_type for t, _ in self._beans)

    def names(self, bean_type: type) -> list[str]:
        with self._lock:
            return [n for t, n in self._beans if t is bean_type]

    def __len__(self) -> int:
        return len(self._beans)
