"""
Interceptors.

Interceptors wrap the session executor. Each interceptor wraps the result
of the previous one, so the last registered interceptor is the outermost
and sees a call first.

Usage:
    class TimingInterceptor(Interceptor):
        def intercept(self, invocation):
            started = time.perf_counter()
            try:
                return invocation.proceed()
            finally:
                logger.info(f"{invocation.method} took {time.perf_counter() - started:.3f}s")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .freezable import Freezable

logger = logging.getLogger(__name__)


@dataclass
class Invocation:
    """A call on an intercepted target."""

    target: Any
    method: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def proceed(self) -> Any:
        return getattr(self.target, self.method)(*self.args, **self.kwargs)


class Interceptor(ABC):
    """
    Intercepts calls on the session executor.

    `intercepted_methods` restricts which executor methods are routed
    through `intercept()`; other calls go straight to the target.
    """

    intercepted_methods: ClassVar[frozenset[str]] = frozenset({"query", "update"})

    @abstractmethod
    def intercept(self, invocation: Invocation) -> Any: ...

    def plugin(self, target: Any) -> Any:
        return Plugin(target, self)


class Plugin:
    """Proxy that routes intercepted method calls through an interceptor."""

    def __init__(self, target: Any, interceptor: Interceptor):
        self._target = target
        self._interceptor = interceptor

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._target, name)
        if name not in self._interceptor.intercepted_methods or not callable(attr):
            return attr

        def _invoke(*args: Any, **kwargs: Any) -> Any:
            return self._interceptor.intercept(Invocation(self._target, name, args, kwargs))

        return _invoke


class InterceptorChain(Freezable):
    """Ordered interceptor list."""

    def __init__(self) -> None:
        self._interceptors: list[Interceptor] = []

    def add_interceptor(self, interceptor: Interceptor) -> None:
        self._check_mutable()
        self._interceptors.append(interceptor)
        logger.debug(f"[interceptors] Added interceptor: {type(interceptor).__name__}")

    def plugin_all(self, target: Any) -> Any:
        for interceptor in self._interceptors:
            target = interceptor.plugin(target)
        return target

    @property
    def interceptors(self) -> list[Interceptor]:
        return list(self._interceptors)

    def __len__(self) -> int:
        return len(self._interceptors)
