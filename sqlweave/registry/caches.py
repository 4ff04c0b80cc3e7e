"""
Named Caches.

Caches hold query results per statement namespace. Mapper documents opt
in with `<cache-ref namespace="..."/>`, naming a cache registered here.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

from cachetools import LRUCache

logger = logging.getLogger(__name__)


class Cache(ABC):
    """A named query-result cache."""

    @property
    @abstractmethod
    def id(self) -> str: ...

    @abstractmethod
    def get_object(self, key: Any) -> Any | None: ...

    @abstractmethod
    def put_object(self, key: Any, value: Any) -> None: ...

    @abstractmethod
    def remove_object(self, key: Any) -> Any | None: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def __len__(self) -> int: ...


class LruCache(Cache):
    """
    Thread-safe LRU cache backed by cachetools.

    Example:
        pool_builder.register(Cache, LruCache("city", maxsize=256))
    """

    def __init__(self, cache_id: str, maxsize: int = 1024):
        self._id = cache_id
        self._cache: LRUCache = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._id

    def get_object(self, key: Any) -> Any | None:
        with self._lock:
            return self._cache.get(key)

    def put_object(self, key: Any, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def remove_object(self, key: Any) -> Any | None:
        with self._lock:
            return self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __repr__(self) -> str:
        return f"LruCache(id={self._id!r}, size={len(self)}, maxsize={self._cache.maxsize})"
