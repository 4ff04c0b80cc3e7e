from __future__ import annotations

from abc import ABC, abstractmethod

from sqlweave.mapping import mapper, select


@mapper
class RegionMapper(ABC):
    @select("SELECT COUNT(*) FROM region", result_type="int")
    @abstractmethod
    def count(self) -> int: ...
