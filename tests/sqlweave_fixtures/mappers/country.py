from __future__ import annotations

from abc import ABC, abstractmethod

from sqlweave.mapping import mapper, select

from ..domain import Country


@mapper
class CountryMapper(ABC):
    @select("SELECT id, name FROM country WHERE id = #{country_id}", result_type="Country")
    @abstractmethod
    def find_by_id(self, country_id: int) -> Country | None: ...

    @select("SELECT '${database_name:DEFAULT}'", result_type="string")
    @abstractmethod
    def select_database_name(self) -> str: ...
