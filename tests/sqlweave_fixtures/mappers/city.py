from __future__ import annotations

from abc import ABC, abstractmethod

from sqlweave.mapping import insert, mapper, select

from ..domain import City


@mapper
class CityMapper(ABC):
    @select(
        "SELECT id, name, state, country_id FROM city WHERE id = #{id}",
        result_type="City",
    )
    @abstractmethod
    def find_by_id(self, id: int) -> City | None: ...

    @select("SELECT id, name, state, country_id FROM city ORDER BY id", result_type="City")
    @abstractmethod
    def find_all(self) -> list[City]: ...

    @insert("INSERT INTO city (name, state, country_id) VALUES (#{name}, #{state}, #{country_id})")
    @abstractmethod
    def add(self, city: City) -> int: ...

    @select("SELECT '${database_name:DEFAULT}'", result_type="string")
    @abstractmethod
    def select_database_name(self) -> str: ...
