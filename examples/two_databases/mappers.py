"""Domain types and mapper interfaces for the two-database example."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlweave import alias, insert, mapper, select


@alias("City")
@dataclass
class City:
    id: int | None = None
    name: str = ""
    countryCode: str = ""


@alias("Mail")
@dataclass
class Mail:
    id: int | None = None
    address: str = ""


@mapper
class CityMapper(ABC):
    @select("SELECT id, name, country_code FROM city WHERE id = #{id}", result_type="City")
    @abstractmethod
    def find_by_id(self, id: int) -> City | None: ...

    @select("SELECT id, name, country_code FROM city ORDER BY id", result_type="City")
    @abstractmethod
    def find_all(self) -> list[City]: ...

    @insert("INSERT INTO city (name, country_code) VALUES (#{name}, #{countryCode})")
    @abstractmethod
    def add(self, city: City) -> int: ...

    @select("SELECT '${greeting:hi}'", result_type="string")
    @abstractmethod
    def greeting(self) -> str: ...


class MailMapper(ABC):
    """Bound through resources/mail/Mail.xml."""

    @abstractmethod
    def find_all(self) -> list[Mail]: ...

    @abstractmethod
    def count(self) -> int: ...
