"""
Scripting Language Drivers.

A language driver turns the text of a statement into a SqlSource. The
default driver expands `${name}` configuration variables and binds
`#{name}` parameters; the raw driver passes SQL through untouched.
"""

from __future__ import annotations

import inspect
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from sqlweave.mapping.statements import RawSqlSource, SqlSource, StaticSqlSource

from .freezable import Freezable

if TYPE_CHECKING:
    from .configuration import Configuration

logger = logging.getLogger(__name__)

_VARIABLE_PATTERN = re.compile(r"\$\{\s*([^}:]+?)\s*(?::([^}]*))?\}")


def substitute_variables(text: str, variables: dict[str, str]) -> str:
    """
    Replace `${name}` (or `${name:default}`) with configuration variables.

    Unknown names without a default are left in place.
    """

    def _replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        if name in variables:
            return str(variables[name])
        if default is not None:
            return default
        return match.group(0)

    return _VARIABLE_PATTERN.sub(_replace, text)


class LanguageDriver(ABC):
    @abstractmethod
    def create_sql_source(self, configuration: Configuration, script: str) -> SqlSource: ...


class XmlLanguageDriver(LanguageDriver):
    """Default dialect: variable substitution plus `#{param}` binding."""

    def create_sql_source(self, configuration: Configuration, script: str) -> SqlSource:
        return StaticSqlSource(substitute_variables(script, configuration.variables))


class RawLanguageDriver(LanguageDriver):
    """Passes SQL through with only variable substitution."""

    def create_sql_source(self, configuration: Configuration, script: str) -> SqlSource:
        return RawSqlSource(substitute_variables(script, configuration.variables))


class LanguageDriverRegistry(Freezable):
    """
    Registry of scripting language drivers keyed by driver class.

    Registering a class instantiates it; registering an instance keeps
    that instance. A driver class is registered at most once.
    """

    def __init__(self) -> None:
        self._drivers: dict[type[LanguageDriver], LanguageDriver] = {}
        self._default: type[LanguageDriver] = XmlLanguageDriver
        self.register(XmlLanguageDriver)
        self.register(RawLanguageDriver)

    def register(self, driver: LanguageDriver | type[LanguageDriver]) -> None:
        self._check_mutable()
        if inspect.isclass(driver):
            if not issubclass(driver, LanguageDriver):
                raise TypeError(f"{driver.__name__} is not a LanguageDriver")
            if driver not in self._drivers:
                self._drivers[driver] = driver()
                logger.debug(f"[scripting] Registered language driver: {driver.__name__}")
            return
        if not isinstance(driver, LanguageDriver):
            raise TypeError(f"{type(driver).__name__} is not a LanguageDriver")
        if type(driver) not in self._drivers:
            self._drivers[type(driver)] = driver
            logger.debug(f"[scripting] Registered language driver: {type(driver).__name__}")

    def get_driver(self, driver_class: type[LanguageDriver]) -> LanguageDriver | None:
        return self._drivers.get(driver_class)

    def set_default_driver_class(self, driver_class: type[LanguageDriver] | None) -> None:
        self._check_mutable()
        if driver_class is None:
            driver_class = XmlLanguageDriver
        self.register(driver_class)
        self._default = driver_class

    @property
    def default_driver_class(self) -> type[LanguageDriver]:
        return self._default

    @property
    def default_driver(self) -> LanguageDriver:
        return self._drivers[self._default]

    @property
    def driver_classes(self) -> list[type[LanguageDriver]]:
        return list(self._drivers)
