"""
Type Converters.

Convert values between their stored (database) and in-memory (Python)
representations. Converters are looked up by Python type, walking the
type's MRO so a converter for a base class also serves its subclasses.
"""

from __future__ import annotations

import datetime
import decimal
import inspect
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, ClassVar

from sqlweave.errors import TypeConverterError

from .freezable import Freezable

logger = logging.getLogger(__name__)


class TypeConverter(ABC):
    """
    Converts values of the declared Python types to and from the database.

    Subclasses list the types they handle in `python_types`.
    """

    python_types: ClassVar[tuple[type, ...]] = ()

    @abstractmethod
    def to_database(self, value: Any) -> Any:
        """Convert a Python value to a bindable database value."""
        ...

    @abstractmethod
    def to_python(self, value: Any) -> Any:
        """Convert a value read from the database."""
        ...


class _CallableConverter(TypeConverter):
    def __init__(self, python_type: type):
        self._python_type = python_type

    def to_database(self, value: Any) -> Any:
        return value

    def to_python(self, value: Any) -> Any:
        if value is None or isinstance(value, self._python_type):
            return value
        return self._python_type(value)


class StringConverter(_CallableConverter):
    python_types = (str,)

    def __init__(self) -> None:
        super().__init__(str)


class IntegerConverter(_CallableConverter):
    python_types = (int,)

    def __init__(self) -> None:
        super().__init__(int)


class FloatConverter(_CallableConverter):
    python_types = (float,)

    def __init__(self) -> None:
        super().__init__(float)


class BooleanConverter(_CallableConverter):
    python_types = (bool,)

    def __init__(self) -> None:
        super().__init__(bool)


class DecimalConverter(TypeConverter):
    python_types = (decimal.Decimal,)

    def to_database(self, value: Any) -> Any:
        return value

    def to_python(self, value: Any) -> Any:
        if value is None or isinstance(value, decimal.Decimal):
            return value
        return decimal.Decimal(str(value))


class DateConverter(TypeConverter):
    python_types = (datetime.date,)

    def to_database(self, value: Any) -> Any:
        return value

    def to_python(self, value: Any) -> Any:
        if value is None or isinstance(value, datetime.date):
            return value
        return datetime.date.fromisoformat(str(value))


class DateTimeConverter(TypeConverter):
    python_types = (datetime.datetime,)

    def to_database(self, value: Any) -> Any:
        return value

    def to_python(self, value: Any) -> Any:
        if value is None or isinstance(value, datetime.datetime):
            return value
        return datetime.datetime.fromisoformat(str(value))


class UUIDConverter(TypeConverter):
    python_types = (uuid.UUID,)

    def to_database(self, value: Any) -> Any:
        return None if value is None else str(value)

    def to_python(self, value: Any) -> Any:
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


BUILTIN_CONVERTERS: tuple[type[TypeConverter], ...] = (
    StringConverter,
    IntegerConverter,
    FloatConverter,
    BooleanConverter,
    DecimalConverter,
    DateConverter,
    DateTimeConverter,
    UUIDConverter,
)


class TypeConverterRegistry(Freezable):
    """
    Registry of type converters keyed by Python type.

    A later registration for the same type replaces the earlier one, so the
    order in which sources are applied decides which converter wins.
    """

    def __init__(self) -> None:
        self._converters: dict[type, TypeConverter] = {}
        for converter_class in BUILTIN_CONVERTERS:
            self.register(converter_class)

    def register(self, converter: TypeConverter | type[TypeConverter]) -> None:
        """
        Register a converter class or instance.

        Raises:
            TypeConverterError: If the converter declares no python_types or
                cannot be instantiated
        """
        self._check_mutable()
        if inspect.isclass(converter):
            try:
                converter = converter()
            except TypeError as e:
                raise TypeConverterError(
                    f"Unable to instantiate type converter {converter.__name__}: {e}"
                ) from e
        if not isinstance(converter, TypeConverter):
            raise TypeConverterError(f"{type(converter).__name__} is not a TypeConverter")
        if not converter.python_types:
            raise TypeConverterError(
                f"Type converter {type(converter).__name__} does not declare python_types"
            )
        for python_type in converter.python_types:
            self._converters[python_type] = converter
            logger.debug(
                f"[type_converters] Registered {type(converter).__name__} for {python_type.__name__}"
            )

    def register_all(self, candidates: Iterable[type]) -> int:
        """Register every concrete TypeConverter subclass among scanned classes."""
        count = 0
        for candidate in candidates:
            if (
                inspect.isclass(candidate)
                and issubclass(candidate, TypeConverter)
                and not inspect.isabstract(candidate)
                and candidate.python_types
                and "." not in candidate.__qualname__
            ):
                self.register(candidate)
                count += 1
        return count

    def get_converter(self, python_type: type) -> TypeConverter | None:
        for klass in inspect.getmro(python_type):
            converter = self._converters.get(klass)
            if converter is not None:
                return converter
        return None

    def has_converter(self, python_type: type) -> bool:
        return self.get_converter(python_type) is not None

    @property
    def converters(self) -> dict[type, TypeConverter]:
        return dict(self._converters)
