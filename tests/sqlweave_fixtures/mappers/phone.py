from __future__ import annotations

from abc import ABC, abstractmethod


class PhoneMapper(ABC):
    """Statements come from Phone.xml."""

    @abstractmethod
    def find_numbers(self) -> list[str]: ...

    @abstractmethod
    def database_name(self) -> str: ...
