from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain import Mail


class MailMapper(ABC):
    """Statements come from Mail.xml."""

    @abstractmethod
    def find_all(self) -> list[Mail]: ...

    @abstractmethod
    def count(self) -> int: ...
