"""Mixin for registries that become read-only once a session factory is built."""

from __future__ import annotations

from sqlweave.errors import FrozenConfigurationError


class Freezable:
    _frozen: bool = False

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenConfigurationError(
                f"{type(self).__name__} belongs to a built session factory and cannot be modified"
            )
