"""
Application Discovery.

The platform side of resolution: which namespaces the application owns,
which classes live in them, and which resources exist under a root.

Discovery is injected. The default implementation imports a package and
walks its submodules; tests pass a fake `(package) -> classes` callable so
resolution stays independent of the import system.

Usage:
    environment = ApplicationEnvironment(
        packages=["app"],
        resource_root="resources/",
    )
    environment.scan(is_mapper, "app.mappers.city")
    environment.for_base("mappers/mail").get_resource("Mail.xml")
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

Discovery = Callable[[str], Iterable[type]]


@dataclass(frozen=True)
class Resource:
    """A located resource: its path relative to the resource root, and the file."""

    location: str
    path: Path

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def __str__(self) -> str:
        return self.location


def scan_package(package_name: str) -> list[type]:
    """
    List the classes defined in a package and all of its submodules.

    A package that cannot be imported yields no classes.
    """
    try:
        package = importlib.import_module(package_name)
    except ImportError as e:
        logger.warning(f"[discovery] Cannot scan package '{package_name}': {e}")
        return []

    modules = [package]
    if hasattr(package, "__path__"):
        for info in pkgutil.walk_packages(package.__path__, prefix=f"{package.__name__}."):
            try:
                modules.append(importlib.import_module(info.name))
            except ImportError as e:
                logger.warning(f"[discovery] Skipping module '{info.name}': {e}")

    classes: list[type] = []
    for module in modules:
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if obj.__module__ == module.__name__ and obj not in classes:
                classes.append(obj)
    logger.debug(f"[discovery] Scanned {package_name}: {len(classes)} class(es)")
    return classes


class ApplicationEnvironment:
    """
    Namespaces, classes and resources visible to the application.

    Attributes:
        packages: Every namespace the application owns; scanned when a
            configuration names no packages of its own
        resource_root: Directory resources are resolved against
        base: Sub-path of the root this view is restricted to
    """

    def __init__(
        self,
        packages: Iterable[str] = (),
        resource_root: str | Path | None = None,
        *,
        discovery: Discovery | None = None,
        base: str = "",
    ):
        self.packages: tuple[str, ...] = tuple(packages)
        self.resource_root = Path(resource_root) if resource_root is not None else Path.cwd()
        self.base = base.strip("/")
        self._discovery = discovery or scan_package

    def scan(self, predicate: Callable[[type], bool], package: str) -> list[type]:
        """Find the classes under a package that satisfy a predicate."""
        return [cls for cls in self._discovery(package) if predicate(cls)]

    def for_base(self, base_path: str) -> ApplicationEnvironment:
        """Return a view whose resources resolve under `base_path`."""
        base = str(PurePosixPath(self.base, base_path)) if self.base else base_path
        return ApplicationEnvironment(
            self.packages,
            self.resource_root,
            discovery=self._discovery,
            base=base,
        )

    def get_resource(self, name: str) -> Resource | None:
        """Locate a resource by name under this view, or None."""
        relative = PurePosixPath(self.base, name) if self.base else PurePosixPath(name)
        path = self.resource_root.joinpath(*relative.parts)
        if not path.is_file():
            return None
        return Resource(str(relative), path)

    @property
    def location(self) -> str:
        return self.base or str(self.resource_root)

    def __repr__(self) -> str:
        return (
            f"ApplicationEnvironment(packages={list(self.packages)}, "
            f"root={str(self.resource_root)!r}, base={self.base!r})"
        )
