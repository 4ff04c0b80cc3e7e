"""
Configuration Resolver.

Turns the declarative inputs of a named configuration into concrete sets:
the mapper interfaces to bind and the mapper documents to parse.

Design Principle:
    Resolution is pure over the application environment. It never touches
    the registry set, so it can be tested with a fake discovery source and
    a temporary resource root.

Rules:
    - Mappers: explicit mappers unioned with every @mapper class found in
      the configured packages (every application package when none are
      configured). Duplicates collapse; an empty result is valid.
    - Documents: every requested filename must resolve under at least one
      search root. Roots are probed in order and the first match wins.
      Filenames that match no root are reported together, with every
      searched root.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlweave.errors import MapperDocumentNotFoundError
from sqlweave.mapping.annotations import is_mapper

if TYPE_CHECKING:
    from sqlweave.config.schemas import NamedConfiguration

    from .discovery import ApplicationEnvironment, Resource

logger = logging.getLogger(__name__)


def find_mappers(
    config: NamedConfiguration,
    environment: ApplicationEnvironment,
) -> frozenset[type]:
    """
    Resolve mapper interfaces.

    Args:
        config: Named configuration
        environment: Application environment to scan

    Returns:
        Explicit mappers plus scanned @mapper classes
    """
    mappers: set[type] = set(config.mappers)
    packages = config.mapper_packages or list(environment.packages)
    for package in packages:
        found = environment.scan(is_mapper, package)
        mappers.update(found)
        logger.debug(f"[resolver] {config.name}: {len(found)} mapper(s) in {package}")

    logger.debug(f"[resolver] {config.name}: resolved {len(mappers)} mapper(s)")
    return frozenset(mappers)


def find_mapper_xml_files(
    config: NamedConfiguration,
    environment: ApplicationEnvironment,
) -> tuple[Resource, ...]:
    """
    Resolve mapper documents.

    Args:
        config: Named configuration
        environment: Application environment holding the resource root

    Returns:
        Located documents, in request order

    Raises:
        MapperDocumentNotFoundError: If any filename matches no search root
    """
    if not config.mapper_xml_files:
        return ()

    if config.mapper_xml_base_paths:
        roots = [environment.for_base(path) for path in config.mapper_xml_base_paths]
        search_paths = list(config.mapper_xml_base_paths)
    else:
        roots = [environment]
        search_paths = [environment.location]

    resources: dict[str, Resource] = {}
    resolved: set[str] = set()
    for filename in config.mapper_xml_files:
        for root in roots:
            resource = root.get_resource(filename)
            if resource is not None:
                resources.setdefault(resource.location, resource)
                resolved.add(filename)
                break

    missing = [filename for filename in config.mapper_xml_files if filename not in resolved]
    if missing:
        raise MapperDocumentNotFoundError(missing, search_paths)

    logger.debug(
        f"[resolver] {config.name}: resolved {len(resources)} mapper document(s) "
        f"from {search_paths}"
    )
    return tuple(resources.values())
