"""
Database Identity.

A database-id provider inspects the bound data source and returns a short
identity string. Mapper documents use it to pick vendor-specific
statements via the `databaseId` attribute.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class DatabaseIdProvider(ABC):
    @abstractmethod
    def get_database_id(self, data_source: Engine) -> str | None: ...


class VendorDatabaseIdProvider(DatabaseIdProvider):
    """
    Derives the database id from the SQLAlchemy dialect name.

    Without properties the dialect name itself is the id. With properties,
    the first key contained in the dialect name selects the id, and an
    unmatched dialect yields None.

    Example:
        VendorDatabaseIdProvider({"postgresql": "pg", "sqlite": "lite"})
    """

    def __init__(self, properties: dict[str, str] | None = None):
        self.properties = dict(properties or {})

    def get_database_id(self, data_source: Engine) -> str | None:
        product = data_source.dialect.name
        if not self.properties:
            return product
        for key, value in self.properties.items():
            if key in product:
                return value
        logger.debug(f"[database_id] No database id mapped for dialect '{product}'")
        return None
