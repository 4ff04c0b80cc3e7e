"""
Transactions.

A transaction owns one SQLAlchemy connection checked out from the bound
engine. The connection is opened on first use and returned to the pool
on close.

The transaction strategy is a TransactionFactory passed to the session
factory builder; ConnectionTransactionFactory is the default.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class Transaction(ABC):
    @property
    @abstractmethod
    def connection(self) -> Connection: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class TransactionFactory(ABC):
    @abstractmethod
    def new_transaction(self, data_source: Engine, autocommit: bool = False) -> Transaction: ...


class ConnectionTransaction(Transaction):
    """Commits and rolls back directly on the connection."""

    def __init__(self, data_source: Engine, autocommit: bool = False):
        self._data_source = data_source
        self._autocommit = autocommit
        self._connection: Connection | None = None

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            self._connection = self._data_source.connect()
            logger.debug(f"[transaction] Opened connection to {self._data_source.url!r}")
        return self._connection

    def commit(self) -> None:
        if self._connection is not None:
            self._connection.commit()

    def rollback(self) -> None:
        if self._connection is not None:
            self._connection.rollback()

    def close(self) -> None:
        if self._connection is None:
            return
        try:
            if self._autocommit:
                self._connection.commit()
            else:
                self._connection.rollback()
        finally:
            self._connection.close()
            self._connection = None


class ConnectionTransactionFactory(TransactionFactory):
    def new_transaction(self, data_source: Engine, autocommit: bool = False) -> Transaction:
        return ConnectionTransaction(data_source, autocommit)
