"""
sqlweave Sessions

Session factories, sessions, the transactional session template and mapper
proxies.
"""

from .executor import Executor
from .factory import SessionFactory
from .proxy import create_mapper_proxy
from .session import SqlSession, to_parameters
from .template import SessionTemplate
from .transaction import (
    ConnectionTransaction,
    ConnectionTransactionFactory,
    Transaction,
    TransactionFactory,
)

__all__ = [
    "ConnectionTransaction",
    "ConnectionTransactionFactory",
    "Executor",
    "SessionFactory",
    "SessionTemplate",
    "SqlSession",
    "Transaction",
    "TransactionFactory",
    "create_mapper_proxy",
    "to_parameters",
]
