"""
Persistence layer components: database, sessions, transactions.
"""

from .database import DEFAULT_ENV_VAR, Database
from .session import PersistenceSession
from .transaction import TransactionError, TransactionLevel, TransactionManager

__all__ = [
    "DEFAULT_ENV_VAR",
    "Database",
    "PersistenceSession",
    "TransactionError",
    "TransactionLevel",
    "TransactionManager",
]
