"""
Storage adapter interfaces and implementations.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    ConstraintViolationError,
    DatabaseAdapter,
    SSLConfig,
    StorageError,
)
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

ADAPTERS = {
    "sqlite": SQLiteAdapter,
    "postgres": PostgresAdapter,
    "postgresql": PostgresAdapter,
}


def adapter_for(config: ConnectionConfig) -> type:
    """
    Return the adapter class registered for the config's DSN scheme.
    """
    try:
        return ADAPTERS[config.backend]
    except KeyError as exc:
        raise AdapterConfigurationError(
            f"No adapter registered for backend '{config.backend}'"
        ) from exc


__all__ = [
    "ADAPTERS",
    "ConnectionConfig",
    "DatabaseAdapter",
    "SSLConfig",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "AdapterTransactionError",
    "ConstraintViolationError",
    "StorageError",
    "SQLiteAdapter",
    "PostgresAdapter",
    "adapter_for",
]
