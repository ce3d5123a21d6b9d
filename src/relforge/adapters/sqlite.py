"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..security.redaction import redact_params
from ..utils import get_logger, resolve_slow_query_ms, time_call
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    ConstraintViolationError,
    DatabaseAdapter,
)


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection


class SQLiteAdapter(DatabaseAdapter):
    """
    Adapter wrapping the Python stdlib sqlite3 module.

    Foreign key enforcement is switched on for every connection. Each adapter
    owns exactly one connection, so ``sqlite:///:memory:`` databases are
    private to the adapter that opened them.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = SQLiteDialect()
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else 5.0

        try:
            connection = sqlite3.connect(
                path,
                isolation_level=None if config.autocommit else "",
                timeout=timeout,
                detect_types=sqlite3.PARSE_DECLTYPES,
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Failed to open SQLite database {path!r}.") from exc
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")

        if config.isolation_level:
            connection.isolation_level = config.isolation_level

        self._state = SQLiteConnectionState(connection)
        self.logger.debug("Opened SQLite database %s", config.descriptive_label())
        return connection

    def close(self) -> None:
        if self._state:
            self._state.connection.close()
            self._state = None

    @property
    def in_transaction(self) -> bool:
        return bool(self._state and self._state.connection.in_transaction)

    def _ensure_connection(self) -> sqlite3.Connection:
        if not self._state:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state.connection

    # ------------------------------------------------------------------ #
    # Execution helpers
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        cursor = connection.cursor()
        params = params or ()
        with time_call(
            "sqlite.execute",
            self.logger,
            sql=sql,
            params=redact_params(params),
            threshold_ms=self.slow_query_ms,
        ):
            try:
                cursor.execute(sql, params)
            except sqlite3.IntegrityError as exc:
                raise ConstraintViolationError(str(exc)) from exc
            except sqlite3.Error as exc:
                raise AdapterExecutionError(str(exc)) from exc
        return cursor

    def executemany(
        self, sql: str, seq_of_params: Sequence[Sequence[Any]] | Iterable[Sequence[Any]]
    ) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        cursor = connection.cursor()
        with time_call(
            "sqlite.executemany", self.logger, sql=sql, params="bulk", threshold_ms=self.slow_query_ms
        ):
            try:
                cursor.executemany(sql, seq_of_params)
            except sqlite3.IntegrityError as exc:
                raise ConstraintViolationError(str(exc)) from exc
            except sqlite3.Error as exc:
                raise AdapterExecutionError(str(exc)) from exc
        return cursor

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        connection = self._ensure_connection()
        if connection.in_transaction:
            raise AdapterTransactionError("A transaction is already active on this connection.")
        # IMMEDIATE takes the write lock up front so concurrent writers wait
        # on the busy timeout instead of failing on lock upgrade.
        try:
            connection.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise AdapterTransactionError(str(exc)) from exc

    def commit(self) -> None:
        connection = self._ensure_connection()
        try:
            connection.commit()
        except sqlite3.Error as exc:
            raise AdapterTransactionError(str(exc)) from exc

    def rollback(self) -> None:
        connection = self._ensure_connection()
        connection.rollback()

    # ------------------------------------------------------------------ #
    def last_insert_id(self, cursor: sqlite3.Cursor, table: str, pk_column: str) -> Any:
        return cursor.lastrowid

    @staticmethod
    def _normalize_path(url: str) -> str:
        if url in ("sqlite://", "sqlite:///:memory:"):
            return ":memory:"
        prefix = "sqlite:///"
        if url.startswith(prefix):
            return url[len(prefix) :]
        return url
