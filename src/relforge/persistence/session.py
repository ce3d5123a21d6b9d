"""
Persistence session: one connection, one transactional unit of work.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..adapters.base import ConnectionConfig, DatabaseAdapter
from ..core.model import Model
from ..dialects.base import Dialect
from ..security.redaction import redact_params
from ..utils import get_logger, time_call
from .transaction import TransactionManager


class PersistenceSession:
    """
    Owns a connected adapter and the transaction stack running on it.

    Every write of one object graph goes through the same session. Instances
    inserted inside a transaction level are remembered so that rolling that
    level back also clears their persisted flag and generated primary key.
    A session is not meant to be shared between threads.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        connection_config: Optional[ConnectionConfig] = None,
        dsn: Optional[str] = None,
    ) -> None:
        if connection_config is not None and dsn is not None:
            raise ValueError("Pass either connection_config or dsn, not both.")
        if dsn is not None:
            connection_config = ConnectionConfig.from_dsn(dsn)
        self.adapter = adapter
        self.dialect: Dialect = adapter.dialect
        self.connection_config = connection_config or ConnectionConfig(url="sqlite:///:memory:")
        self.transaction_manager = TransactionManager(adapter, self.dialect)
        from ..hooks import hooks

        self.hooks = hooks
        self.logger = get_logger("persistence.session")
        self.adapter.connect(self.connection_config)

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "PersistenceSession":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type:
                self.rollback()
            else:
                self.commit()
        finally:
            self.close()

    # ------------------------------------------------------------------ #
    @property
    def in_transaction(self) -> bool:
        return self.transaction_manager.depth > 0

    def begin(self) -> None:
        self.transaction_manager.begin()

    def commit(self) -> None:
        self.transaction_manager.commit()
        if not self.in_transaction:
            self.hooks.fire("after_commit", None, session=self)

    def rollback(self) -> None:
        level = self.transaction_manager.rollback()
        self.logger.debug("Rolled back %s insert(s)", len(level.inserted))
        self.hooks.fire("after_rollback", None, session=self)

    def close(self) -> None:
        try:
            while self.in_transaction:
                self.rollback()
        finally:
            self.adapter.close()

    @contextmanager
    def transaction(self):
        """
        Run a block in a transaction, or in a savepoint when one is open.
        """

        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        else:
            self.commit()

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def insert(self, instance: Model) -> Model:
        """
        Insert ``instance`` as a new row and mark it persisted.
        """
        self.hooks.fire("before_insert", instance, session=self)
        meta = instance._meta
        pk_field = meta.primary_key
        values: Dict[str, Any] = {}
        for field in meta.get_fields():
            value = getattr(instance, field.name, None)
            if field.primary_key and value is None:
                continue
            values[field.column_name()] = value

        generated = pk_field is not None and getattr(instance, pk_field.name, None) is None
        pk_value = self.insert_row(
            meta.table, values, pk_column=pk_field.column_name() if generated else None
        )
        if generated:
            setattr(instance, pk_field.name, pk_value)

        instance._mark_persisted(generated_pk=generated)
        self.transaction_manager.track(instance)
        self.hooks.fire("after_insert", instance, session=self)
        return instance

    def insert_row(
        self, table: str, values: Mapping[str, Any], *, pk_column: Optional[str] = None
    ) -> Any:
        """
        Insert one row and return the generated key of ``pk_column`` if given.
        """
        table_sql = self.dialect.format_table(table)
        columns = [self.dialect.quote_identifier(column) for column in values]
        params = list(values.values())
        if columns:
            placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in columns)
            sql = f"INSERT INTO {table_sql} ({', '.join(columns)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table_sql} DEFAULT VALUES"
        if pk_column and self.dialect.capabilities.supports_returning:
            sql = f"{sql} {self.dialect.returning_clause(pk_column)}"
        cursor = self.execute(sql, params)
        if pk_column is None:
            return None
        return self.adapter.last_insert_id(cursor, table, pk_column)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def query(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        """
        Return rows of ``table`` matching all equality filters, as dicts.
        """
        where_sql, params = self._where(filters)
        sql = f"SELECT * FROM {self.dialect.format_table(table)}{where_sql}"
        cursor = self.execute(sql, params)
        return [self._row_to_dict(cursor, row) for row in cursor.fetchall()]

    def count(self, table: str, **filters: Any) -> int:
        where_sql, params = self._where(filters)
        sql = f"SELECT COUNT(*) FROM {self.dialect.format_table(table)}{where_sql}"
        row = self.execute(sql, params).fetchone()
        return int(row[0])

    def execute(self, sql: str, params: Iterable[Any] | None = None):
        param_list = list(params or [])
        with time_call(
            "session.execute",
            self.logger,
            sql=sql,
            params=redact_params(param_list),
            threshold_ms=getattr(self.adapter, "slow_query_ms", 200),
        ):
            return self.adapter.execute(sql, param_list)

    # ------------------------------------------------------------------ #
    def _where(self, filters: Mapping[str, Any]) -> tuple[str, list[Any]]:
        if not filters:
            return "", []
        clauses: list[str] = []
        params: list[Any] = []
        for column, value in filters.items():
            quoted = self.dialect.quote_identifier(column)
            if value is None:
                clauses.append(f"{quoted} IS NULL")
            else:
                clauses.append(f"{quoted} = {self.dialect.parameter_placeholder()}")
                params.append(value)
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _row_to_dict(cursor, row: Sequence[Any]) -> Dict[str, Any]:
        if hasattr(row, "keys"):
            return dict(row)
        if getattr(cursor, "description", None):
            columns = [col[0] for col in cursor.description]
            return {col: row[idx] for idx, col in enumerate(columns)}
        raise ValueError("Unable to map database row to dictionary.")
