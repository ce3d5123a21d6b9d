"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import Dialect, DialectCapabilities


class SQLiteDialect:
    """
    SQLite dialect using qmark param style and minimal capabilities.
    """

    name: Final[str] = "sqlite"
    param_style: Final[str] = "qmark"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=False,
        supports_savepoints=True,
        supports_schema_namespaces=False,
    )

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def format_table(self, table_name: str) -> str:
        return self.quote_identifier(table_name)

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "?"

    def auto_increment_type(self) -> str:
        # INTEGER PRIMARY KEY aliases the rowid
        return "INTEGER"

    def returning_clause(self, column: str) -> str:
        return ""

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        null_clause = "" if nullable else " NOT NULL"
        return f"{self.quote_identifier(column)} {column_type}{null_clause}"

    def render_references(self, table_name: str, column: str, *, on_delete: str | None = None) -> str:
        clause = f"REFERENCES {self.format_table(table_name)} ({self.quote_identifier(column)})"
        if on_delete:
            clause += f" ON DELETE {on_delete}"
        return clause


def get_sqlite_dialect() -> Dialect:
    return SQLiteDialect()
