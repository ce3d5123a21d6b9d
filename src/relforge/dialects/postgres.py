"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import Dialect, DialectCapabilities


class PostgresDialect:
    """
    PostgreSQL dialect using percent positional parameters.
    """

    name: Final[str] = "postgresql"
    param_style: Final[str] = "pyformat"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_returning=True,
        supports_savepoints=True,
        supports_schema_namespaces=True,
    )

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def format_table(self, table_name: str) -> str:
        if "." in table_name:
            schema, table = table_name.split(".", 1)
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table_name)

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "%s"

    def auto_increment_type(self) -> str:
        return "SERIAL"

    def returning_clause(self, column: str) -> str:
        return f"RETURNING {self.quote_identifier(column)}"

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        null_clause = "" if nullable else " NOT NULL"
        return f"{self.quote_identifier(column)} {column_type}{null_clause}"

    def render_references(self, table_name: str, column: str, *, on_delete: str | None = None) -> str:
        clause = f"REFERENCES {self.format_table(table_name)} ({self.quote_identifier(column)})"
        if on_delete:
            clause += f" ON DELETE {on_delete}"
        return clause


def get_postgres_dialect() -> Dialect:
    return PostgresDialect()
