"""
Schema builder converting model metadata into DDL statements.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..core.fields import AutoField
from ..core.model import Model
from ..core.relations import ForeignKey, ManyToMany
from ..dialects.base import Dialect
from ..utils import get_logger

if TYPE_CHECKING:
    from ..persistence.session import PersistenceSession


class SchemaBuilder:
    """
    Produces dialect-specific SQL for model and pivot tables.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.logger = get_logger("schema.builder")

    def create_table_sql(self, model: type[Model]) -> str:
        columns_sql = self._render_columns(model)
        table_name = self.dialect.format_table(model._meta.table)
        column_list = ", ".join(columns_sql)
        return f"CREATE TABLE IF NOT EXISTS {table_name} ({column_list})"

    def create_pivot_table_sql(self, relation: ManyToMany) -> str:
        linkage = relation.linkage
        owner = relation.require_model()
        related = relation.related_model
        left_col = self.dialect.quote_identifier(linkage.foreign_key)
        right_col = self.dialect.quote_identifier(linkage.related_foreign_key)
        left_ref = self.dialect.render_references(
            owner._meta.table,
            owner._meta.get_field(linkage.local_key).column_name(),
            on_delete="CASCADE",
        )
        right_ref = self.dialect.render_references(
            related._meta.table,
            related._meta.get_field(linkage.related_key).column_name(),
            on_delete="CASCADE",
        )
        pieces = [
            f"{left_col} INTEGER NOT NULL {left_ref}",
            f"{right_col} INTEGER NOT NULL {right_ref}",
        ]
        for column, column_type in linkage.columns:
            pieces.append(
                self.dialect.render_column_definition(column, column_type, nullable=True)
            )
        pieces.append(f"UNIQUE ({left_col}, {right_col})")
        table = self.dialect.format_table(linkage.table)
        return f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(pieces)})"

    def create_pivot_tables_sql(self, model: type[Model]) -> list[str]:
        return [
            self.create_pivot_table_sql(relation)
            for relation in model._meta.relations.values()
            if isinstance(relation, ManyToMany)
        ]

    def drop_table_sql(self, table: str) -> str:
        table_name = self.dialect.format_table(table)
        self.logger.warning(
            "DROP TABLE generated for %s; confirm destructive migration before applying.",
            table_name,
        )
        return f"DROP TABLE IF EXISTS {table_name}"

    def create_all(self, session: "PersistenceSession", *models: type[Model]) -> list[str]:
        """
        Create model tables in the given order, then their pivot tables.

        Models referenced by foreign keys must come before the models
        referencing them.
        """
        statements = [self.create_table_sql(model) for model in models]
        for model in models:
            for sql in self.create_pivot_tables_sql(model):
                if sql not in statements:
                    statements.append(sql)
        for sql in statements:
            session.execute(sql)
        self.logger.info("Created %s table(s)", len(statements))
        return statements

    def _render_columns(self, model: type[Model]) -> List[str]:
        pieces: List[str] = []
        for field in model._meta.get_fields():
            column_type = field.db_type
            if isinstance(field, AutoField):
                column_type = self.dialect.auto_increment_type()
            if not column_type:
                raise ValueError(f"Field '{field.name}' missing db_type for schema generation.")
            column_def = self.dialect.render_column_definition(
                field.column_name(),
                column_type,
                nullable=field.nullable if not field.primary_key else False,
            )
            extras: List[str] = []
            if field.primary_key:
                extras.append("PRIMARY KEY")
            if field.unique and not field.primary_key:
                extras.append("UNIQUE")
            default_sql = self._default_clause(field)
            if default_sql:
                extras.append(default_sql)
            if isinstance(field, ForeignKey):
                table, column = field.references()
                extras.append(self.dialect.render_references(table, column, on_delete=field.on_delete))

            if extras:
                column_def = f"{column_def} {' '.join(extras)}"
            pieces.append(column_def)
        return pieces

    def _default_clause(self, field) -> str | None:
        if field.db_default is not None:
            return f"DEFAULT {field.db_default}"
        if field.default is None or callable(field.default):
            return None
        value = field.default
        if isinstance(value, bool):
            return f"DEFAULT {1 if value else 0}"
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"DEFAULT '{escaped}'"
        return f"DEFAULT {value}"
