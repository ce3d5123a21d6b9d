import logging

from relforge.core import ForeignKey, HasMany, IntegerField, ManyToMany, Model, StringField
from relforge.dialects import PostgresDialect, SQLiteDialect
from relforge.persistence import Database
from relforge.schema import SchemaBuilder

dialect = SQLiteDialect()
builder = SchemaBuilder(dialect)


class Account(Model):
    name = StringField(nullable=False, unique=True)
    age = IntegerField(default=0)
    orders = HasMany(lambda: Order)
    roles = ManyToMany(lambda: Role, pivot_columns={"granted_by": "TEXT"})


class Order(Model):
    code = StringField(default="it's")
    account_id = ForeignKey(Account, on_delete="RESTRICT")


class Role(Model):
    label = StringField()


def test_create_table_sql():
    sql = builder.create_table_sql(Account)
    expected = (
        'CREATE TABLE IF NOT EXISTS "accounts" ("id" INTEGER NOT NULL PRIMARY KEY, '
        '"name" TEXT NOT NULL UNIQUE, "age" INTEGER DEFAULT 0)'
    )
    assert sql == expected


def test_create_table_sql_renders_foreign_keys_and_escaped_defaults():
    sql = builder.create_table_sql(Order)
    expected = (
        'CREATE TABLE IF NOT EXISTS "orders" ("id" INTEGER NOT NULL PRIMARY KEY, '
        "\"code\" TEXT DEFAULT 'it''s', "
        '"account_id" INTEGER NOT NULL REFERENCES "accounts" ("id") ON DELETE RESTRICT)'
    )
    assert sql == expected


def test_create_pivot_table_sql():
    sql = builder.create_pivot_table_sql(Account.roles)
    expected = (
        'CREATE TABLE IF NOT EXISTS "account_role" ('
        '"account_id" INTEGER NOT NULL REFERENCES "accounts" ("id") ON DELETE CASCADE, '
        '"role_id" INTEGER NOT NULL REFERENCES "roles" ("id") ON DELETE CASCADE, '
        '"granted_by" TEXT, '
        'UNIQUE ("account_id", "role_id"))'
    )
    assert sql == expected
    assert builder.create_pivot_tables_sql(Account) == [sql]
    assert builder.create_pivot_tables_sql(Order) == []


def test_postgres_uses_serial_primary_keys():
    sql = SchemaBuilder(PostgresDialect()).create_table_sql(Role)
    assert sql == 'CREATE TABLE IF NOT EXISTS "roles" ("id" SERIAL NOT NULL PRIMARY KEY, "label" TEXT)'


def test_drop_table_sql_logs_warning(caplog):
    caplog.set_level(logging.WARNING, logger="relforge.schema.builder")
    sql = builder.drop_table_sql("accounts")
    assert sql == 'DROP TABLE IF EXISTS "accounts"'
    assert any("DROP TABLE generated" in record.message for record in caplog.records)


def test_create_all_creates_model_and_pivot_tables(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'schema.db'}")
    with database.session() as session:
        statements = builder.create_all(session, Account, Order, Role)
        tables = {
            row["name"]
            for row in session.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        }

    assert len(statements) == 4
    assert {"accounts", "orders", "roles", "account_role"} <= tables
