"""SQL dialects that hide syntax differences between database engines."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Sequence


class ColumnType(IntEnum):
    """Abstract column types that map to engine-specific SQL types."""

    INTEGER = 0
    TEXT = 1
    BLOB = 2
    TIMESTAMP = 3
    REAL = 4
    BOOLEAN = 5
    AUTO_INCREMENT = 6
    VECTOR = 7

    def __str__(self) -> str:
        return _COLUMN_TYPE_NAMES.get(self, "UNKNOWN")


_COLUMN_TYPE_NAMES = {
    ColumnType.INTEGER: "INTEGER",
    ColumnType.TEXT: "TEXT",
    ColumnType.BLOB: "BLOB",
    ColumnType.TIMESTAMP: "TIMESTAMP",
    ColumnType.REAL: "REAL",
    ColumnType.BOOLEAN: "BOOLEAN",
    ColumnType.AUTO_INCREMENT: "AUTOINCREMENT",
    ColumnType.VECTOR: "VECTOR",
}


class DatabaseType(str, Enum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"
    CLICKHOUSE = "clickhouse"


@dataclass(frozen=True)
class ColumnDef:
    """A column definition used when creating tables."""

    name: str
    type: ColumnType
    nullable: bool = False
    primary_key: bool = False
    unique: bool = False
    default: str = ""
    vector_dimension: int = 0


class Dialect(abc.ABC):
    """SQL generation for one database engine."""

    name: ClassVar[str]
    auto_increment_pk: ClassVar[str]
    blob_type: ClassVar[str]
    text_type: ClassVar[str]
    integer_type: ClassVar[str]
    timestamp_type: ClassVar[str]
    supports_returning: ClassVar[bool]

    @abc.abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the parameter placeholder for a 1-based index."""

    @abc.abstractmethod
    def placeholders(self, n: int) -> str:
        """Return ``n`` placeholders joined by ``", "``."""

    @abc.abstractmethod
    def upsert_sql(
        self,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str] | None,
        update_columns: Sequence[str] | None,
    ) -> str:
        """Return an insert-or-update statement."""

    @abc.abstractmethod
    def create_table_sql(self, table: str, columns: Sequence[ColumnDef]) -> str:
        """Return a CREATE TABLE IF NOT EXISTS statement."""

    @abc.abstractmethod
    def create_index_sql(
        self, table: str, index_name: str, columns: Sequence[str], unique: bool
    ) -> str:
        """Return a statement that creates an index if it does not exist."""

    @abc.abstractmethod
    def init_statements(self) -> list[str]:
        """Return engine-specific initialisation statements."""

    @abc.abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _anonymous_placeholders(n: int) -> str:
    """Return ``n`` positional ``?`` markers joined by ``", "``."""
    return ", ".join(["?"] * max(n, 0))


class _RelationalDialect(Dialect):
    """Shared table generation for engines with inline key constraints."""

    def create_table_sql(self, table: str, columns: Sequence[ColumnDef]) -> str:
        key_columns = [
            col.name
            for col in columns
            if col.primary_key and col.type is not ColumnType.AUTO_INCREMENT
        ]
        composite = len(key_columns) > 1
        definitions = ",\n    ".join(self._column_def_sql(col, composite) for col in columns)
        sql = f"CREATE TABLE IF NOT EXISTS {table} (\n    {definitions}"
        if composite:
            sql += f",\n    PRIMARY KEY ({', '.join(key_columns)})"
        return sql + "\n)"

    def create_index_sql(
        self, table: str, index_name: str, columns: Sequence[str], unique: bool
    ) -> str:
        unique_str = "UNIQUE " if unique else ""
        return (
            f"CREATE {unique_str}INDEX IF NOT EXISTS {index_name} "
            f"ON {table} ({', '.join(columns)})"
        )

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def _column_def_sql(self, col: ColumnDef, composite: bool) -> str:
        if col.type is ColumnType.AUTO_INCREMENT:
            return f"{col.name} {self.auto_increment_pk}"
        parts = [col.name, self._type_sql(col)]
        if col.primary_key and not composite:
            parts.append("PRIMARY KEY")
        if not col.nullable and not col.primary_key:
            parts.append("NOT NULL")
        if col.unique:
            parts.append("UNIQUE")
        if col.default:
            parts.extend(["DEFAULT", col.default])
        return " ".join(parts)

    @abc.abstractmethod
    def _type_sql(self, col: ColumnDef) -> str:
        """Return the SQL type for a column."""


class SQLiteDialect(_RelationalDialect):
    """SQLite syntax."""

    name = "sqlite"
    auto_increment_pk = "INTEGER PRIMARY KEY AUTOINCREMENT"
    blob_type = "BLOB"
    text_type = "TEXT"
    integer_type = "INTEGER"
    timestamp_type = "INTEGER"
    supports_returning = False

    _TYPES = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.TEXT: "TEXT",
        ColumnType.BLOB: "BLOB",
        ColumnType.TIMESTAMP: "INTEGER",
        ColumnType.REAL: "REAL",
        ColumnType.BOOLEAN: "INTEGER",
        ColumnType.VECTOR: "TEXT",
    }

    def placeholder(self, index: int) -> str:
        # Positional markers are the same whatever the index.
        return _anonymous_placeholders(1)

    def placeholders(self, n: int) -> str:
        return _anonymous_placeholders(n)

    def upsert_sql(
        self,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str] | None,
        update_columns: Sequence[str] | None,
    ) -> str:
        return (
            f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) "
            f"VALUES ({self.placeholders(len(columns))})"
        )

    def create_table_sql(self, table: str, columns: Sequence[ColumnDef]) -> str:
        return super().create_table_sql(table, columns)

    def create_index_sql(
        self, table: str, index_name: str, columns: Sequence[str], unique: bool
    ) -> str:
        return super().create_index_sql(table, index_name, columns, unique)

    def init_statements(self) -> list[str]:
        return ["PRAGMA journal_mode=WAL", "PRAGMA foreign_keys=ON"]

    def quote_identifier(self, name: str) -> str:
        return super().quote_identifier(name)

    def _type_sql(self, col: ColumnDef) -> str:
        return self._TYPES.get(col.type, "TEXT")


class PostgresDialect(_RelationalDialect):
    """PostgreSQL syntax, with pgvector support."""

    name = "postgres"
    auto_increment_pk = "SERIAL PRIMARY KEY"
    blob_type = "BYTEA"
    text_type = "TEXT"
    integer_type = "INTEGER"
    timestamp_type = "TIMESTAMPTZ"
    supports_returning = True

    _TYPES = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.TEXT: "TEXT",
        ColumnType.BLOB: "BYTEA",
        ColumnType.TIMESTAMP: "TIMESTAMPTZ",
        ColumnType.REAL: "DOUBLE PRECISION",
        ColumnType.BOOLEAN: "BOOLEAN",
    }

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def placeholders(self, n: int) -> str:
        return ", ".join(self.placeholder(i) for i in range(1, n + 1))

    def upsert_sql(
        self,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str] | None,
        update_columns: Sequence[str] | None,
    ) -> str:
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({self.placeholders(len(columns))})"
        )
        if not conflict_columns:
            return sql
        sql += f" ON CONFLICT ({', '.join(conflict_columns)})"
        targets = update_columns or [c for c in columns if c not in conflict_columns]
        if targets:
            updates = ", ".join(f"{c} = EXCLUDED.{c}" for c in targets)
            sql += f" DO UPDATE SET {updates}"
        else:
            sql += " DO NOTHING"
        return sql

    def create_table_sql(self, table: str, columns: Sequence[ColumnDef]) -> str:
        return super().create_table_sql(table, columns)

    def create_index_sql(
        self, table: str, index_name: str, columns: Sequence[str], unique: bool
    ) -> str:
        return super().create_index_sql(table, index_name, columns, unique)

    def init_statements(self) -> list[str]:
        return ["CREATE EXTENSION IF NOT EXISTS vector"]

    def quote_identifier(self, name: str) -> str:
        return super().quote_identifier(name)

    def _type_sql(self, col: ColumnDef) -> str:
        if col.type is ColumnType.VECTOR:
            return f"vector({col.vector_dimension})" if col.vector_dimension > 0 else "vector"
        return self._TYPES.get(col.type, "TEXT")


class ClickHouseDialect(Dialect):
    """ClickHouse syntax; upserts rely on ReplacingMergeTree deduplication."""

    name = "clickhouse"
    auto_increment_pk = "UInt64"
    blob_type = "String"
    text_type = "String"
    integer_type = "Int64"
    timestamp_type = "DateTime64(3)"
    supports_returning = False

    _TYPES = {
        ColumnType.INTEGER: "Int64",
        ColumnType.AUTO_INCREMENT: "Int64",
        ColumnType.TEXT: "String",
        ColumnType.BLOB: "String",
        ColumnType.TIMESTAMP: "DateTime64(3)",
        ColumnType.REAL: "Float64",
        ColumnType.BOOLEAN: "UInt8",
    }

    def placeholder(self, index: int) -> str:
        # Positional markers are the same whatever the index.
        return _anonymous_placeholders(1)

    def placeholders(self, n: int) -> str:
        return _anonymous_placeholders(n)

    def upsert_sql(
        self,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str] | None,
        update_columns: Sequence[str] | None,
    ) -> str:
        return (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({self.placeholders(len(columns))})"
        )

    def create_table_sql(self, table: str, columns: Sequence[ColumnDef]) -> str:
        definitions = ",\n    ".join(self._column_def_sql(col) for col in columns)
        order_by = [col.name for col in columns if col.primary_key]
        sql = f"CREATE TABLE IF NOT EXISTS {table} (\n    {definitions}\n)"
        sql += " ENGINE = ReplacingMergeTree()"
        if order_by:
            sql += f" ORDER BY ({', '.join(order_by)})"
        else:
            sql += " ORDER BY tuple()"
        return sql

    def create_index_sql(
        self, table: str, index_name: str, columns: Sequence[str], unique: bool
    ) -> str:
        return (
            f"ALTER TABLE {table} ADD INDEX IF NOT EXISTS {index_name} "
            f"({', '.join(columns)}) TYPE minmax GRANULARITY 3"
        )

    def init_statements(self) -> list[str]:
        return []

    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "\\`") + "`"

    def _column_def_sql(self, col: ColumnDef) -> str:
        parts = [col.name, self._TYPES.get(col.type, "String")]
        if col.default:
            parts.extend(["DEFAULT", col.default])
        return " ".join(parts)


def get_dialect(db_type: DatabaseType | str | None) -> Dialect:
    """Return the dialect for a database type, SQLite when unknown or empty."""
    if db_type == DatabaseType.POSTGRES:
        return PostgresDialect()
    if db_type == DatabaseType.CLICKHOUSE:
        return ClickHouseDialect()
    return SQLiteDialect()