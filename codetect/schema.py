"""Dialect-aware schema operations and a small fluent query builder."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from codetect.adapter import Config, DatabaseError, Result, Rows
from codetect.dialect import ColumnDef, Dialect


class SchemaBuilder:
    """Generates SQL with a dialect and runs it against a database."""

    def __init__(self, db: Any, dialect: Dialect) -> None:
        self.db = db
        self.dialect = dialect

    @classmethod
    def from_config(cls, db: Any, cfg: Config) -> SchemaBuilder:
        """Create a builder that uses the dialect of ``cfg``."""
        return cls(db, cfg.dialect())

    def create_table(self, table: str, columns: Sequence[ColumnDef]) -> None:
        """Create a table if it does not exist."""
        self.db.execute(self.dialect.create_table_sql(table, columns))

    def create_index(
        self, table: str, index_name: str, columns: Sequence[str], unique: bool
    ) -> None:
        """Create an index if it does not exist."""
        self.db.execute(self.dialect.create_index_sql(table, index_name, columns, unique))

    def upsert(
        self,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str] | None,
        update_columns: Sequence[str] | None,
        *args: Any,
    ) -> Result:
        """Insert a row, or update it when it conflicts with an existing one."""
        sql = self.dialect.upsert_sql(table, columns, conflict_columns, update_columns)
        return self.db.execute(sql, *args)

    def upsert_batch(
        self,
        table: str,
        columns: Sequence[str],
        conflict_columns: Sequence[str] | None,
        update_columns: Sequence[str] | None,
        rows: Iterable[Sequence[Any]],
    ) -> None:
        """Upsert many rows in one transaction; nothing is kept if any row fails."""
        sql = self.dialect.upsert_sql(table, columns, conflict_columns, update_columns)
        with self.db.begin() as tx:
            try:
                stmt = tx.prepare(sql)
            except DatabaseError as exc:
                raise DatabaseError(f"prepare statement: {exc}") from exc
            with stmt:
                for i, row in enumerate(rows):
                    if len(row) != len(columns):
                        raise DatabaseError(
                            f"row {i}: expected {len(columns)} values, got {len(row)}"
                        )
                    try:
                        stmt.execute(*row)
                    except DatabaseError as exc:
                        raise DatabaseError(f"row {i}: {exc}") from exc

    def run_init_statements(self) -> None:
        """Run the dialect's initialisation statements in order."""
        for statement in self.dialect.init_statements():
            try:
                self.db.execute(statement)
            except DatabaseError as exc:
                raise DatabaseError(f'init statement "{statement}": {exc}') from exc

    def query(self, table: str) -> QueryBuilder:
        """Start building a SELECT query on ``table``."""
        return QueryBuilder(self, table)

    def substitute_placeholders(self, sql: str) -> str:
        """Rewrite ``?`` placeholders into the dialect's numbered form."""
        if self.dialect.name in ("sqlite", "clickhouse"):
            return sql
        parts = []
        index = 1
        for ch in sql:
            if ch == "?":
                parts.append(self.dialect.placeholder(index))
                index += 1
            else:
                parts.append(ch)
        return "".join(parts)


class QueryBuilder:
    """Fluent builder for SELECT statements."""

    def __init__(self, schema: SchemaBuilder, table: str) -> None:
        self._schema = schema
        self._table = table
        self._columns: list[str] = []
        self._conditions: list[str] = []
        self._args: list[Any] = []
        self._order = ""
        self._limit = 0
        self._offset = 0

    def select(self, *args: str) -> QueryBuilder:
        """Set the columns to select."""
        self._columns = list(args)
        return self

    def where(self, condition: str, *args: Any) -> QueryBuilder:
        """Add a condition; conditions are joined with AND."""
        self._conditions.append(condition)
        self._args.extend(args)
        return self

    def order_by(self, order: str) -> QueryBuilder:
        """Set the ORDER BY clause."""
        self._order = order
        return self

    def limit(self, n: int) -> QueryBuilder:
        """Set the LIMIT clause; zero or less means no limit."""
        self._limit = n
        return self

    def offset(self, n: int) -> QueryBuilder:
        """Set the OFFSET clause; zero or less means no offset."""
        self._offset = n
        return self

    def sql(self) -> str:
        """Return the generated SQL."""
        columns = ", ".join(self._columns) if self._columns else "*"
        sql = f"SELECT {columns} FROM {self._table}"
        if self._conditions:
            sql += " WHERE " + " AND ".join(self._conditions)
        if self._order:
            sql += " ORDER BY " + self._order
        if self._limit > 0:
            sql += f" LIMIT {self._limit}"
        if self._offset > 0:
            sql += f" OFFSET {self._offset}"
        return sql

    def execute(self) -> Rows:
        """Run the query and return its rows."""
        return self._schema.db.query(self.sql(), *self._args)

    def execute_row(self) -> tuple | None:
        """Run the query and return its first row, or None."""
        return self._schema.db.query_row(self.sql(), *self._args)