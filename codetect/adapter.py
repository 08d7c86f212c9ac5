"""Database connections behind a small, driver-independent interface."""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Protocol, runtime_checkable

from codetect.dialect import DatabaseType, Dialect, get_dialect

MEMORY_PATH = ":memory:"


class DatabaseError(Exception):
    """Raised when a database cannot be opened or a statement fails."""


class Driver(str, Enum):
    """SQLite driver implementations."""

    MODERNC = "modernc"
    NCRUCES = "ncruces"
    MATTN = "mattn"


def _label(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


@contextmanager
def _translate_errors(context: str = "") -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        message = f"{context}: {exc}" if context else str(exc)
        raise DatabaseError(message) from exc


@dataclass
class Config:
    """Options for opening a database."""

    type: DatabaseType | str = DatabaseType.SQLITE
    driver: Driver | str = Driver.MODERNC
    path: str = ""
    dsn: str = ""
    enable_wal: bool = False
    vector_dimensions: int = 0
    max_open_conns: int = 0
    max_idle_conns: int = 0
    conn_max_lifetime: int = 0

    def dialect(self) -> Dialect:
        """Return the SQL dialect for this configuration."""
        return get_dialect(self.type)


def default_config(path: str) -> Config:
    """Return a SQLite configuration with WAL enabled."""
    return Config(
        type=DatabaseType.SQLITE,
        driver=Driver.MODERNC,
        path=path,
        enable_wal=True,
    )


def postgres_config(dsn: str) -> Config:
    """Return a PostgreSQL configuration with pooling defaults."""
    return Config(
        type=DatabaseType.POSTGRES,
        dsn=dsn,
        max_open_conns=25,
        max_idle_conns=5,
        conn_max_lifetime=300,
    )


def clickhouse_config(dsn: str) -> Config:
    """Return a ClickHouse configuration with pooling defaults."""
    return Config(
        type=DatabaseType.CLICKHOUSE,
        dsn=dsn,
        max_open_conns=10,
        max_idle_conns=2,
        conn_max_lifetime=600,
    )


@dataclass(frozen=True)
class Result:
    """Summary of an executed statement."""

    last_insert_id: int | None
    rows_affected: int


class Rows:
    """Rows produced by a query; iterate to read them as tuples."""

    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    @property
    def columns(self) -> list[str]:
        """Names of the result columns."""
        return [d[0] for d in (self._cursor.description or ())]

    def __iter__(self) -> Iterator[tuple]:
        with _translate_errors():
            yield from self._cursor

    def close(self) -> None:
        """Release the underlying cursor."""
        with _translate_errors():
            self._cursor.close()

    def __enter__(self) -> Rows:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


def _execute(connection: Any, sql: str, args: tuple) -> Any:
    with _translate_errors():
        return connection.execute(sql, args)


def _result(cursor: Any) -> Result:
    return Result(last_insert_id=cursor.lastrowid, rows_affected=cursor.rowcount)


def _first_row(cursor: Any) -> tuple | None:
    with _translate_errors():
        try:
            return cursor.fetchone()
        finally:
            cursor.close()


class Statement:
    """A statement prepared inside a transaction."""

    def __init__(self, transaction: Transaction, sql: str) -> None:
        self._transaction = transaction
        self._sql = sql
        self._closed = False

    def _check(self) -> None:
        if self._closed:
            raise DatabaseError("statement is closed")
        self._transaction._check()

    def execute(self, *args: Any) -> Result:
        """Run the statement with the given arguments."""
        self._check()
        return _result(_execute(self._transaction._connection, self._sql, args))

    def query(self, *args: Any) -> Rows:
        """Run the statement and return its rows."""
        self._check()
        return Rows(_execute(self._transaction._connection, self._sql, args))

    def query_row(self, *args: Any) -> tuple | None:
        """Run the statement and return its first row, or None."""
        self._check()
        return _first_row(_execute(self._transaction._connection, self._sql, args))

    def close(self) -> None:
        """Mark the statement closed."""
        self._closed = True

    def __enter__(self) -> Statement:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


class Transaction:
    """An explicit transaction; as a context manager it commits or rolls back."""

    def __init__(self, connection: Any) -> None:
        self._connection = connection
        self._done = False
        with _translate_errors("begin transaction"):
            connection.execute("BEGIN")

    def _check(self) -> None:
        if self._done:
            raise DatabaseError("transaction has already been committed or rolled back")

    def execute(self, sql: str, *args: Any) -> Result:
        """Run a statement inside the transaction."""
        self._check()
        return _result(_execute(self._connection, sql, args))

    def query(self, sql: str, *args: Any) -> Rows:
        """Run a query inside the transaction."""
        self._check()
        return Rows(_execute(self._connection, sql, args))

    def query_row(self, sql: str, *args: Any) -> tuple | None:
        """Return the first row of a query, or None."""
        self._check()
        return _first_row(_execute(self._connection, sql, args))

    def prepare(self, sql: str) -> Statement:
        """Prepare a statement bound to this transaction."""
        self._check()
        return Statement(self, sql)

    def commit(self) -> None:
        """Commit the transaction."""
        self._check()
        self._done = True
        with _translate_errors("commit"):
            self._connection.execute("COMMIT")

    def rollback(self) -> None:
        """Abort the transaction."""
        self._check()
        self._done = True
        with _translate_errors("rollback"):
            self._connection.execute("ROLLBACK")

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self._done:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        return False


class Database:
    """A database connection with a uniform query interface."""

    def __init__(self, connection: Any, path: str = "") -> None:
        if isinstance(connection, sqlite3.Connection):
            # Autocommit mode, so transactions only start on begin().
            connection.isolation_level = None
        self.connection = connection
        self.path = path

    def execute(self, sql: str, *args: Any) -> Result:
        """Run a statement that returns no rows."""
        return _result(_execute(self.connection, sql, args))

    def query(self, sql: str, *args: Any) -> Rows:
        """Run a query and return its rows."""
        return Rows(_execute(self.connection, sql, args))

    def query_row(self, sql: str, *args: Any) -> tuple | None:
        """Return the first row of a query, or None when there is none."""
        return _first_row(_execute(self.connection, sql, args))

    def begin(self) -> Transaction:
        """Start a transaction."""
        return Transaction(self.connection)

    def ping(self) -> None:
        """Check that the connection is still usable."""
        with _translate_errors("ping"):
            self.connection.execute("SELECT 1").close()

    def close(self) -> None:
        """Close the connection."""
        with _translate_errors():
            self.connection.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


@runtime_checkable
class _VectorCapable(Protocol):
    def vector_search_available(self) -> bool: ...


def _open_sqlite_file(cfg: Config) -> Database:
    if cfg.path != MEMORY_PATH:
        directory = os.path.dirname(cfg.path) or "."
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise DatabaseError(f"creating db directory: {exc}") from exc

    with _translate_errors("opening database"):
        connection = sqlite3.connect(cfg.path, isolation_level=None)

    if cfg.enable_wal and cfg.path != MEMORY_PATH:
        try:
            connection.execute("PRAGMA journal_mode=WAL").close()
        except sqlite3.Error as exc:
            connection.close()
            raise DatabaseError(f"setting WAL mode: {exc}") from exc

    return Database(connection, cfg.path)


def open_sqlite(cfg: Config) -> Database:
    """Open a SQLite database with the configured driver."""
    driver = cfg.driver
    if driver in (Driver.MODERNC, ""):
        return _open_sqlite_file(cfg)
    if driver == Driver.NCRUCES:
        raise DatabaseError(
            "ncruces driver not yet implemented (requires sqlite-vec integration)"
        )
    if driver == Driver.MATTN:
        raise DatabaseError("mattn driver not yet implemented (requires CGO)")
    raise DatabaseError(f"unknown SQLite driver: {_label(driver)}")


def wrap_sql(connection: Any) -> Database:
    """Wrap an already open connection."""
    return Database(connection)


def _open_postgres(cfg: Config) -> Database:
    if not cfg.dsn:
        raise DatabaseError("postgres requires DSN in config")
    raise DatabaseError(
        "no postgres driver available; open a connection yourself and use wrap_sql"
    )


def _open_clickhouse(cfg: Config) -> Database:
    if not cfg.dsn:
        raise DatabaseError("clickhouse requires DSN in config")
    raise DatabaseError("clickhouse driver not yet implemented (requires clickhouse-go)")


def open_database(cfg: Config) -> Database:
    """Open a database of the configured type; SQLite when the type is empty."""
    if cfg.type == DatabaseType.POSTGRES:
        return _open_postgres(cfg)
    if cfg.type == DatabaseType.CLICKHOUSE:
        return _open_clickhouse(cfg)
    if cfg.type in (DatabaseType.SQLITE, ""):
        return open_sqlite(cfg)
    raise DatabaseError(f"unknown database type: {_label(cfg.type)}")


def must_open(cfg: Config) -> Database:
    """Open a database, raising RuntimeError on failure."""
    try:
        return open_database(cfg)
    except DatabaseError as exc:
        raise RuntimeError(f"failed to open database: {exc}") from exc


def open_extended(cfg: Config) -> tuple[Database, bool]:
    """Open a database and report whether native vector search is available."""
    database = open_database(cfg)
    available = isinstance(database, _VectorCapable) and database.vector_search_available()
    return database, bool(available)