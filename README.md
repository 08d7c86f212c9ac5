# codetect

A small database layer in three parts.

- `codetect.dialect`: SQL generation for SQLite, PostgreSQL and ClickHouse.
- `codetect.adapter`: opening SQLite databases behind a uniform `Database`
  interface, with transactions and prepared statements.
- `codetect.schema`: running dialect-generated schema statements and upserts, plus
  a fluent `SELECT` builder.
- `codetect.vector` and `codetect.pgvector`: k-nearest-neighbour search over
  vectors, in memory or through PostgreSQL's pgvector extension.

The package has no dependencies outside the standard library.

## Installation

```
pip install .
```

## SQL dialects

`get_dialect(db_type)` returns a `PostgresDialect`, a `ClickHouseDialect`, or a
`SQLiteDialect` for `DatabaseType.SQLITE` and any other or empty value. Each
dialect has a `name` and type attributes (`auto_increment_pk`, `blob_type`,
`text_type`, `integer_type`, `timestamp_type`, `supports_returning`) and these
methods:

- `placeholder(index)` and `placeholders(n)`: `?` for SQLite and ClickHouse,
  `$1, $2, ...` for PostgreSQL.
- `upsert_sql(table, columns, conflict_columns, update_columns)`: SQLite uses
  `INSERT OR REPLACE`; PostgreSQL uses `ON CONFLICT (...) DO UPDATE SET`, updating
  every non-conflict column when `update_columns` is empty, or `DO NOTHING` when
  none is left; ClickHouse emits a plain `INSERT`.
- `create_table_sql(table, columns)`: takes `ColumnDef` values. SQLite and
  PostgreSQL add a table-level `PRIMARY KEY (...)` when more than one column is a
  key; ClickHouse adds `ENGINE = ReplacingMergeTree()` and orders by the key
  columns, or by `tuple()` when there are none.
- `create_index_sql(table, index_name, columns, unique)`: ClickHouse creates a
  `minmax` data-skipping index.
- `init_statements()`: WAL and foreign-key pragmas for SQLite,
  `CREATE EXTENSION IF NOT EXISTS vector` for PostgreSQL, nothing for ClickHouse.
- `quote_identifier(name)`: double quotes for SQLite and PostgreSQL, backticks
  for ClickHouse.

```python
from codetect.dialect import ColumnDef, ColumnType, PostgresDialect

sql = PostgresDialect().create_table_sql("docs", [
    ColumnDef("id", ColumnType.AUTO_INCREMENT),
    ColumnDef("body", ColumnType.TEXT),
    ColumnDef("embedding", ColumnType.VECTOR, nullable=True, vector_dimension=768),
])
```

`ColumnType` values print as `INTEGER`, `TEXT`, `BLOB`, `TIMESTAMP`, `REAL`,
`BOOLEAN`, `AUTOINCREMENT` and `VECTOR`.

## Opening a database

A `Config` holds `type`, `driver`, `path`, `dsn`, `enable_wal` and pool settings;
`config.dialect()` returns the matching dialect. `default_config(path)` gives
SQLite with WAL enabled; `postgres_config(dsn)` and `clickhouse_config(dsn)` fill
in pool defaults.

`open_database(cfg)` opens SQLite when the type is SQLite or empty. For a file
path it creates the parent directory first and, with `enable_wal`, switches the
journal to WAL (never for `":memory:"`). `must_open(cfg)` does the same but turns
a failure into `RuntimeError`; `open_extended(cfg)` returns the database together
with whether native vector search is available. `wrap_sql(connection)` wraps an
already open connection. Failures raise `DatabaseError`.

A `Database` offers `execute(sql, *args)` returning a `Result`
(`last_insert_id`, `rows_affected`), `query(sql, *args)` returning iterable
`Rows` (with a `columns` property), `query_row(sql, *args)` returning the first
row as a tuple or `None`, `begin()`, `ping()` and `close()`. `Database`, `Rows`,
`Transaction` and `Statement` are context managers; a `Transaction` commits when
its block ends normally and rolls back when it raises.

```python
from codetect.adapter import default_config, open_database

with open_database(default_config(":memory:")) as db:
    db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    with db.begin() as tx:
        with tx.prepare("INSERT INTO users (name) VALUES (?)") as stmt:
            for name in ("alice", "bob"):
                stmt.execute(name)
    (name,) = db.query_row("SELECT name FROM users WHERE id = 1")
    with db.query("SELECT id, name FROM users ORDER BY id") as rows:
        names = [row[1] for row in rows]
```

## Schema builder

```python
from codetect.adapter import default_config, open_database
from codetect.dialect import ColumnDef, ColumnType
from codetect.schema import SchemaBuilder

cfg = default_config(":memory:")
with open_database(cfg) as db:
    schema = SchemaBuilder.from_config(db, cfg)
    schema.create_table("users", [
        ColumnDef("id", ColumnType.INTEGER, primary_key=True),
        ColumnDef("name", ColumnType.TEXT),
    ])
    schema.create_index("users", "idx_users_name", ["name"], False)
    schema.upsert("users", ["id", "name"], ["id"], None, 1, "alice")
    schema.upsert_batch("users", ["id", "name"], ["id"], None, [(2, "bob"), (3, "carol")])
    row = schema.query("users").select("id", "name").where("name = ?", "bob").execute_row()

    schema.query("users").select("id").order_by("name ASC").limit(25).offset(50).sql()
    # 'SELECT id FROM users ORDER BY name ASC LIMIT 25 OFFSET 50'
```

`upsert_batch` runs every row in one transaction and keeps nothing if a row has
the wrong number of values or fails. `run_init_statements()` executes the
dialect's initialisation statements. `substitute_placeholders(sql)` rewrites `?`
into `$1, $2, ...` for PostgreSQL and leaves SQL unchanged for SQLite and
ClickHouse.

## Vector search

`BruteForceVectorDB` keeps vectors in memory and compares the query with every
stored vector. The metric chosen in `create_vector_index` is one of
`DistanceMetric.COSINE` (the default), `EUCLIDEAN`, `DOT_PRODUCT` (negated dot
product) or `MANHATTAN`. `search_knn` returns `VectorSearchResult` values
(`id`, `distance`, `score = 1 / (1 + distance)`), closest first; an unknown index
gives an empty list.

```python
from codetect.vector import BruteForceVectorDB, DistanceMetric

vdb = BruteForceVectorDB()
vdb.create_vector_index("docs", 3, DistanceMetric.COSINE)
vdb.insert_vectors("docs", [1, 2], [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
results = vdb.search_knn("docs", [1.0, 0.0, 0.0], 1)
vdb.delete_vector("docs", 2)
```

The distance functions `cosine_distance`, `euclidean_distance`,
`negative_dot_product` and `manhattan_distance` are available on their own.

`PgVectorDB(database, dimensions, metric)` stores vectors in the `embedding`
column of existing rows, matched by `id`, and searches with pgvector's
operators (cosine, Euclidean and dot product). `database` must be an object with
`query_row`, `query`, `execute` and `begin` methods that accepts `$n`
placeholders, on a PostgreSQL server where the `vector` extension is installed;
otherwise the constructor raises `DatabaseError`. `create_vector_index` builds an
HNSW index and falls back to IVFFlat; `delete_vector` and `delete_vectors` set the
embedding to `NULL` and keep the row.

## What it does not do

- `open_database` opens only SQLite. For PostgreSQL and ClickHouse it raises
  `DatabaseError`: the package bundles no driver for either, so a PostgreSQL
  connection has to be opened by other means before it can be used with
  `PgVectorDB`.
- Of the SQLite drivers, only `Driver.MODERNC` (the default) opens a database;
  `Driver.NCRUCES` and `Driver.MATTN` raise `DatabaseError`. There is no native
  vector search inside SQLite, so `open_extended` reports `False` for it.

## Running the tests

```
pip install .[test]
pytest
```